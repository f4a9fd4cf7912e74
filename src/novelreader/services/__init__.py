"""Stateless, testable building blocks (segmenting, paging, phrasing) and the playback engine."""

from .chapter_segmenter import ChapterSegmenter, HeadingRule
from .navigation import NavigationState
from .paginator import paginate, paginate_all
from .phrase_extractor import Phrase, Sentence, next_phrase, split_sentences
from .word_index import WordIndex
