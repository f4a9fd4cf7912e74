from __future__ import annotations

import re
from dataclasses import dataclass

from novelreader.services.word_index import WordIndex

SENTENCE_TERMINATORS = (".", "!", "?")
DEFAULT_MAX_PHRASE_WORDS = 20

# Punctuation-delimited runs; trailing text without a terminator is its own sentence.
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$")


@dataclass(frozen=True)
class Phrase:
    """Words ``start`` to ``end - 1`` of the document, joined for synthesis."""

    text: str
    start: int
    end: int

    @property
    def word_count(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Sentence:
    """A clickable unit of a rendered page."""

    index: int
    text: str
    words_before: int  # words on the page preceding this sentence


def next_phrase(
    index: WordIndex, cursor: int, max_words: int = DEFAULT_MAX_PHRASE_WORDS
) -> Phrase | None:
    """Collect words from *cursor* up to the first sentence terminator.

    The phrase is cut once it holds more than *max_words* words, so it never
    exceeds ``max_words + 1`` words. Returns None at the end of the document.
    """
    cursor = index.clamp(cursor)
    words: list[str] = []
    position = cursor
    while position < index.word_count:
        text = index.word(position).text
        words.append(text)
        position += 1
        if text.endswith(SENTENCE_TERMINATORS) or len(words) > max_words:
            break

    if not words:
        return None
    return Phrase(text=" ".join(words), start=cursor, end=position)


def split_sentences(page_text: str) -> list[Sentence]:
    """Split a page into punctuation-delimited sentences with their word offsets."""
    sentences = []
    for match in _SENTENCE_RE.finditer(page_text):
        if not match.group(0).strip():
            continue
        sentences.append(
            Sentence(
                index=len(sentences),
                text=match.group(0).strip(),
                words_before=_words_before(page_text, match.start()),
            )
        )
    if not sentences:
        sentences.append(Sentence(index=0, text=page_text.strip(), words_before=0))
    return sentences


def _words_before(text: str, position: int) -> int:
    """Words that start before *position*, excluding one cut in half by it."""
    count = len(text[:position].split())
    if 0 < position < len(text) and not text[position - 1].isspace() and not text[position].isspace():
        # "e.g." splits as "e." | "g."; the word belongs to the sentence that follows.
        count -= 1
    return count
