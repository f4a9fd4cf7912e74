"""Tests for the chapter segmenter."""

import pytest

from novelreader.services.chapter_segmenter import FULL_TEXT_TITLE, ChapterSegmenter, HeadingRule


class TestChapterSegmenter:
    """Test the ChapterSegmenter class."""

    @pytest.fixture
    def segmenter(self):
        """Create a ChapterSegmenter instance."""
        return ChapterSegmenter()

    def test_detect_numbered_chapters(self, segmenter):
        """Test detection of numbered chapters."""
        text = "Chapter 1: A. Word word word. Chapter 2: B. More text."

        chapters = segmenter.segment(text)

        assert [c.title for c in chapters] == ["Chapter 1", "Chapter 2"]
        assert chapters[0].text == "Chapter 1: A. Word word word. "
        assert chapters[1].text == "Chapter 2: B. More text."
        assert chapters[1].start_offset == text.index("Chapter 2")

    def test_chapters_cover_the_whole_text(self, segmenter):
        """Concatenated chapter texts give back the original."""
        text = """Preface words here.

CHAPTER 1
It began.

chapter   2
It went on.

Chapter 3
It ended."""

        chapters = segmenter.segment(text)

        assert "".join(c.text for c in chapters) == text
        assert [c.title for c in chapters] == ["CHAPTER 1", "chapter 2", "Chapter 3"]

    def test_text_before_first_heading_joins_first_chapter(self, segmenter):
        """A foreword is read as part of the first chapter."""
        text = "Foreword by the editor. Chapter 1 Begin here. Chapter 2 Go on."

        chapters = segmenter.segment(text)

        assert chapters[0].start_offset == text.index("Chapter 1")
        assert chapters[0].text.startswith("Foreword")
        assert chapters[0].title == "Chapter 1"

    def test_detect_roman_numeral_chapters(self, segmenter):
        """Test detection of Roman numeral chapters."""
        text = "CHAPTER I\nFirst part.\n\nCHAPTER II\nSecond part.\n\nCHAPTER IV\nFourth part."

        chapters = segmenter.segment(text)

        assert [c.title for c in chapters] == ["CHAPTER I", "CHAPTER II", "CHAPTER IV"]

    def test_first_matching_rule_wins(self, segmenter):
        """Part headings are ignored once chapter headings are found."""
        text = "Part 1 Chapter 1 Start. Chapter 2 Middle. Part 2 Chapter 3 End."

        chapters = segmenter.segment(text)

        assert [c.title for c in chapters] == ["Chapter 1", "Chapter 2", "Chapter 3"]

    def test_part_and_book_headings(self, segmenter):
        """Lower-priority rules apply when no chapter headings exist."""
        assert [c.title for c in segmenter.segment("Part 1 one. Part 2 two.")] == ["Part 1", "Part 2"]
        assert [c.title for c in segmenter.segment("Book 1 one. Book 2 two.")] == ["Book 1", "Book 2"]

    def test_bold_headings(self, segmenter):
        """Markdown emphasis around a heading does not hide it."""
        text = "**Chapter 1** A start. Word word. **Chapter 2** B end. More text."

        chapters = segmenter.segment(text)

        assert [c.title for c in chapters] == ["Chapter 1", "Chapter 2"]
        assert chapters[0].text == "**Chapter 1** A start. Word word. "
        assert chapters[1].text == "**Chapter 2** B end. More text."
        assert chapters[1].start_offset == text.index("Chapter 2")

    def test_quoted_and_bracketed_headings(self, segmenter):
        """Punctuation glued to a heading stays with the heading's chapter."""
        text = '"Chapter 1" opens. Some words. (Chapter 2) closes.'

        chapters = segmenter.segment(text)

        assert [c.title for c in chapters] == ["Chapter 1", "Chapter 2"]
        assert chapters[1].text == "(Chapter 2) closes."
        assert "".join(c.text for c in chapters) == text
        assert sum(c.word_count for c in chapters) == len(text.split())

    def test_byte_order_mark_before_first_heading(self, segmenter):
        """A leading BOM does not shift the first chapter."""
        text = "\ufeffChapter 1: A. Word word word. Chapter 2: B. More text."

        chapters = segmenter.segment(text)

        assert [c.title for c in chapters] == ["Chapter 1", "Chapter 2"]
        assert chapters[0].text.endswith("Word word word. ")
        assert chapters[1].text == "Chapter 2: B. More text."

    def test_two_headings_in_one_word_make_one_border(self, segmenter):
        """A single word never yields an empty chapter."""
        text = "Intro. Chapter 1/Chapter 2 together. Chapter 3 alone."

        chapters = segmenter.segment(text)

        assert [c.title for c in chapters] == ["Chapter 1", "Chapter 3"]
        assert all(c.text for c in chapters)

    def test_no_headings_gives_single_chapter(self, segmenter):
        """Test fallback when no chapter markers are found."""
        text = "Just a short story with no structure at all."

        chapters = segmenter.segment(text)

        assert len(chapters) == 1
        assert chapters[0].title == FULL_TEXT_TITLE
        assert chapters[0].text == text
        assert chapters[0].word_count == 9

    def test_custom_rule_with_priority(self, segmenter):
        """A rule inserted at the front takes precedence."""
        segmenter.add_rule(HeadingRule("act", r"Act\s+\d+"), priority=0)
        text = "Act 1 Chapter 1 Opening. Act 2 Chapter 2 Closing."

        chapters = segmenter.segment(text)

        assert [c.title for c in chapters] == ["Act 1", "Act 2"]

    def test_custom_rule_appended_last(self):
        """Rules can be added to an empty segmenter."""
        segmenter = ChapterSegmenter(rules=[])
        segmenter.add_rule(HeadingRule("section", r"Section\s+\d+"))

        chapters = segmenter.segment("Section 1 a. Section 2 b.")

        assert len(chapters) == 2
