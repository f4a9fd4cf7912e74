"""Chapter segmentation using an ordered list of heading rules."""

import logging
import re
from dataclasses import dataclass, field
from typing import ClassVar

from novelreader.models import Chapter

logger = logging.getLogger(__name__)

FULL_TEXT_TITLE = "Full Text"


@dataclass
class HeadingRule:
    """A named heading grammar. Matching is case-insensitive."""

    name: str
    pattern: str
    compiled: re.Pattern[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.compiled = re.compile(self.pattern, re.IGNORECASE)

    def find(self, text: str) -> list[re.Match[str]]:
        return list(self.compiled.finditer(text))


class ChapterSegmenter:
    """Split raw text into chapters at the headings of the first matching rule."""

    # Evaluated in order; the first rule with any match decides every boundary.
    DEFAULT_RULES: ClassVar[list[tuple[str, str]]] = [
        ("chapter", r"Chapter\s+\d+"),
        ("roman_chapter", r"CHAPTER\s+[IVXLCDM]+\b"),
        ("part", r"Part\s+\d+"),
        ("book", r"Book\s+\d+"),
    ]

    def __init__(self, rules: list[HeadingRule] | None = None):
        self.rules = rules if rules is not None else [
            HeadingRule(name, pattern) for name, pattern in self.DEFAULT_RULES
        ]

    def add_rule(self, rule: HeadingRule, *, priority: int | None = None) -> None:
        """Register another heading grammar, last by default."""
        if priority is None:
            self.rules.append(rule)
        else:
            self.rules.insert(priority, rule)

    def segment(self, text: str) -> list[Chapter]:
        """Return the chapters of *text*. Never empty."""
        for rule in self.rules:
            matches = rule.find(text)
            if matches:
                logger.info(f"Heading rule '{rule.name}' matched {len(matches)} chapters")
                return self._chapters_from_matches(text, matches)

        logger.info("No chapter headings found, using the whole text as one chapter")
        return [Chapter(title=FULL_TEXT_TITLE, text=text, start_offset=0)]

    @staticmethod
    def _chapters_from_matches(text: str, matches: list[re.Match[str]]) -> list[Chapter]:
        # Borders sit at the start of the word holding the heading, so a chapter
        # never splits a word ("**Chapter 1**" stays whole).
        borders: list[tuple[int, re.Match[str]]] = []
        for match in matches:
            border = _word_start(text, match.start())
            if borders and borders[-1][0] == border:
                continue
            borders.append((border, match))

        chapters = []
        for i, (border, match) in enumerate(borders):
            # Anything before the first heading belongs to the first chapter.
            start = 0 if i == 0 else border
            end = borders[i + 1][0] if i < len(borders) - 1 else len(text)
            chapters.append(
                Chapter(
                    title=" ".join(match.group(0).split()),
                    text=text[start:end],
                    start_offset=match.start(),
                )
            )
        return chapters


def _word_start(text: str, offset: int) -> int:
    while offset > 0 and not text[offset - 1].isspace():
        offset -= 1
    return offset
