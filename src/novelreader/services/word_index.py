from __future__ import annotations

import re
from dataclasses import dataclass

_TOKEN_RE = re.compile(r"\s+|\S+")


@dataclass(frozen=True)
class Token:
    """A run of word characters or of whitespace, with its character offset."""

    text: str
    is_whitespace: bool
    offset: int

    @property
    def end(self) -> int:
        return self.offset + len(self.text)


class WordIndex:
    """Ordered, lossless token sequence of a document.

    The reading cursor counts words, i.e. non-whitespace tokens: cursor ``n``
    points at the ``n``-th word and ``word_count`` means end of document.
    """

    def __init__(self, text: str):
        self.text = text
        self.tokens: list[Token] = [
            Token(m.group(0), m.group(0).isspace(), m.start()) for m in _TOKEN_RE.finditer(text)
        ]
        # Token position of every word, indexed by cursor.
        self._word_positions: list[int] = [
            i for i, token in enumerate(self.tokens) if not token.is_whitespace
        ]

    def __len__(self) -> int:
        return len(self.tokens)

    @property
    def word_count(self) -> int:
        return len(self._word_positions)

    def word(self, cursor: int) -> Token:
        return self.tokens[self._word_positions[cursor]]

    def words(self, start: int, end: int) -> list[Token]:
        return [self.tokens[i] for i in self._word_positions[start:end]]

    def at_end(self, cursor: int) -> bool:
        return cursor >= self.word_count

    def clamp(self, cursor: int) -> int:
        return max(0, min(cursor, self.word_count))

    def cursor_for_word_count(self, target: int) -> int:
        """Cursor reached after *target* words have been seen.

        The cursor already counts words, so this is *target* itself, limited
        to the document.
        """
        return self.clamp(target)

    def char_span(self, start: int, end: int) -> tuple[int, int] | None:
        """Character range in the raw text covered by words ``start`` to ``end - 1``."""
        start, end = self.clamp(start), self.clamp(end)
        if start >= end:
            return None
        return self.word(start).offset, self.word(end - 1).end

    def progress(self, cursor: int) -> float:
        """Percentage of the document read at *cursor*."""
        if not self.word_count:
            return 0.0
        return self.clamp(cursor) / self.word_count * 100
