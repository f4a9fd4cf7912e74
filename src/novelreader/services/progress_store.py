"""Reading progress persistence keyed by document source name."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from sqlalchemy import Engine, select

from novelreader.database import ReadingProgress, make_engine, make_sessionmaker
from novelreader.models import ProgressRecord

logger = logging.getLogger(__name__)


class ProgressStore(ABC):
    """Key/value store of the last reading position of each document.

    Last write wins; saving replaces any earlier record of the same source.
    """

    @abstractmethod
    def save(self, source_name: str, record: ProgressRecord) -> None:
        """Persist *record* under *source_name*."""

    @abstractmethod
    def load(self, source_name: str) -> ProgressRecord | None:
        """Return the record saved for *source_name*, if any."""

    @abstractmethod
    def latest(self) -> ProgressRecord | None:
        """Return the most recently saved record across all documents."""


class InMemoryProgressStore(ProgressStore):
    """Process-local store, mainly for tests and pasted text."""

    def __init__(self) -> None:
        self._records: dict[str, ProgressRecord] = {}
        self._last_saved: str | None = None

    def save(self, source_name: str, record: ProgressRecord) -> None:
        self._records[source_name] = record.model_copy(update={"source_name": source_name})
        self._last_saved = source_name

    def load(self, source_name: str) -> ProgressRecord | None:
        record = self._records.get(source_name)
        return record.model_copy() if record else None

    def latest(self) -> ProgressRecord | None:
        return self.load(self._last_saved) if self._last_saved else None


class SqlProgressStore(ProgressStore):
    """Store backed by the ``reading_progress`` table."""

    def __init__(self, engine: Engine | None = None, database_url: str | None = None):
        if engine is None:
            if database_url is None:
                raise ValueError("Pass an engine or a database_url")
            engine = make_engine(database_url)
        self.engine = engine
        self._session_factory = make_sessionmaker(engine)

    def save(self, source_name: str, record: ProgressRecord) -> None:
        with self._session_factory() as session:
            session.merge(
                ReadingProgress(
                    source_name=source_name,
                    chapter_index=record.chapter_index,
                    page_index=record.page_index,
                    word_cursor=record.word_cursor,
                    saved_at=record.timestamp,
                )
            )
            session.commit()
        logger.debug(
            f"Saved progress for '{source_name}': chapter {record.chapter_index}, "
            f"page {record.page_index}, word {record.word_cursor}"
        )

    def load(self, source_name: str) -> ProgressRecord | None:
        with self._session_factory() as session:
            row = session.get(ReadingProgress, source_name)
            return self._to_record(row) if row else None

    def latest(self) -> ProgressRecord | None:
        with self._session_factory() as session:
            row = session.execute(
                select(ReadingProgress).order_by(ReadingProgress.saved_at.desc()).limit(1)
            ).scalar_one_or_none()
            return self._to_record(row) if row else None

    @staticmethod
    def _to_record(row: ReadingProgress) -> ProgressRecord:
        return ProgressRecord(
            source_name=row.source_name,
            chapter_index=row.chapter_index,
            page_index=row.page_index,
            word_cursor=row.word_cursor,
            timestamp=row.saved_at,
        )
