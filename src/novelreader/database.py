import logging
from datetime import datetime

from sqlalchemy import DateTime, Engine, Index, Integer, String, create_engine
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, sessionmaker

Base = declarative_base()


class ReadingProgress(Base):
    """Last saved reading position of a document, one row per source name."""

    __tablename__ = "reading_progress"

    source_name: Mapped[str] = mapped_column(String, primary_key=True)

    # Position
    chapter_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    page_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    word_cursor: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Metadata
    saved_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (Index("idx_progress_saved_at", "saved_at"),)


def make_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for *database_url* and make sure the tables exist."""
    engine = create_engine(database_url, echo=echo, future=True)
    Base.metadata.create_all(engine)
    logging.getLogger(__name__).info(f"Progress database ready at {database_url}")
    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(engine, expire_on_commit=False)
