"""Plain-text extraction for the supported document formats."""

from __future__ import annotations

import logging
import re
import zipfile
from pathlib import Path

import docx
import fitz  # PyMuPDF
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

HTML_MEMBER_RE = re.compile(r"\.(html|xhtml|htm)$", re.IGNORECASE)


class ExtractionError(Exception):
    """The file could not be turned into readable text."""


def extract_text(path: str | Path) -> str:
    """Return the text content of *path*, dispatching on its extension."""
    path = Path(path)
    extension = path.suffix.lower().lstrip(".")
    logger.info(f"Processing {extension.upper() or 'untyped'} file {path.name}")

    extractor = _EXTRACTORS.get(extension, _extract_plain)
    try:
        text = extractor(path)
    except ExtractionError:
        raise
    except Exception as exc:
        logger.error(f"Failed to read {path.name}: {exc}")
        raise ExtractionError(
            f"Could not read {extension.upper() or 'the file'}: {exc}. Try converting to TXT format."
        ) from exc

    if not text or not text.strip():
        raise ExtractionError(f"No text could be extracted from {path.name}")
    return text


def _extract_plain(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ExtractionError(f"{path.name} is not UTF-8 text") from exc


def _extract_pdf(path: Path) -> str:
    with fitz.open(path) as doc:
        pages = []
        for page_num in range(doc.page_count):
            logger.debug(f"Processing PDF page {page_num + 1} of {doc.page_count}")
            pages.append(doc[page_num].get_text("text"))
    return "\n\n".join(pages)


def _extract_epub(path: Path) -> str:
    if not zipfile.is_zipfile(path):
        raise ExtractionError(f"{path.name} is not an EPUB archive")

    with zipfile.ZipFile(path) as archive:
        members = sorted(
            info.filename
            for info in archive.infolist()
            if not info.is_dir() and HTML_MEMBER_RE.search(info.filename)
        )
        texts = [_html_to_text(archive.read(name).decode("utf-8", errors="replace")) for name in members]

    text = "\n\n".join(t for t in texts if t)
    if not text.strip():
        raise ExtractionError(f"No text found in EPUB {path.name}")
    return text


def _html_to_text(markup: str) -> str:
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    text = soup.get_text(" ")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n\s*\n", "\n\n", text)
    return text.strip()


def _extract_docx(path: Path) -> str:
    document = docx.Document(str(path))
    return "\n".join(paragraph.text for paragraph in document.paragraphs if paragraph.text)


def _extract_rtf(path: Path) -> str:
    text = path.read_text(encoding="utf-8-sig", errors="replace")
    text = re.sub(r"^{\\rtf.*?\\viewkind\d+", "", text, flags=re.DOTALL)
    text = re.sub(r"\\[a-z]+-?\d*\s?", " ", text)
    text = re.sub(r"[{}]", "", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


_EXTRACTORS = {
    "txt": _extract_plain,
    "text": _extract_plain,
    "pdf": _extract_pdf,
    "epub": _extract_epub,
    "docx": _extract_docx,
    "rtf": _extract_rtf,
}
