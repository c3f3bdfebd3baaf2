# ABOUTME: EPUB metadata extraction using ebooklib.
# ABOUTME: Malformed or unreadable files surface as EpubReadError.

import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

from ebooklib import epub

from booklog.formats.epub_patch import EpubPatchError, locate_opf, read_opf
from booklog.formats.opf import series_info
from booklog.metadata.text import clean_isbn
from booklog.metadata.types import join_authors

logger = logging.getLogger(__name__)


class EpubReadError(Exception):
    """Raised when an EPUB file cannot be read or parsed."""


@dataclass
class EpubMetadata:
    """Metadata read from an EPUB's package document."""

    title: str
    authors: list[str] = field(default_factory=list)
    language: str | None = None
    publisher: str | None = None
    isbn: str | None = None
    description: str | None = None
    series: str | None = None
    series_index: str | None = None
    source_path: Path | None = None

    @property
    def author(self) -> str:
        return join_authors(self.authors)


def _get_metadata_value(book: epub.EpubBook, namespace: str, name: str) -> str | None:
    """Extract a single metadata value from an EpubBook, or None if missing."""
    values = book.get_metadata(namespace, name)
    if not values:
        return None
    # Metadata entries are tuples of (value, attributes)
    value = values[0][0]
    return str(value).strip() if value else None


def _get_authors(book: epub.EpubBook) -> list[str]:
    creators = book.get_metadata("DC", "creator")
    if not creators:
        return []
    return [str(entry[0]).strip() for entry in creators if entry[0]]


def _detect_isbn(book: epub.EpubBook) -> str | None:
    """Find an ISBN among the dc:identifier entries."""
    entries = [
        (str(value).strip(), attrs)
        for value, attrs in book.get_metadata("DC", "identifier")
        if value
    ]
    for value, attrs in entries:
        scheme = next((v for k, v in attrs.items() if k.endswith("scheme")), "").lower()
        if scheme.startswith("isbn") or value.lower().startswith("urn:isbn:"):
            return clean_isbn(value.split(":")[-1])
    for value, _ in entries:
        cleaned = clean_isbn(value)
        if len(cleaned) in (10, 13) and cleaned.upper().rstrip("X").isdigit():
            return cleaned
    return None


def _read_series(path: Path) -> tuple[str | None, str | None]:
    try:
        with zipfile.ZipFile(path) as archive:
            return series_info(read_opf(archive, locate_opf(archive)))
    except (EpubPatchError, zipfile.BadZipFile) as exc:
        logger.debug("No series information in %s: %s", path, exc)
        return None, None


def read_epub_metadata(path: Path) -> EpubMetadata:
    """Extract metadata from an EPUB file.

    Args:
        path: Path to the EPUB file.

    Returns:
        EpubMetadata populated with extracted fields.

    Raises:
        EpubReadError: If the file cannot be read or parsed.
    """
    if not path.exists():
        raise EpubReadError(f"File not found: {path}")

    try:
        book = epub.read_epub(str(path), options={"ignore_ncx": True})
    except Exception as exc:
        raise EpubReadError(f"Failed to read EPUB: {path}: {exc}") from exc

    title = _get_metadata_value(book, "DC", "title") or path.stem
    series, series_index = _read_series(path)

    return EpubMetadata(
        title=title,
        authors=_get_authors(book),
        language=_get_metadata_value(book, "DC", "language"),
        publisher=_get_metadata_value(book, "DC", "publisher"),
        isbn=_detect_isbn(book),
        description=_get_metadata_value(book, "DC", "description"),
        series=series,
        series_index=series_index,
        source_path=path,
    )
