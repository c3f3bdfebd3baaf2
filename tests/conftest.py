# ABOUTME: Shared pytest fixtures for booklog tests.
# ABOUTME: Provides sample EPUB files (ebooklib-built, hand-assembled, and corrupt) and a temp catalog.

import zipfile
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from ebooklib import epub

from booklog.db.catalog import LibraryCatalog
from booklog.db.connection import open_library
from tests.fixtures.opf_documents import CONTAINER_XML, EPUB3_MIXED_OPF

EpubFactory = Callable[..., Path]


def write_epub_zip(
    path: Path,
    opf: str | bytes | None,
    container: str | None = CONTAINER_XML,
    opf_path: str = "OEBPS/content.opf",
) -> Path:
    """Assemble an EPUB container by hand from raw package text."""
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr(
            zipfile.ZipInfo("mimetype"), "application/epub+zip", compress_type=zipfile.ZIP_STORED
        )
        if container is not None:
            archive.writestr("META-INF/container.xml", container, compress_type=zipfile.ZIP_DEFLATED)
        if opf is not None:
            archive.writestr(opf_path, opf, compress_type=zipfile.ZIP_DEFLATED)
        archive.writestr(
            "OEBPS/chap01.xhtml",
            "<html><body><p>Kapitel 1</p></body></html>",
            compress_type=zipfile.ZIP_DEFLATED,
        )
    return path


@pytest.fixture
def make_epub(tmp_path: Path) -> EpubFactory:
    """Factory for hand-assembled EPUBs: make_epub(opf, name=..., container=...)."""

    def _make(
        opf: str | bytes | None = EPUB3_MIXED_OPF,
        name: str = "book.epub",
        container: str | None = CONTAINER_XML,
        opf_path: str = "OEBPS/content.opf",
    ) -> Path:
        return write_epub_zip(tmp_path / name, opf, container=container, opf_path=opf_path)

    return _make


def _build_book(title: str, language: str, author: str | None) -> epub.EpubBook:
    book = epub.EpubBook()
    book.set_identifier("urn:uuid:5a9e1c3e-0c51-4f0e-9a43-2f7f4b0b6e11")
    book.set_title(title)
    book.set_language(language)
    if author:
        book.add_author(author)

    # Add a minimal chapter so the EPUB is structurally valid
    chapter = epub.EpubHtml(title="Kapitel 1", file_name="chap01.xhtml", lang=language)
    chapter.content = b"<html><body><h1>Kapitel 1</h1><p>Inhalt.</p></body></html>"
    book.add_item(chapter)

    book.toc = [epub.Link("chap01.xhtml", "Kapitel 1", "chap01")]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", chapter]
    return book


@pytest.fixture
def sample_epub(tmp_path: Path) -> Path:
    """A valid EPUB with German metadata, an ISBN, and a calibre series."""
    book = _build_book("Die letzte Fähre", "de", "Anna Berger")
    book.add_metadata("DC", "publisher", "Hafenverlag")
    book.add_metadata("DC", "description", "Ein Roman über die Insel.")
    book.add_metadata("DC", "identifier", "978-3-16-148410-0", {"id": "isbn"})
    book.add_metadata(None, "meta", "", {"name": "calibre:series", "content": "Inselchronik"})
    book.add_metadata(None, "meta", "", {"name": "calibre:series_index", "content": "2"})

    filepath = tmp_path / "letzte_faehre.epub"
    epub.write_epub(str(filepath), book)
    return filepath


@pytest.fixture
def english_epub(tmp_path: Path) -> Path:
    """A valid EPUB whose English title starts with an article."""
    book = _build_book("The Swarm", "en", "Frank Schätzing")
    filepath = tmp_path / "swarm.epub"
    epub.write_epub(str(filepath), book)
    return filepath


@pytest.fixture
def minimal_epub(tmp_path: Path) -> Path:
    """An EPUB with minimal metadata (title and language only)."""
    book = _build_book("Untitled Book", "en", None)
    filepath = tmp_path / "minimal.epub"
    epub.write_epub(str(filepath), book)
    return filepath


@pytest.fixture
def corrupt_epub(tmp_path: Path) -> Path:
    """A file that is not a valid EPUB."""
    filepath = tmp_path / "corrupt.epub"
    filepath.write_text("this is not a valid epub file")
    return filepath


@pytest.fixture
def catalog(tmp_path: Path) -> Iterator[LibraryCatalog]:
    """A LibraryCatalog backed by a temporary database."""
    conn = open_library(tmp_path / "test.db")
    yield LibraryCatalog(conn)
    conn.close()


@pytest.fixture
def settings_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A throwaway settings file location, also exported via the environment."""
    path = tmp_path / "settings.json"
    monkeypatch.setenv("BOOKLOG_SETTINGS", str(path))
    monkeypatch.delenv("BOOKLOG_ISBNDB_API_KEY", raising=False)
    monkeypatch.delenv("BOOKLOG_GOOGLE_BOOKS_API_KEY", raising=False)
    return path
