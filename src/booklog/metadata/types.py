# ABOUTME: Core metadata data structures shared by every provider adapter.
# ABOUTME: BookSearchResult is the common shape the resolver merges and ranks.

import enum
import unicodedata
from dataclasses import dataclass, field

AUTHOR_SEPARATOR = "; "
UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Author"


class BookSource(enum.Enum):
    """Bibliographic data sources, declared in provider-priority order."""

    NATIONAL_LIBRARY = "national_library"
    GOOGLE_BOOKS = "google_books"
    ISBN_DB = "isbndb"
    OPEN_LIBRARY = "open_library"

    @property
    def priority(self) -> int:
        """Lower is preferred when breaking ties between providers."""
        return list(BookSource).index(self)


def _nfc(value: str) -> str:
    return unicodedata.normalize("NFC", value)


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dataclass
class BookSearchResult:
    """One candidate book record produced by a provider adapter.

    Construction enforces the shape callers rely on: title and author are
    never empty, both are NFC-composed, the primary ISBN is always part of
    all_isbns, and cover URLs use https.
    """

    title: str
    author: str
    source: BookSource
    description: str | None = None
    publisher: str | None = None
    publish_date: str | None = None
    language: str | None = None
    original_language: str | None = None
    series: str | None = None
    series_number: str | None = None
    isbn: str | None = None
    all_isbns: list[str] = field(default_factory=list)
    cover_url: str | None = None

    def __post_init__(self) -> None:
        title = (self.title or "").strip()
        author = (self.author or "").strip()
        self.title = _nfc(title) if title else UNKNOWN_TITLE
        self.author = _nfc(author) if author else UNKNOWN_AUTHOR

        self.description = _blank_to_none(self.description)
        self.publisher = _blank_to_none(self.publisher)
        self.publish_date = _blank_to_none(self.publish_date)
        self.language = _blank_to_none(self.language)
        self.original_language = _blank_to_none(self.original_language)
        self.series = _blank_to_none(self.series)
        self.series_number = _blank_to_none(self.series_number)
        self.isbn = _blank_to_none(self.isbn)

        isbns: list[str] = []
        for value in self.all_isbns:
            value = (value or "").strip()
            if value and value not in isbns:
                isbns.append(value)
        if self.isbn and self.isbn not in isbns:
            isbns.insert(0, self.isbn)
        self.all_isbns = isbns

        self.cover_url = secure_url(_blank_to_none(self.cover_url))

    @property
    def authors(self) -> list[str]:
        """Individual author names split on the stable separator."""
        return [name for name in self.author.split(AUTHOR_SEPARATOR) if name]

    def populated_field_count(self) -> int:
        """Number of optional fields carrying a value."""
        optional = (
            self.description,
            self.publisher,
            self.publish_date,
            self.language,
            self.original_language,
            self.series,
            self.series_number,
            self.isbn,
            self.cover_url,
        )
        count = sum(1 for value in optional if value)
        if self.title != UNKNOWN_TITLE:
            count += 1
        if self.author != UNKNOWN_AUTHOR:
            count += 1
        return count


def secure_url(url: str | None) -> str | None:
    """Rewrite http:// URLs to https://, leaving others untouched."""
    if url and url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


def join_authors(names: list[str]) -> str:
    """Join author names with the stable separator, skipping blanks."""
    return AUTHOR_SEPARATOR.join(name.strip() for name in names if name and name.strip())
