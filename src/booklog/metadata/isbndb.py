# ABOUTME: ISBNdb metadata provider implementation.
# ABOUTME: Requires an API key; an unconfigured provider returns no results without calling out.

import logging
from typing import Any

from booklog.metadata.filters import drop_audiobooks
from booklog.metadata.http import HttpClient, MetadataFetchError
from booklog.metadata.provider import ProviderResult, clean_terms
from booklog.metadata.series import extract_series
from booklog.metadata.text import clean_isbn
from booklog.metadata.types import BookSearchResult, BookSource, join_authors

logger = logging.getLogger(__name__)

_ISBNDB_BASE = "https://api2.isbndb.com"
_PAGE_SIZE = 10


def parse_book(book: dict[str, Any]) -> BookSearchResult:
    """Parse one ISBNdb book object into a BookSearchResult."""
    title = book.get("title") or book.get("title_long") or ""
    isbn13 = book.get("isbn13")
    isbn10 = book.get("isbn") or book.get("isbn10")

    series = series_number = None
    recovered = extract_series(title)
    if recovered is not None:
        series, series_number = recovered.series, recovered.number

    return BookSearchResult(
        title=title,
        author=join_authors(book.get("authors") or []),
        source=BookSource.ISBN_DB,
        description=book.get("synopsis") or book.get("overview"),
        publisher=book.get("publisher"),
        publish_date=book.get("date_published"),
        language=book.get("language"),
        series=series,
        series_number=series_number,
        isbn=isbn13 or isbn10,
        all_isbns=[value for value in (isbn13, isbn10) if value],
        cover_url=book.get("image"),
    )


class IsbnDbProvider:
    """Metadata provider backed by the ISBNdb v2 API."""

    def __init__(self, http_client: HttpClient, api_key: str = "") -> None:
        self._http = http_client
        self._api_key = api_key.strip()

    @property
    def name(self) -> str:
        return "isbndb"

    @property
    def source(self) -> BookSource:
        return BookSource.ISBN_DB

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def search_by_isbn(self, isbn: str) -> ProviderResult:
        """Fetch a single book by ISBN.

        The endpoint wraps the book as ``{"book": {...}}``; a bare book
        object is accepted too.
        """
        clean = clean_isbn(isbn)
        if not self.configured:
            logger.debug("ISBNdb skipped: no API key configured")
            return ProviderResult.success(self.source)
        if not clean:
            return ProviderResult.success(self.source)

        url = f"{_ISBNDB_BASE}/book/{clean}"
        try:
            data = self._http.get(url, headers=self._headers())
            book = data.get("book", data)
            results = [parse_book(book)] if book else []
        except MetadataFetchError as exc:
            logger.warning("ISBNdb lookup failed for %s: %s", isbn, exc)
            return ProviderResult.failure(self.source, f"ISBNdb request failed: {exc}")
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed ISBNdb response for %s: %s", isbn, exc)
            return ProviderResult.failure(self.source, f"Malformed ISBNdb response: {exc}")
        return ProviderResult.success(self.source, drop_audiobooks(results))

    def search_by_title_author(
        self,
        title: str | None = None,
        author: str | None = None,
        series: str | None = None,
    ) -> ProviderResult:
        """Search books by title and author; a lone series is searched as a title."""
        title, author, series = clean_terms(title, author, series)
        if not (title or author or series):
            return ProviderResult.success(self.source)
        if not self.configured:
            logger.debug("ISBNdb skipped: no API key configured")
            return ProviderResult.success(self.source)

        params = {"page": "1", "pageSize": str(_PAGE_SIZE)}
        query_title = title or series
        if query_title:
            params["title"] = query_title
        if author:
            params["author"] = author

        try:
            data = self._http.get(f"{_ISBNDB_BASE}/books", params=params, headers=self._headers())
            results = [parse_book(book) for book in data.get("books") or []]
        except MetadataFetchError as exc:
            logger.warning("ISBNdb search failed for %s: %s", params, exc)
            return ProviderResult.failure(self.source, f"ISBNdb request failed: {exc}")
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed ISBNdb search response: %s", exc)
            return ProviderResult.failure(self.source, f"Malformed ISBNdb response: {exc}")
        return ProviderResult.success(self.source, drop_audiobooks(results))

    def _headers(self) -> dict[str, str]:
        return {"Authorization": self._api_key}
