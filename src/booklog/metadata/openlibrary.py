# ABOUTME: Open Library metadata provider implementation.
# ABOUTME: Looks up openlibrary.org by ISBN through the books API or searches by title/author.

import logging

from booklog.metadata.filters import drop_audiobooks
from booklog.metadata.http import HttpClient, MetadataFetchError
from booklog.metadata.openlibrary_parser import parse_books_response, parse_search_results
from booklog.metadata.provider import ProviderResult, clean_terms
from booklog.metadata.text import clean_isbn
from booklog.metadata.types import BookSource

logger = logging.getLogger(__name__)

_OL_BASE = "https://openlibrary.org"
_SEARCH_LIMIT = 10


class OpenLibraryProvider:
    """Metadata provider backed by the Open Library API.

    Supports ISBN-based lookup (most precise) and title/author search (broader).
    Uses dependency-injected HttpClient for testability.
    """

    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    @property
    def name(self) -> str:
        return "open_library"

    @property
    def source(self) -> BookSource:
        return BookSource.OPEN_LIBRARY

    def search_by_isbn(self, isbn: str) -> ProviderResult:
        """Look up a book by ISBN via the ``api/books`` endpoint.

        Returns an empty success when Open Library has no record.
        """
        clean = clean_isbn(isbn)
        if not clean:
            return ProviderResult.success(self.source)

        params = {"bibkeys": f"ISBN:{clean}", "format": "json", "jscmd": "data"}
        try:
            data = self._http.get(f"{_OL_BASE}/api/books", params=params)
            results = parse_books_response(data, clean)
        except MetadataFetchError as exc:
            logger.warning("ISBN lookup failed for %s: %s", isbn, exc)
            return ProviderResult.failure(self.source, f"Open Library request failed: {exc}")
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed Open Library response for %s: %s", isbn, exc)
            return ProviderResult.failure(self.source, f"Malformed Open Library response: {exc}")
        return ProviderResult.success(self.source, drop_audiobooks(results))

    def search_by_title_author(
        self,
        title: str | None = None,
        author: str | None = None,
        series: str | None = None,
    ) -> ProviderResult:
        """Search Open Library by title, author, and series.

        A series with no title is searched as the title; alongside a title
        it is added to the free-text query.
        """
        title, author, series = clean_terms(title, author, series)
        if not (title or author or series):
            return ProviderResult.success(self.source)

        params: dict[str, str] = {"limit": str(_SEARCH_LIMIT)}
        if title:
            params["title"] = title
            if series:
                params["q"] = series
        elif series:
            params["title"] = series
        if author:
            params["author"] = author

        try:
            data = self._http.get(f"{_OL_BASE}/search.json", params=params)
            results = parse_search_results(data)
        except MetadataFetchError as exc:
            logger.warning("Search failed for title=%s author=%s: %s", title, author, exc)
            return ProviderResult.failure(self.source, f"Open Library request failed: {exc}")
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed Open Library search response: %s", exc)
            return ProviderResult.failure(self.source, f"Malformed Open Library response: {exc}")
        return ProviderResult.success(self.source, drop_audiobooks(results))
