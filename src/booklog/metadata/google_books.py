# ABOUTME: Google Books metadata provider implementation.
# ABOUTME: Queries the volumes endpoint by ISBN or by field-qualified title/author/series terms.

import logging
from typing import Any

from booklog.metadata.filters import drop_audiobooks
from booklog.metadata.google_books_parser import parse_volumes
from booklog.metadata.http import HttpClient, MetadataFetchError
from booklog.metadata.provider import ProviderResult, clean_terms
from booklog.metadata.text import clean_isbn
from booklog.metadata.types import BookSource

logger = logging.getLogger(__name__)

_VOLUMES_URL = "https://www.googleapis.com/books/v1/volumes"
_ISBN_MAX_RESULTS = 10
_TITLE_MAX_RESULTS = 10
_SERIES_MAX_RESULTS = 40


class GoogleBooksProvider:
    """Metadata provider backed by the Google Books volumes API.

    An API key is optional; without one Google applies anonymous quotas.
    Title searches are restricted to ``language`` when one is configured.
    """

    def __init__(
        self,
        http_client: HttpClient,
        api_key: str = "",
        language: str | None = "de",
    ) -> None:
        self._http = http_client
        self._api_key = api_key.strip()
        self._language = language

    @property
    def name(self) -> str:
        return "google_books"

    @property
    def source(self) -> BookSource:
        return BookSource.GOOGLE_BOOKS

    def search_by_isbn(self, isbn: str) -> ProviderResult:
        """Look up a book by ISBN with an ``isbn:`` qualified query."""
        clean = clean_isbn(isbn)
        if not clean:
            return ProviderResult.success(self.source)
        return self._query({"q": f"isbn:{clean}", "maxResults": str(_ISBN_MAX_RESULTS)})

    def search_by_title_author(
        self,
        title: str | None = None,
        author: str | None = None,
        series: str | None = None,
    ) -> ProviderResult:
        """Search by title, author, and series terms.

        The series is matched against the title field since Google Books has
        no series qualifier. Series searches request more results.
        """
        title, author, series = clean_terms(title, author, series)
        terms: list[str] = []
        if title:
            terms.append(f"intitle:{title}")
        if author:
            terms.append(f"inauthor:{author}")
        if series:
            terms.append(f"intitle:{series}")
        if not terms:
            return ProviderResult.success(self.source)

        params = {
            "q": " ".join(terms),
            "maxResults": str(_SERIES_MAX_RESULTS if series else _TITLE_MAX_RESULTS),
        }
        if self._language:
            params["langRestrict"] = self._language
        return self._query(params)

    def _query(self, params: dict[str, str]) -> ProviderResult:
        if self._api_key:
            params["key"] = self._api_key
        try:
            data: Any = self._http.get(_VOLUMES_URL, params=params)
            results = parse_volumes(data)
        except MetadataFetchError as exc:
            logger.warning("Google Books query failed for %s: %s", params["q"], exc)
            return ProviderResult.failure(self.source, f"Google Books request failed: {exc}")
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed Google Books response for %s: %s", params["q"], exc)
            return ProviderResult.failure(self.source, f"Malformed Google Books response: {exc}")

        kept = drop_audiobooks(results)
        if len(kept) != len(results):
            logger.debug("Dropped %d Google Books audiobook entries", len(results) - len(kept))
        return ProviderResult.success(self.source, kept)
