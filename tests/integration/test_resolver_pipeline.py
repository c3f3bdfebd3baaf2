# ABOUTME: Integration tests for the lookup pipeline: settings -> providers -> resolver -> catalog.
# ABOUTME: Real provider adapters run against a FakeHttpClient routing canned responses by URL.

from pathlib import Path
from typing import Any

from booklog.db.catalog import LibraryCatalog
from booklog.metadata.http import MetadataFetchError
from booklog.metadata.resolver import MetadataResolver, build_providers
from booklog.settings import Settings
from tests.fixtures.dnb_responses import (
    SCHWARM_ONLINE,
    SCHWARM_PRINT,
    SCHWARM_SUMMARY,
    sru_response,
)
from tests.fixtures.google_books_responses import EMPTY_RESPONSE, ISBN_RESPONSE
from tests.fixtures.openlibrary_responses import BOOKS_RESPONSE_EMPTY


class FakeHttpClient:
    """Fake HTTP client returning canned responses keyed by URL substrings."""

    def __init__(self, responses: dict[str, Any]) -> None:
        self._responses = responses
        self.urls: list[str] = []

    def _lookup(self, url: str) -> Any:
        self.urls.append(url)
        for pattern, response in self._responses.items():
            if pattern in url:
                if isinstance(response, Exception):
                    raise response
                return response
        raise MetadataFetchError(f"HTTP 404 for {url}")

    def get(self, url: str, params=None, headers=None) -> dict[str, Any]:
        return self._lookup(url)

    def get_text(self, url: str, params=None, headers=None) -> str:
        return self._lookup(url)


def _client(google: Any = ISBN_RESPONSE) -> FakeHttpClient:
    return FakeHttpClient(
        {
            "services.dnb.de": sru_response(SCHWARM_PRINT, SCHWARM_ONLINE),
            "googleapis.com": google,
            "openlibrary.org": BOOKS_RESPONSE_EMPTY,
        }
    )


class TestIsbnPipeline:
    """ISBN lookups across every enabled provider."""

    def test_duplicates_merge_into_one_result(self) -> None:
        """The national library and Google Books describe the same book once."""
        resolver = MetadataResolver(build_providers(Settings(), _client()))
        report = resolver.search_by_isbn("978-3-462-03374-8")

        assert report.failures == {}
        assert len(report.results) == 1
        merged = report.results[0]
        assert merged.isbn == "9783462033748"
        assert "3462033743" in merged.all_isbns
        assert merged.description == SCHWARM_SUMMARY
        assert merged.cover_url is not None
        assert merged.cover_url.startswith("https://")

    def test_isbndb_without_key_sends_no_request(self) -> None:
        client = _client()
        MetadataResolver(build_providers(Settings(), client)).search_by_isbn("9783462033748")
        assert not any("isbndb" in url for url in client.urls)

    def test_failed_provider_degrades_report(self) -> None:
        """A failing provider is reported while the others still answer."""
        client = _client(google=MetadataFetchError("HTTP 503"))
        report = MetadataResolver(build_providers(Settings(), client)).search_by_isbn(
            "9783462033748"
        )

        assert report.degraded
        assert "google_books" in report.failures
        assert [r.isbn for r in report.results] == ["9783462033748"]

    def test_disabled_providers_are_not_queried(self) -> None:
        settings = Settings(national_library_enabled=False, open_library_enabled=False)
        client = _client()
        report = MetadataResolver(build_providers(settings, client)).search_by_isbn(
            "9783462033748"
        )

        assert report.queried == ["google_books", "isbndb"]
        assert all("googleapis.com" in url for url in client.urls)

    def test_no_hits_anywhere(self) -> None:
        client = FakeHttpClient(
            {
                "services.dnb.de": sru_response(),
                "googleapis.com": EMPTY_RESPONSE,
                "openlibrary.org": BOOKS_RESPONSE_EMPTY,
            }
        )
        report = MetadataResolver(build_providers(Settings(), client)).search_by_isbn(
            "9780000000002"
        )
        assert report.is_empty
        assert not report.all_failed


class TestCatalogResolvedBook:
    """A resolved candidate can be stored and found again."""

    def test_add_and_find_by_isbn(self, catalog: LibraryCatalog) -> None:
        report = MetadataResolver(build_providers(Settings(), _client())).search_by_isbn(
            "9783462033748"
        )
        book_id = catalog.add_search_result(report.results[0])

        stored = catalog.get_by_isbn("978-3-462-03374-8")
        assert stored is not None
        assert stored.id == book_id
        assert stored.description == SCHWARM_SUMMARY
        assert stored.is_owned is True

    def test_database_survives_reopen(self, tmp_path: Path) -> None:
        from booklog.db.connection import open_library

        db_path = tmp_path / "pipeline.db"
        report = MetadataResolver(build_providers(Settings(), _client())).search_by_isbn(
            "9783462033748"
        )
        conn = open_library(db_path)
        LibraryCatalog(conn).add_search_result(report.results[0])
        conn.close()

        conn = open_library(db_path)
        try:
            assert LibraryCatalog(conn).count() == 1
        finally:
            conn.close()
