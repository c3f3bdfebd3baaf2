# ABOUTME: End-to-end tests for `booklog lookup isbn` and `booklog lookup search`.
# ABOUTME: Replaces the provider factory with fakes so no network traffic happens.

from pathlib import Path

import pytest
from click.testing import CliRunner

from booklog.cli import cli
from booklog.db.catalog import LibraryCatalog
from booklog.db.connection import open_library
from booklog.metadata.http import BooklogHttpClient
from booklog.metadata.provider import ProviderResult
from booklog.metadata.resolver import DEFAULT_TIMEOUTS
from booklog.metadata.types import BookSearchResult, BookSource


class FakeProvider:
    """Provider returning fixed results, or failing with a fixed cause."""

    def __init__(
        self,
        source: BookSource,
        results: list[BookSearchResult] | None = None,
        error: str | None = None,
    ) -> None:
        self._source = source
        self._results = results or []
        self._error = error
        self.calls: list[tuple] = []

    @property
    def name(self) -> str:
        return self._source.value

    @property
    def source(self) -> BookSource:
        return self._source

    def _answer(self) -> ProviderResult:
        if self._error:
            return ProviderResult.failure(self._source, self._error)
        return ProviderResult.success(self._source, self._results)

    def search_by_isbn(self, isbn: str) -> ProviderResult:
        self.calls.append(("isbn", isbn))
        return self._answer()

    def search_by_title_author(self, title=None, author=None, series=None) -> ProviderResult:
        self.calls.append(("search", title, author, series))
        return self._answer()


SCHWARM = BookSearchResult(
    title="Der Schwarm",
    author="Frank Schätzing",
    source=BookSource.GOOGLE_BOOKS,
    isbn="9783462033748",
)
RUMO = BookSearchResult(
    title="Rumo",
    author="Walter Moers",
    source=BookSource.NATIONAL_LIBRARY,
    isbn="9783492045506",
    series="Zamonien",
    series_number="3",
)


@pytest.fixture
def use_providers(monkeypatch: pytest.MonkeyPatch, settings_path: Path):
    """Install the given fake providers in place of the real ones."""

    def _install(*providers: FakeProvider) -> None:
        monkeypatch.setattr(
            "booklog.cli.commands.lookup_cmd.build_providers",
            lambda settings, http_client: list(providers),
        )

    return _install


class TestLookupIsbn:
    """E2e tests for `booklog lookup isbn`."""

    def test_shows_results(self, use_providers) -> None:
        use_providers(FakeProvider(BookSource.GOOGLE_BOOKS, [SCHWARM]))
        result = CliRunner().invoke(cli, ["lookup", "isbn", "978-3-462-03374-8"])

        assert result.exit_code == 0
        assert "Der Schwarm" in result.output
        assert "9783462033748" in result.output
        assert "1 result(s)" in result.output

    def test_isbn_is_cleaned_before_lookup(self, use_providers) -> None:
        provider = FakeProvider(BookSource.GOOGLE_BOOKS, [SCHWARM])
        use_providers(provider)
        CliRunner().invoke(cli, ["lookup", "isbn", "978-3-462-03374-8"])
        assert provider.calls == [("isbn", "9783462033748")]

    def test_http_timeout_bounded_by_provider_deadlines(
        self, use_providers, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Abandoned provider requests give up no later than the longest deadline."""
        timeouts: list[float] = []

        class RecordingClient(BooklogHttpClient):
            def __init__(self, *, timeout: float = 30.0, **kwargs) -> None:
                timeouts.append(timeout)
                super().__init__(timeout=timeout, **kwargs)

        monkeypatch.setattr("booklog.cli.commands.lookup_cmd.BooklogHttpClient", RecordingClient)
        use_providers(FakeProvider(BookSource.GOOGLE_BOOKS, [SCHWARM]))
        result = CliRunner().invoke(cli, ["lookup", "isbn", "9783462033748"])

        assert result.exit_code == 0
        assert timeouts == [max(DEFAULT_TIMEOUTS.values())]

    def test_blank_isbn_is_an_error(self, use_providers) -> None:
        use_providers(FakeProvider(BookSource.GOOGLE_BOOKS))
        result = CliRunner().invoke(cli, ["lookup", "isbn", " - "])
        assert result.exit_code == 1
        assert "ISBN must not be blank" in result.output

    def test_no_results(self, use_providers) -> None:
        use_providers(FakeProvider(BookSource.GOOGLE_BOOKS))
        result = CliRunner().invoke(cli, ["lookup", "isbn", "9780000000002"])
        assert result.exit_code == 0
        assert "No results found" in result.output

    def test_degraded_search_still_shows_results(self, use_providers) -> None:
        """One failing provider is reported next to the others' results."""
        use_providers(
            FakeProvider(BookSource.NATIONAL_LIBRARY, error="HTTP 503"),
            FakeProvider(BookSource.GOOGLE_BOOKS, [SCHWARM]),
        )
        result = CliRunner().invoke(cli, ["lookup", "isbn", "9783462033748"])

        assert result.exit_code == 0
        assert "Search degraded" in result.output
        assert "national_library" in result.output
        assert "Der Schwarm" in result.output

    def test_all_providers_failed(self, use_providers) -> None:
        use_providers(
            FakeProvider(BookSource.NATIONAL_LIBRARY, error="HTTP 503"),
            FakeProvider(BookSource.GOOGLE_BOOKS, error="timed out"),
        )
        result = CliRunner().invoke(cli, ["lookup", "isbn", "9783462033748"])

        assert result.exit_code == 1
        assert "every metadata provider failed" in result.output
        assert "timed out" in result.output

    def test_add_stores_best_match(self, use_providers, tmp_path: Path) -> None:
        """--add catalogs the first result."""
        db_path = tmp_path / "library.db"
        use_providers(FakeProvider(BookSource.GOOGLE_BOOKS, [SCHWARM]))
        result = CliRunner().invoke(
            cli, ["lookup", "isbn", "9783462033748", "--add", "--db", str(db_path)]
        )

        assert result.exit_code == 0
        assert "Added" in result.output
        conn = open_library(db_path)
        try:
            stored = LibraryCatalog(conn).get_by_isbn("9783462033748")
        finally:
            conn.close()
        assert stored is not None
        assert stored.title == "Der Schwarm"


class TestLookupSearch:
    """E2e tests for `booklog lookup search`."""

    def test_search_passes_terms(self, use_providers) -> None:
        provider = FakeProvider(BookSource.NATIONAL_LIBRARY, [RUMO])
        use_providers(provider)
        result = CliRunner().invoke(
            cli, ["lookup", "search", "--title", "Rumo", "--author", "Moers"]
        )

        assert result.exit_code == 0
        assert provider.calls == [("search", "Rumo", "Moers", None)]
        assert "Zamonien #3" in result.output

    def test_blank_search_has_no_results(self, use_providers) -> None:
        """A query without terms is answered without asking any provider."""
        provider = FakeProvider(BookSource.NATIONAL_LIBRARY, [RUMO])
        use_providers(provider)
        result = CliRunner().invoke(cli, ["lookup", "search", "--title", "  "])

        assert result.exit_code == 0
        assert "No results found" in result.output
        assert provider.calls == []

    def test_results_ranked_by_provider_priority(self, use_providers) -> None:
        use_providers(
            FakeProvider(BookSource.GOOGLE_BOOKS, [SCHWARM]),
            FakeProvider(BookSource.NATIONAL_LIBRARY, [RUMO]),
        )
        result = CliRunner().invoke(cli, ["lookup", "search", "--author", "e"])

        assert result.output.index("Rumo") < result.output.index("Der Schwarm")
