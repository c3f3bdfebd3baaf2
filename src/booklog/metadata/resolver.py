# ABOUTME: Fans a single query out to every enabled provider and merges the answers.
# ABOUTME: Per-provider failures and timeouts are isolated; output order is deterministic.

import logging
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any

from booklog.metadata.dedupe import deduplicate
from booklog.metadata.dnb import DnbProvider
from booklog.metadata.google_books import GoogleBooksProvider
from booklog.metadata.http import HttpClient
from booklog.metadata.isbndb import IsbnDbProvider
from booklog.metadata.openlibrary import OpenLibraryProvider
from booklog.metadata.provider import (
    MetadataProvider,
    ProviderResult,
    TitleSearchProvider,
    clean_terms,
)
from booklog.metadata.text import clean_isbn
from booklog.metadata.types import BookSearchResult, BookSource
from booklog.settings import Settings

logger = logging.getLogger(__name__)

# Seconds each provider may take before its answer is abandoned.
DEFAULT_TIMEOUTS: dict[BookSource, float] = {
    BookSource.NATIONAL_LIBRARY: 15.0,
    BookSource.GOOGLE_BOOKS: 20.0,
    BookSource.ISBN_DB: 10.0,
    BookSource.OPEN_LIBRARY: 10.0,
}


@dataclass
class SearchReport:
    """Merged results of one resolver call plus the providers that failed.

    ``failures`` maps provider name to a human-readable cause.
    """

    results: list[BookSearchResult] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    queried: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.results

    @property
    def all_failed(self) -> bool:
        return bool(self.queried) and len(self.failures) == len(self.queried)

    @property
    def degraded(self) -> bool:
        return bool(self.failures) and not self.all_failed


class MetadataResolver:
    """Query several providers concurrently and return one ranked list.

    Holds no state between calls, so one resolver may serve concurrent
    searches. Providers are kept in priority order; results are assembled
    in that order regardless of completion order.
    """

    def __init__(
        self,
        providers: list[MetadataProvider],
        timeouts: dict[BookSource, float] | None = None,
    ) -> None:
        self._providers = sorted(providers, key=lambda p: p.source.priority)
        self._timeouts = {**DEFAULT_TIMEOUTS, **(timeouts or {})}

    @property
    def providers(self) -> list[MetadataProvider]:
        return list(self._providers)

    def search_by_isbn(self, isbn: str) -> SearchReport:
        """Look up an ISBN across every provider.

        Raises:
            ValueError: If the ISBN is blank after stripping separators.
        """
        clean = clean_isbn(isbn)
        if not clean:
            raise ValueError("ISBN must not be blank")
        return self._fan_out(self._providers, lambda provider: provider.search_by_isbn(clean))

    def search_by_title_author(
        self,
        title: str | None = None,
        author: str | None = None,
        series: str | None = None,
    ) -> SearchReport:
        """Search every title-capable provider.

        All-blank terms are a valid query with no results.
        """
        title, author, series = clean_terms(title, author, series)
        if not (title or author or series):
            return SearchReport()
        capable = [p for p in self._providers if isinstance(p, TitleSearchProvider)]
        return self._fan_out(
            capable,
            lambda provider: provider.search_by_title_author(
                title=title, author=author, series=series
            ),
        )

    def _fan_out(
        self,
        providers: list[MetadataProvider],
        call: Callable[[Any], ProviderResult],
    ) -> SearchReport:
        report = SearchReport(queried=[p.name for p in providers])
        if not providers:
            return report

        executor = ThreadPoolExecutor(
            max_workers=len(providers), thread_name_prefix="booklog-provider"
        )
        try:
            started = time.monotonic()
            futures: list[tuple[MetadataProvider, Future[ProviderResult]]] = [
                (provider, executor.submit(call, provider)) for provider in providers
            ]
            for provider, future in sorted(futures, key=lambda pair: self._timeout(pair[0])):
                remaining = started + self._timeout(provider) - time.monotonic()
                wait([future], timeout=max(0.0, remaining))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        collected: list[BookSearchResult] = []
        for provider, future in futures:
            outcome = self._outcome(provider, future)
            if outcome.ok:
                collected.extend(outcome.results)
            else:
                logger.warning("Provider %s failed: %s", provider.name, outcome.error)
                report.failures[provider.name] = outcome.error or "unknown error"

        report.results = deduplicate(collected)
        logger.info(
            "Resolved %d candidate(s) from %d provider(s)",
            len(report.results),
            len(providers) - len(report.failures),
        )
        return report

    def _timeout(self, provider: MetadataProvider) -> float:
        return self._timeouts.get(provider.source, 10.0)

    @staticmethod
    def _outcome(provider: MetadataProvider, future: Future[ProviderResult]) -> ProviderResult:
        if not future.done() or future.cancelled():
            future.cancel()
            return ProviderResult.failure(provider.source, "timed out")
        try:
            return future.result()
        except Exception as exc:
            return ProviderResult.failure(provider.source, f"unexpected error: {exc}")


def build_providers(settings: Settings, http_client: HttpClient) -> list[MetadataProvider]:
    """Instantiate the providers enabled in settings, in priority order."""
    providers: list[MetadataProvider] = []
    if settings.national_library_enabled:
        providers.append(DnbProvider(http_client))
    if settings.google_books_enabled:
        providers.append(
            GoogleBooksProvider(
                http_client,
                api_key=settings.google_books_api_key,
                language=settings.search_language or None,
            )
        )
    if settings.isbndb_enabled:
        providers.append(IsbnDbProvider(http_client, api_key=settings.isbndb_api_key))
    if settings.open_library_enabled:
        providers.append(OpenLibraryProvider(http_client))
    return providers
