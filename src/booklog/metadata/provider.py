# ABOUTME: Provider protocols and the result value every adapter returns.
# ABOUTME: Adapters turn transport and parse failures into ProviderResult.failure.

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from booklog.metadata.types import BookSearchResult, BookSource


@dataclass
class ProviderResult:
    """Outcome of one adapter call: results on success, a cause on failure."""

    source: BookSource
    results: list[BookSearchResult] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(
        cls, source: BookSource, results: list[BookSearchResult] | None = None
    ) -> "ProviderResult":
        return cls(source=source, results=list(results or []))

    @classmethod
    def failure(cls, source: BookSource, error: str) -> "ProviderResult":
        return cls(source=source, error=error)


@runtime_checkable
class MetadataProvider(Protocol):
    """Protocol for metadata lookup services.

    Every implementation supports ISBN lookup and never raises: failures come
    back as a ProviderResult carrying an error message.
    """

    @property
    def name(self) -> str: ...

    @property
    def source(self) -> BookSource: ...

    def search_by_isbn(self, isbn: str) -> ProviderResult: ...


@runtime_checkable
class TitleSearchProvider(MetadataProvider, Protocol):
    """A provider that can also search by free-text title, author, and series."""

    def search_by_title_author(
        self,
        title: str | None = None,
        author: str | None = None,
        series: str | None = None,
    ) -> ProviderResult: ...


def clean_terms(
    title: str | None, author: str | None, series: str | None
) -> tuple[str | None, str | None, str | None]:
    """Trim search terms and turn blank ones into None."""

    def _clean(term: str | None) -> str | None:
        if term is None:
            return None
        return term.strip() or None

    return _clean(title), _clean(author), _clean(series)
