# ABOUTME: Metadata package: provider adapters, result types, and the multi-source resolver.
# ABOUTME: Exports the types and entry points used by the CLI and catalog.

from booklog.metadata.http import BooklogHttpClient, HttpClient, MetadataFetchError
from booklog.metadata.provider import MetadataProvider, ProviderResult, TitleSearchProvider
from booklog.metadata.resolver import MetadataResolver, SearchReport, build_providers
from booklog.metadata.series import SeriesInfo, extract_series
from booklog.metadata.types import BookSearchResult, BookSource

__all__ = [
    "BookSearchResult",
    "BookSource",
    "BooklogHttpClient",
    "HttpClient",
    "MetadataFetchError",
    "MetadataProvider",
    "MetadataResolver",
    "ProviderResult",
    "SearchReport",
    "SeriesInfo",
    "TitleSearchProvider",
    "build_providers",
    "extract_series",
]
