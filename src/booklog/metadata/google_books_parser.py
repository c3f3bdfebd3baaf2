# ABOUTME: Parsing functions for Google Books volumes API JSON responses.
# ABOUTME: Converts volumeInfo payloads into BookSearchResult instances.

from typing import Any

from booklog.metadata.filters import is_audiobook_category
from booklog.metadata.series import extract_series
from booklog.metadata.types import BookSearchResult, BookSource, join_authors


def _identifier(info: dict[str, Any], kind: str) -> str | None:
    for entry in info.get("industryIdentifiers") or []:
        if entry.get("type") == kind and entry.get("identifier"):
            return str(entry["identifier"])
    return None


def _native_series(info: dict[str, Any]) -> tuple[str | None, str | None]:
    """Read the structured seriesInfo block, if Google supplied one."""
    volume_series = (info.get("seriesInfo") or {}).get("volumeSeries") or []
    if not volume_series:
        return None, None
    first = volume_series[0]
    series = first.get("seriesId")
    order = first.get("orderNumber")
    return (str(series) if series else None), (str(order) if order is not None else None)


def parse_volume(item: dict[str, Any]) -> BookSearchResult | None:
    """Parse a single volume item.

    Returns None for entries whose categories mark them as audio editions.
    """
    info = item.get("volumeInfo") or {}
    if is_audiobook_category(info.get("categories")):
        return None

    title = info.get("title") or ""
    isbn13 = _identifier(info, "ISBN_13")
    isbn10 = _identifier(info, "ISBN_10")

    series, series_number = _native_series(info)
    if series is None:
        recovered = extract_series(title)
        if recovered is not None:
            series, series_number = recovered.series, recovered.number

    image_links = info.get("imageLinks") or {}

    return BookSearchResult(
        title=title,
        author=join_authors(info.get("authors") or []),
        source=BookSource.GOOGLE_BOOKS,
        description=info.get("description"),
        publisher=info.get("publisher"),
        publish_date=info.get("publishedDate"),
        language=info.get("language"),
        series=series,
        series_number=series_number,
        isbn=isbn13 or isbn10,
        all_isbns=[isbn for isbn in (isbn13, isbn10) if isbn],
        cover_url=image_links.get("thumbnail"),
    )


def parse_volumes(data: dict[str, Any]) -> list[BookSearchResult]:
    """Parse a volumes search response into results, skipping audio categories."""
    results: list[BookSearchResult] = []
    for item in data.get("items") or []:
        parsed = parse_volume(item)
        if parsed is not None:
            results.append(parsed)
    return results
