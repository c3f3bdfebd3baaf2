# ABOUTME: Parsing functions for Open Library API JSON responses.
# ABOUTME: Converts books-API and search-API payloads into BookSearchResult instances.

from typing import Any

from booklog.metadata.series import extract_series
from booklog.metadata.types import BookSearchResult, BookSource, join_authors

_COVERS_BASE_URL = "https://covers.openlibrary.org/b/id"
_MAX_SEARCH_ISBNS = 10


def _first_name(entries: list[Any] | None) -> str | None:
    """Return the first entry's name, accepting dicts or plain strings."""
    for entry in entries or []:
        if isinstance(entry, dict):
            name = entry.get("name")
        else:
            name = entry
        if name:
            return str(name)
    return None


def _description(data: dict[str, Any]) -> str | None:
    """Combine the first excerpt with the edition notes.

    Notes may be a plain string or a {"type": ..., "value": ...} dict.
    """
    excerpts = data.get("excerpts") or []
    excerpt = (excerpts[0].get("text") or "").strip() if excerpts else ""

    notes = data.get("notes")
    if isinstance(notes, dict):
        notes = notes.get("value")
    notes = (notes or "").strip()

    parts = [excerpt] if excerpt else []
    if notes and notes != excerpt:
        parts.append(notes)
    return "\n\n".join(parts) or None


def _series_fields(title: str) -> tuple[str | None, str | None]:
    recovered = extract_series(title)
    if recovered is None:
        return None, None
    return recovered.series, recovered.number


def parse_books_response(data: dict[str, Any], isbn: str) -> list[BookSearchResult]:
    """Parse an ``api/books?jscmd=data`` response keyed by bibkey.

    The map is empty when Open Library does not know the ISBN.
    """
    if not data:
        return []

    book = next(iter(data.values()))
    title = book.get("title") or ""
    subtitle = (book.get("subtitle") or "").strip()
    if title and subtitle:
        title = f"{title}: {subtitle}"

    authors = [entry.get("name", "") for entry in book.get("authors") or []]
    cover = book.get("cover") or {}
    identifiers = book.get("identifiers") or {}
    all_isbns = [isbn, *identifiers.get("isbn_13", []), *identifiers.get("isbn_10", [])]
    series, series_number = _series_fields(title)

    return [
        BookSearchResult(
            title=title,
            author=join_authors(authors),
            source=BookSource.OPEN_LIBRARY,
            description=_description(book),
            publisher=_first_name(book.get("publishers")),
            publish_date=book.get("publish_date"),
            series=series,
            series_number=series_number,
            isbn=isbn,
            all_isbns=all_isbns,
            cover_url=cover.get("large") or cover.get("medium"),
        )
    ]


def build_cover_url(cover_id: int | str, size: str = "L") -> str:
    """Build an Open Library cover image URL for a cover id.

    Args:
        cover_id: The numeric cover id from a search document.
        size: Image size, "S" (small), "M" (medium), or "L" (large).
    """
    return f"{_COVERS_BASE_URL}/{cover_id}-{size}.jpg"


def parse_search_results(data: dict[str, Any]) -> list[BookSearchResult]:
    """Parse an Open Library Search API response into a list of results.

    Each doc in the search results contains title, author_name, isbn, etc.
    """
    docs = data.get("docs", [])
    results: list[BookSearchResult] = []

    for doc in docs:
        title = doc.get("title") or ""
        isbns = [str(value) for value in doc.get("isbn", [])][:_MAX_SEARCH_ISBNS]
        isbn13 = next((value for value in isbns if len(value) == 13), None)
        isbn = isbn13 or (isbns[0] if isbns else None)

        languages = doc.get("language", [])
        publishers = doc.get("publisher", [])
        year = doc.get("first_publish_year")
        cover_id = doc.get("cover_i")
        series, series_number = _series_fields(title)

        results.append(
            BookSearchResult(
                title=title,
                author=join_authors(doc.get("author_name", [])),
                source=BookSource.OPEN_LIBRARY,
                publisher=publishers[0] if publishers else None,
                publish_date=str(year) if year else None,
                language=languages[0] if languages else None,
                series=series,
                series_number=series_number,
                isbn=isbn,
                all_isbns=isbns,
                cover_url=build_cover_url(cover_id) if cover_id else None,
            )
        )

    return results
