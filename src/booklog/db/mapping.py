# ABOUTME: The cataloged Book record and its conversion to and from SQLite rows.
# ABOUTME: Also builds Book records from resolver search results.

import dataclasses
from dataclasses import dataclass
from typing import Any

from booklog.metadata.text import normalize_author, sort_title
from booklog.metadata.types import UNKNOWN_AUTHOR, BookSearchResult

MAX_RATING = 5

_BOOL_COLUMNS = ("is_ebook", "is_owned", "is_read", "uploaded_to_cloud", "uploaded_via_email")


@dataclass
class Book:
    """A book in the personal catalog."""

    title: str
    author: str
    id: int | None = None
    isbn: str | None = None
    original_title: str | None = None
    original_author: str | None = None
    description: str | None = None
    publish_date: str | None = None
    language: str | None = None
    original_language: str | None = None
    series: str | None = None
    series_number: str | None = None
    is_ebook: bool = False
    comments: str | None = None
    rating: int = 0
    is_owned: bool = True
    is_read: bool = False
    date_added: str | None = None
    date_started: str | None = None
    date_finished: str | None = None
    uploaded_to_cloud: bool = False
    uploaded_via_email: bool = False
    title_sort: str = ""


BOOK_COLUMNS = tuple(f.name for f in dataclasses.fields(Book))


def validate_rating(rating: int) -> int:
    """Raise ValueError unless the rating is within 0..5."""
    if not 0 <= rating <= MAX_RATING:
        raise ValueError(f"Rating must be between 0 and {MAX_RATING}, got {rating}")
    return rating


def derive_title_sort(book: Book) -> str:
    return book.title_sort or sort_title(book.title, book.language)


def book_to_row(book: Book) -> dict[str, Any]:
    """Convert a Book to a dict suitable for INSERT.

    The id is left out so SQLite assigns one; a missing date_added is left
    out so the column default applies.
    """
    row = dataclasses.asdict(book)
    row.pop("id")
    if row["date_added"] is None:
        row.pop("date_added")
    for column in _BOOL_COLUMNS:
        row[column] = int(row[column])
    row["title_sort"] = derive_title_sort(book)
    return row


def row_to_book(row: Any) -> Book:
    """Convert a database row (dict-like) back to a Book."""
    values = {column: row[column] for column in BOOK_COLUMNS}
    for column in _BOOL_COLUMNS:
        values[column] = bool(values[column])
    return Book(**values)


def book_from_search_result(result: BookSearchResult, is_owned: bool = True) -> Book:
    """Build a catalog entry from a resolver candidate, authors as "Last, First"."""
    author = result.author
    if author != UNKNOWN_AUTHOR:
        author = normalize_author(author)
    return Book(
        title=result.title,
        author=author,
        isbn=result.isbn,
        description=result.description,
        publish_date=result.publish_date,
        language=result.language,
        original_language=result.original_language,
        series=result.series,
        series_number=result.series_number,
        is_owned=is_owned,
    )
