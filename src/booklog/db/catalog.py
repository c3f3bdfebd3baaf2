# ABOUTME: CRUD operations for the booklog catalog.
# ABOUTME: Add, query, sort, update, and delete books in the SQLite database.

import enum
import logging
import sqlite3
from collections.abc import Iterable
from typing import Any

from booklog.db.mapping import (
    BOOK_COLUMNS,
    Book,
    book_from_search_result,
    book_to_row,
    row_to_book,
    validate_rating,
)
from booklog.metadata.text import clean_isbn, sort_title
from booklog.metadata.types import BookSearchResult

logger = logging.getLogger(__name__)

_SEARCH_COLUMNS = ("title", "author", "original_title", "original_author", "description")


class SortOrder(enum.Enum):
    """Catalog list orderings; values are SQL ORDER BY clauses."""

    TITLE_ASC = "title_sort COLLATE NOCASE ASC, id ASC"
    TITLE_DESC = "title_sort COLLATE NOCASE DESC, id DESC"
    AUTHOR_ASC = "author COLLATE NOCASE ASC, title_sort COLLATE NOCASE ASC, id ASC"
    AUTHOR_DESC = "author COLLATE NOCASE DESC, title_sort COLLATE NOCASE DESC, id DESC"
    DATE_ADDED_ASC = "date_added ASC, id ASC"
    DATE_ADDED_DESC = "date_added DESC, id DESC"

    @classmethod
    def parse(cls, name: str | None) -> "SortOrder":
        """Look up an order by name, falling back to TITLE_ASC."""
        try:
            return cls[(name or "").strip().upper()]
        except KeyError:
            return cls.TITLE_ASC


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class LibraryCatalog:
    """Wraps a sqlite3 connection and provides typed CRUD for the books table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def add_book(self, book: Book) -> int:
        """Add a book to the catalog.

        Returns:
            The row ID of the inserted book.

        Raises:
            ValueError: If the rating is outside 0..5.
        """
        validate_rating(book.rating)
        row = book_to_row(book)
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)
        cursor = self._conn.execute(
            f"INSERT INTO books ({columns}) VALUES ({placeholders})",
            list(row.values()),
        )
        self._conn.commit()
        logger.debug("Added book %d: %s", cursor.lastrowid, book.title)
        return cursor.lastrowid  # type: ignore[return-value]

    def add_books(self, books: Iterable[Book]) -> list[int]:
        return [self.add_book(book) for book in books]

    def add_search_result(self, result: BookSearchResult, is_owned: bool = True) -> int:
        """Catalog a resolver candidate."""
        return self.add_book(book_from_search_result(result, is_owned=is_owned))

    def get_by_id(self, book_id: int) -> Book | None:
        """Retrieve a book by its row ID."""
        cursor = self._conn.execute("SELECT * FROM books WHERE id = ?", (book_id,))
        row = cursor.fetchone()
        return row_to_book(row) if row else None

    def get_by_isbn(self, isbn: str) -> Book | None:
        """Retrieve a book by ISBN, ignoring hyphens and spaces."""
        clean = clean_isbn(isbn)
        if not clean:
            return None
        cursor = self._conn.execute(
            "SELECT * FROM books WHERE REPLACE(REPLACE(isbn, '-', ''), ' ', '') = ? "
            "ORDER BY id LIMIT 1",
            (clean,),
        )
        row = cursor.fetchone()
        return row_to_book(row) if row else None

    def _filters(self, is_owned: bool | None, is_read: bool | None) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        values: list[Any] = []
        if is_owned is not None:
            clauses.append("is_owned = ?")
            values.append(int(is_owned))
        if is_read is not None:
            clauses.append("is_read = ?")
            values.append(int(is_read))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, values

    def list_books(
        self,
        is_owned: bool | None = None,
        is_read: bool | None = None,
        sort: SortOrder = SortOrder.TITLE_ASC,
    ) -> list[Book]:
        """Return books, optionally filtered by ownership and read state."""
        where, values = self._filters(is_owned, is_read)
        cursor = self._conn.execute(f"SELECT * FROM books{where} ORDER BY {sort.value}", values)
        return [row_to_book(row) for row in cursor.fetchall()]

    def search(self, query: str) -> list[Book]:
        """Case-insensitive substring search over titles, authors, and descriptions.

        Results are in title sort order. A blank query matches nothing.
        """
        term = query.strip()
        if not term:
            return []
        pattern = f"%{_escape_like(term)}%"
        where = " OR ".join(f"{column} LIKE ? ESCAPE '\\'" for column in _SEARCH_COLUMNS)
        cursor = self._conn.execute(
            f"SELECT * FROM books WHERE {where} ORDER BY {SortOrder.TITLE_ASC.value}",
            [pattern] * len(_SEARCH_COLUMNS),
        )
        return [row_to_book(row) for row in cursor.fetchall()]

    def update_book(self, book_id: int, **fields: Any) -> Book:
        """Update one or more fields on a cataloged book.

        The sort title is re-derived when the title or language changes,
        unless one is passed explicitly.

        Raises:
            ValueError: If the book_id does not exist, a field is unknown,
                or the rating is outside 0..5.
        """
        current = self.get_by_id(book_id)
        if current is None:
            raise ValueError(f"Book with id {book_id} not found")
        if not fields:
            return current

        unknown = set(fields) - (set(BOOK_COLUMNS) - {"id"})
        if unknown:
            raise ValueError(f"Unknown book field(s): {', '.join(sorted(unknown))}")
        if "rating" in fields:
            validate_rating(fields["rating"])

        if ("title" in fields or "language" in fields) and "title_sort" not in fields:
            fields["title_sort"] = sort_title(
                fields.get("title", current.title), fields.get("language", current.language)
            )

        values = [int(v) if isinstance(v, bool) else v for v in fields.values()]
        set_clause = ", ".join(f"{k} = ?" for k in fields)
        self._conn.execute(f"UPDATE books SET {set_clause} WHERE id = ?", [*values, book_id])
        self._conn.commit()
        return self.get_by_id(book_id)  # type: ignore[return-value]

    def delete_book(self, book_id: int) -> None:
        """Delete a book from the catalog.

        Raises:
            ValueError: If the book_id does not exist.
        """
        cursor = self._conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
        self._conn.commit()

        if cursor.rowcount == 0:
            raise ValueError(f"Book with id {book_id} not found")

    def delete_books(self, book_ids: Iterable[int]) -> int:
        """Delete several books; unknown ids are ignored. Returns the number removed."""
        ids = list(book_ids)
        if not ids:
            return 0
        placeholders = ", ".join("?" for _ in ids)
        cursor = self._conn.execute(f"DELETE FROM books WHERE id IN ({placeholders})", ids)
        self._conn.commit()
        return cursor.rowcount

    def delete_all(self) -> int:
        """Empty the catalog. Returns the number of books removed."""
        cursor = self._conn.execute("DELETE FROM books")
        self._conn.commit()
        logger.info("Removed %d book(s) from the catalog", cursor.rowcount)
        return cursor.rowcount

    def count(self, is_owned: bool | None = None, is_read: bool | None = None) -> int:
        where, values = self._filters(is_owned, is_read)
        cursor = self._conn.execute(f"SELECT COUNT(*) FROM books{where}", values)
        return cursor.fetchone()[0]
