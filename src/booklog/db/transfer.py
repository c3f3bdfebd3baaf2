# ABOUTME: JSON export and import of the whole catalog.
# ABOUTME: Documents are {"books": [...]} with camelCase keys; ids are reassigned on import.

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from booklog.db.catalog import LibraryCatalog, SortOrder
from booklog.db.mapping import Book, validate_rating

logger = logging.getLogger(__name__)

# Book attribute -> key in the exported document.
EXPORT_KEYS: dict[str, str] = {
    "id": "id",
    "title": "title",
    "author": "author",
    "isbn": "isbn",
    "original_title": "originalTitle",
    "original_author": "originalAuthor",
    "description": "description",
    "publish_date": "publishDate",
    "language": "language",
    "original_language": "originalLanguage",
    "series": "series",
    "series_number": "seriesNumber",
    "is_ebook": "isEBook",
    "comments": "comments",
    "rating": "rating",
    "is_owned": "isOwned",
    "is_read": "isRead",
    "date_added": "dateAdded",
    "date_started": "dateStarted",
    "date_finished": "dateFinished",
    "uploaded_to_cloud": "uploadedToCloudApi",
    "uploaded_via_email": "uploadedViaEmail",
}

_TEXT_FIELDS = (
    "isbn",
    "original_title",
    "original_author",
    "description",
    "publish_date",
    "language",
    "original_language",
    "series",
    "comments",
)
_DATE_FIELDS = ("date_added", "date_started", "date_finished")
_FLAG_DEFAULTS = {
    "is_ebook": False,
    "is_owned": True,
    "is_read": False,
    "uploaded_to_cloud": False,
    "uploaded_via_email": False,
}


class CatalogImportError(Exception):
    """Raised when an import document is malformed."""


def book_to_document(book: Book) -> dict[str, Any]:
    return {key: getattr(book, attr) for attr, key in EXPORT_KEYS.items()}


def export_catalog(catalog: LibraryCatalog, path: Path) -> int:
    """Write every book to ``path`` as JSON. Returns the number exported."""
    books = catalog.list_books(sort=SortOrder.DATE_ADDED_ASC)
    document = {"books": [book_to_document(book) for book in books]}
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Exported %d book(s) to %s", len(books), path)
    return len(books)


def _date_value(value: Any) -> str | None:
    """Accept ISO strings or epoch milliseconds."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise CatalogImportError(f"Invalid date: {value!r}")
    if isinstance(value, (int, float)):
        moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        return moment.strftime("%Y-%m-%dT%H:%M:%S")
    return str(value)


def _text_value(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def book_from_document(entry: Any) -> Book:
    """Build a Book from one exported entry.

    Raises:
        CatalogImportError: If the entry is not an object or has bad values.
    """
    if not isinstance(entry, dict):
        raise CatalogImportError(f"Book entry must be an object, got {type(entry).__name__}")

    def get(attr: str) -> Any:
        return entry.get(EXPORT_KEYS[attr])

    values: dict[str, Any] = {
        "title": _text_value(get("title")) or "",
        "author": _text_value(get("author")) or "",
        "series_number": _text_value(get("series_number")),
    }
    if not values["title"]:
        raise CatalogImportError("Book entry has no title")
    for attr in _TEXT_FIELDS:
        values[attr] = _text_value(get(attr))
    for attr in _DATE_FIELDS:
        values[attr] = _date_value(get(attr))
    for attr, default in _FLAG_DEFAULTS.items():
        raw = get(attr)
        values[attr] = default if raw is None else bool(raw)

    try:
        values["rating"] = validate_rating(int(get("rating") or 0))
    except (TypeError, ValueError) as exc:
        raise CatalogImportError(f"Invalid rating for {values['title']!r}: {exc}") from exc
    return Book(**values)


def import_catalog(catalog: LibraryCatalog, path: Path, replace_existing: bool = False) -> int:
    """Load books from an export document. Returns the number imported.

    The whole document is validated before the catalog is touched.

    Raises:
        CatalogImportError: If the file is unreadable or malformed.
    """
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CatalogImportError(f"Cannot read import file {path}: {exc}") from exc
    if not isinstance(document, dict) or not isinstance(document.get("books"), list):
        raise CatalogImportError(f"{path} is not a catalog export: missing 'books' list")

    books = [book_from_document(entry) for entry in document["books"]]
    if replace_existing:
        catalog.delete_all()
    catalog.add_books(books)
    logger.info("Imported %d book(s) from %s", len(books), path)
    return len(books)
