# ABOUTME: Public API for the booklog catalog database layer.
# ABOUTME: Exports connection management, catalog operations, and data types.

from booklog.db.catalog import LibraryCatalog, SortOrder
from booklog.db.connection import DEFAULT_DB_PATH, open_library
from booklog.db.mapping import Book
from booklog.db.transfer import CatalogImportError, export_catalog, import_catalog

__all__ = [
    "DEFAULT_DB_PATH",
    "Book",
    "CatalogImportError",
    "LibraryCatalog",
    "SortOrder",
    "export_catalog",
    "import_catalog",
    "open_library",
]
