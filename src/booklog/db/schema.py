# ABOUTME: SQL DDL statements for the booklog catalog database schema.
# ABOUTME: Defines the books table, its indexes, and schema versioning.

SCHEMA_VERSION = 1

SCHEMA_V1 = """
-- Core book catalog table
CREATE TABLE books (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    title              TEXT NOT NULL,
    author             TEXT NOT NULL,
    isbn               TEXT,
    original_title     TEXT,
    original_author    TEXT,
    description        TEXT,
    publish_date       TEXT,
    language           TEXT,
    original_language  TEXT,
    series             TEXT,
    series_number      TEXT,
    is_ebook           INTEGER NOT NULL DEFAULT 0,
    comments           TEXT,
    rating             INTEGER NOT NULL DEFAULT 0 CHECK (rating BETWEEN 0 AND 5),
    is_owned           INTEGER NOT NULL DEFAULT 1,
    is_read            INTEGER NOT NULL DEFAULT 0,
    date_added         TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
    date_started       TEXT,
    date_finished      TEXT,
    uploaded_to_cloud  INTEGER NOT NULL DEFAULT 0,
    uploaded_via_email INTEGER NOT NULL DEFAULT 0,
    title_sort         TEXT NOT NULL DEFAULT ''
);

CREATE INDEX idx_books_isbn ON books(isbn) WHERE isbn IS NOT NULL;
CREATE INDEX idx_books_title_sort ON books(title_sort);
CREATE INDEX idx_books_series ON books(series) WHERE series IS NOT NULL;

-- Schema versioning for future migrations
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""
