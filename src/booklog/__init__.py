# ABOUTME: Booklog - personal book catalog with metadata lookup and EPUB patching.
# ABOUTME: Sub-packages: metadata, formats, core, db, cli.

__version__ = "0.1.0"
