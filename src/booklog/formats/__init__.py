# ABOUTME: EPUB reading and package-document rewriting.
# ABOUTME: Re-exports the patcher entry point and its error types.

from booklog.formats.epub_patch import (
    ContainerMissingError,
    EpubPatchError,
    OpfNotFoundError,
    OpfUnreadableError,
    RootfileMissingError,
    patch_epub,
)

__all__ = [
    "ContainerMissingError",
    "EpubPatchError",
    "OpfNotFoundError",
    "OpfUnreadableError",
    "RootfileMissingError",
    "patch_epub",
]
