# ABOUTME: Non-destructive EPUB patch pipeline.
# ABOUTME: Writes the patched copy into an output directory and reports the outcome as a value.

import logging
from dataclasses import dataclass
from pathlib import Path

from booklog.formats.epub_patch import EpubPatchError, patch_epub

logger = logging.getLogger(__name__)


@dataclass
class PatchResult:
    """Result of patching one EPUB.

    ``patched`` is False when the file was already compatible; ``path`` then
    points at the untouched source.
    """

    path: Path | None
    success: bool
    patched: bool = False
    error: str | None = None


_MAX_COLLISION_ATTEMPTS = 10_000


def _resolve_collision(output_path: Path) -> Path:
    """Find a non-colliding filename by appending _1, _2, etc."""
    stem = output_path.stem
    suffix = output_path.suffix
    parent = output_path.parent
    for counter in range(1, _MAX_COLLISION_ATTEMPTS + 1):
        candidate = parent / f"{stem}_{counter}{suffix}"
        if not candidate.exists():
            return candidate
    raise OSError(
        f"Could not find a non-colliding filename after "
        f"{_MAX_COLLISION_ATTEMPTS} attempts: {output_path}"
    )


def _cleanup_dest(dest: Path) -> None:
    """Remove the destination file if it exists."""
    if dest.exists():
        dest.unlink()


def patch_epub_safely(
    source: Path, output_dir: Path, cleaned_title: str | None = None
) -> PatchResult:
    """Patch an EPUB into output_dir without touching the original.

    If a file with the same name already exists in output_dir, a numeric
    suffix (_1, _2, ...) is appended. When the book needs no changes no
    file is written and the result points at the source.

    Args:
        source: Path to the original EPUB file.
        output_dir: Directory to place the patched copy.
        cleaned_title: Optional sort title with its article at the end.

    Returns:
        PatchResult with path, success flag, and whether anything changed.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    dest = output_dir / source.name
    if dest.exists():
        dest = _resolve_collision(dest)

    try:
        written = patch_epub(source, cleaned_title=cleaned_title, dest=dest)
    except (OSError, EpubPatchError) as exc:
        _cleanup_dest(dest)
        logger.warning("Could not patch %s: %s", source, exc)
        return PatchResult(path=None, success=False, error=str(exc))

    if written == source:
        return PatchResult(path=source, success=True, patched=False)
    return PatchResult(path=written, success=True, patched=True)
