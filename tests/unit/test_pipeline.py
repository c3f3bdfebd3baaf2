# ABOUTME: Unit tests for the non-destructive patch pipeline.
# ABOUTME: Validates output placement, name collisions, no-op reporting, and cleanup on failure.

from pathlib import Path
from unittest.mock import patch

from booklog.core.pipeline import patch_epub_safely
from booklog.formats.epub_patch import EpubPatchError
from tests.fixtures.opf_documents import EPUB3_COMPATIBLE_OPF, EPUB3_MIXED_OPF


class TestPatchEpubSafely:
    """Tests for patch_epub_safely."""

    def test_creates_copy_in_output_dir(self, sample_epub: Path, tmp_path: Path) -> None:
        """The patched copy is created in the output directory under the source name."""
        output_dir = tmp_path / "output"
        output_dir.mkdir()

        result = patch_epub_safely(sample_epub, output_dir)

        assert result.success is True
        assert result.patched is True
        assert result.path == output_dir / sample_epub.name
        assert result.path.exists()

    def test_original_file_unchanged(self, sample_epub: Path, tmp_path: Path) -> None:
        """Original EPUB file is byte-identical after the pipeline runs."""
        original_bytes = sample_epub.read_bytes()
        patch_epub_safely(sample_epub, tmp_path / "output", "letzte Fähre, Die")
        assert sample_epub.read_bytes() == original_bytes

    def test_name_collision_adds_suffix(self, sample_epub: Path, tmp_path: Path) -> None:
        """When the output file already exists, a numeric suffix is added."""
        output_dir = tmp_path / "output"
        output_dir.mkdir()
        (output_dir / sample_epub.name).write_text("occupying the name")

        result = patch_epub_safely(sample_epub, output_dir)

        assert result.path is not None
        assert result.path.stem == f"{sample_epub.stem}_1"
        assert (output_dir / sample_epub.name).read_text() == "occupying the name"

    def test_multiple_collisions_increment(self, sample_epub: Path, tmp_path: Path) -> None:
        """Multiple collisions increment the suffix counter."""
        output_dir = tmp_path / "output"
        output_dir.mkdir()
        stem = sample_epub.stem
        (output_dir / sample_epub.name).write_text("collision 0")
        (output_dir / f"{stem}_1.epub").write_text("collision 1")

        result = patch_epub_safely(sample_epub, output_dir)

        assert result.path is not None
        assert result.path.stem == f"{stem}_2"

    def test_creates_output_dir_if_missing(self, sample_epub: Path, tmp_path: Path) -> None:
        """Output directory is created if it doesn't exist."""
        output_dir = tmp_path / "new_output" / "nested"
        result = patch_epub_safely(sample_epub, output_dir)
        assert output_dir.is_dir()
        assert result.path is not None and result.path.exists()

    def test_already_compatible_reports_not_patched(self, make_epub, tmp_path: Path) -> None:
        """A compatible book succeeds without writing to the output directory."""
        source = make_epub(EPUB3_COMPATIBLE_OPF)
        output_dir = tmp_path / "output"

        result = patch_epub_safely(source, output_dir)

        assert result.success is True
        assert result.patched is False
        assert result.path == source
        assert not list(output_dir.glob("*.epub"))


class TestPatchFailures:
    """Failures are reported as values and leave nothing behind."""

    def test_corrupt_file_reports_error(self, corrupt_epub: Path, tmp_path: Path) -> None:
        output_dir = tmp_path / "output"
        result = patch_epub_safely(corrupt_epub, output_dir)

        assert result.success is False
        assert result.path is None
        assert result.error is not None
        assert not list(output_dir.glob("*.epub"))

    def test_patch_error_cleans_up_copy(self, make_epub, tmp_path: Path) -> None:
        """If patching raises, nothing remains in the output directory."""
        output_dir = tmp_path / "output"
        with patch(
            "booklog.core.pipeline.patch_epub",
            side_effect=EpubPatchError("write failed"),
        ):
            result = patch_epub_safely(make_epub(EPUB3_MIXED_OPF), output_dir)

        assert result.success is False
        assert result.error == "write failed"
        assert not list(output_dir.glob("*.epub"))

    def test_os_error_is_reported(self, make_epub, tmp_path: Path) -> None:
        """Filesystem errors become failed results, not exceptions."""
        with patch("booklog.core.pipeline.patch_epub", side_effect=OSError("read-only")):
            result = patch_epub_safely(make_epub(EPUB3_MIXED_OPF), tmp_path / "output")

        assert result.success is False
        assert "read-only" in (result.error or "")
