# ABOUTME: Rewrites the package document inside an EPUB container for PocketBook readers.
# ABOUTME: Locates the OPF via container.xml and repackages the ZIP with only that entry changed.

import logging
import os
import re
import tempfile
import zipfile
from pathlib import Path

from booklog.formats.opf import patch_opf_content

logger = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"

_ROOTFILE_RE = re.compile(r"""<rootfile\b[^>]*?\sfull-path\s*=\s*["']([^"']+)["']""")


class EpubPatchError(Exception):
    """Raised when an EPUB cannot be patched."""


class OpfNotFoundError(EpubPatchError):
    """Raised when the package document cannot be located."""

    def __init__(self, message: str = "OPF file not found in EPUB") -> None:
        super().__init__(message)


class ContainerMissingError(OpfNotFoundError):
    """The EPUB has no META-INF/container.xml."""


class RootfileMissingError(OpfNotFoundError):
    """container.xml has no <rootfile> with a full-path attribute."""


class OpfUnreadableError(EpubPatchError):
    """The package document entry is missing or not valid text."""


def locate_opf(archive: zipfile.ZipFile) -> str:
    """Return the archive path of the package document.

    Raises:
        ContainerMissingError: If container.xml is absent.
        RootfileMissingError: If no rootfile full-path is declared.
    """
    try:
        container = archive.read(CONTAINER_PATH).decode("utf-8", errors="replace")
    except KeyError as exc:
        raise ContainerMissingError() from exc
    match = _ROOTFILE_RE.search(container)
    if not match:
        raise RootfileMissingError()
    return match.group(1)


def read_opf(archive: zipfile.ZipFile, opf_path: str) -> str:
    """Read the package document text.

    Raises:
        OpfUnreadableError: If the entry is missing or not UTF-8.
    """
    try:
        return archive.read(opf_path).decode("utf-8")
    except KeyError as exc:
        raise OpfUnreadableError(f"Package document {opf_path} missing from EPUB") from exc
    except UnicodeDecodeError as exc:
        raise OpfUnreadableError(f"Package document {opf_path} is not UTF-8: {exc}") from exc


def _default_dest(source: Path) -> Path:
    return source.with_name(f"{source.stem}_patched{source.suffix}")


def _repackage(archive: zipfile.ZipFile, opf_path: str, opf_text: str, dest: Path) -> None:
    """Write a copy of ``archive`` to ``dest`` with the OPF entry replaced.

    Entries keep their order, names, and compression settings. The file
    appears at ``dest`` only after it has been completely written.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=".booklog-", suffix=".epub")
    os.close(fd)
    try:
        with zipfile.ZipFile(tmp_name, "w") as out:
            for info in archive.infolist():
                if info.filename == opf_path:
                    out.writestr(info, opf_text.encode("utf-8"))
                else:
                    out.writestr(info, archive.read(info.filename))
        os.replace(tmp_name, dest)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def patch_epub(source: Path, cleaned_title: str | None = None, dest: Path | None = None) -> Path:
    """Patch an EPUB's package metadata for the target reader.

    The source file is never modified. When the rewrite changes nothing the
    source path is returned and no new file is created; otherwise the
    patched copy is written to ``dest`` (default ``<stem>_patched.epub``
    next to the source) and that path is returned.

    Raises:
        EpubPatchError: If the file is missing or not a ZIP container.
        OpfNotFoundError: If the package document cannot be located.
        OpfUnreadableError: If the package document cannot be read.
    """
    if not source.exists():
        raise EpubPatchError(f"File not found: {source}")

    try:
        with zipfile.ZipFile(source) as archive:
            opf_path = locate_opf(archive)
            original = read_opf(archive, opf_path)
            patched = patch_opf_content(original, cleaned_title)
            if patched == original:
                logger.debug("%s already compatible, nothing to patch", source)
                return source

            target = dest or _default_dest(source)
            if target.resolve() == source.resolve():
                raise EpubPatchError(f"Refusing to overwrite source file: {source}")
            _repackage(archive, opf_path, patched, target)
    except zipfile.BadZipFile as exc:
        raise EpubPatchError(f"Not an EPUB container: {source}: {exc}") from exc

    logger.info("Patched %s -> %s", source.name, target)
    return target
