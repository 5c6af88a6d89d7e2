"""
File system helpers shared by the acquirer, the tool cache and the caches.

Covers archive extraction (tar.gz for linux/osx releases, zip for Windows),
replace-by-rename writes, guarded tree removal and copying, and content
hashing. Extraction refuses members that would land outside the destination.
"""

import hashlib
import os
import shutil
import stat
import sys
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Iterable, List, Optional, Union

from haxekit.core.exceptions import HaxekitError

PathLike = Union[str, Path]

CHUNK_SIZE = 64 * 1024


class FilesystemError(HaxekitError):
    """A file system operation failed."""

    pass


class ArchiveExtractionError(FilesystemError):
    """An archive could not be read or unpacked."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """An archive member points outside the extraction directory."""

    pass


def is_relative_to(path: Path, parent: Path) -> bool:
    """True if path equals parent or lies below it."""
    try:
        path.relative_to(parent)
    except ValueError:
        return False
    return True


def list_visible_entries(path: PathLike) -> List[str]:
    """
    Sorted names of a directory's entries without dot-entries.

    Archives built on macOS often carry ``._*`` or ``.DS_Store`` entries next
    to the real payload directory.
    """
    return sorted(p.name for p in Path(path).iterdir() if not p.name.startswith("."))


def _check_members(names: Iterable[str], destination: Path) -> None:
    root = destination.resolve()
    for name in names:
        if not is_relative_to((root / name).resolve(), root):
            raise InsecureArchiveError(
                f"Refusing to extract '{name}': it resolves outside {destination}"
            )


def extract_tar_gz(archive_path: PathLike, destination: PathLike) -> Path:
    """
    Unpack a gzip tarball into destination, creating it if needed.

    Returns:
        destination as a Path

    Raises:
        InsecureArchiveError: A member escapes destination
        ArchiveExtractionError: The archive is unreadable or unpacking failed
    """
    archive_path = Path(archive_path)
    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)

    try:
        with tarfile.open(archive_path, "r:gz") as tar:
            _check_members(tar.getnames(), destination)
            if sys.version_info >= (3, 12):
                tar.extractall(destination, filter="data")
            else:
                tar.extractall(destination)
    except InsecureArchiveError:
        raise
    except (tarfile.TarError, OSError) as e:
        raise ArchiveExtractionError(f"Cannot extract {archive_path.name}: {e}") from e

    return destination


def extract_zip(archive_path: PathLike, destination: PathLike) -> Path:
    """
    Unpack a zip archive into destination, creating it if needed.

    Returns:
        destination as a Path

    Raises:
        InsecureArchiveError: A member escapes destination
        ArchiveExtractionError: The archive is unreadable or unpacking failed
    """
    archive_path = Path(archive_path)
    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)

    try:
        with zipfile.ZipFile(archive_path) as zf:
            _check_members(zf.namelist(), destination)
            zf.extractall(destination)
    except InsecureArchiveError:
        raise
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveExtractionError(f"Cannot extract {archive_path.name}: {e}") from e

    return destination


def atomic_write(
    file_path: PathLike, content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Replace file_path with content in one rename.

    Readers see either the previous file or the complete new one. The
    temporary file lives next to the target so the rename stays on one
    file system.
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    tmp_path = Path(tmp_name)
    mode = "w" if isinstance(content, str) else "wb"

    try:
        with open(fd, mode, encoding=encoding if mode == "w" else None) as f:
            f.write(content)
        os.replace(tmp_path, file_path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def _clear_readonly(func, path, _exc):
    # Windows refuses to delete read-only files
    os.chmod(path, stat.S_IWRITE)
    func(path)


def safe_rmtree(path: PathLike, require_prefix: Optional[PathLike] = None) -> None:
    """
    Delete a directory tree; a missing path is not an error.

    Args:
        path: Directory to delete
        require_prefix: If given, path must lie below this directory

    Raises:
        ValueError: path is outside require_prefix
        FilesystemError: path is a file, or deletion failed
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, prefix):
            raise ValueError(
                f"Refusing to delete {path}: not under required prefix {prefix}"
            )

    if not path.exists():
        return
    if not path.is_dir():
        raise FilesystemError(f"Not a directory: {path}")

    try:
        if os.name == "nt":
            shutil.rmtree(path, onerror=_clear_readonly)
        else:
            shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError(f"Cannot delete {path}: {e}") from e


def recursive_copy(source: PathLike, destination: PathLike) -> None:
    """
    Copy the tree at source into destination, merging with existing content.

    Symlinks are copied as links, which keeps the relative ``lib*.dylib``
    links of the Neko distribution intact.
    """
    source = Path(source)
    if not source.exists():
        raise FilesystemError(f"Source does not exist: {source}")
    if not source.is_dir():
        raise FilesystemError(f"Source is not a directory: {source}")

    shutil.copytree(source, Path(destination), symlinks=True, dirs_exist_ok=True)


def compute_file_hash(file_path: PathLike, algorithm: str = "sha256") -> str:
    """Hex digest of a file's content."""
    file_path = Path(file_path)
    if not file_path.is_file():
        raise FilesystemError(f"File not found: {file_path}")

    hasher = hashlib.new(algorithm)
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


__all__ = [
    "FilesystemError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "is_relative_to",
    "list_visible_entries",
    "extract_tar_gz",
    "extract_zip",
    "atomic_write",
    "safe_rmtree",
    "recursive_copy",
    "compute_file_hash",
]
