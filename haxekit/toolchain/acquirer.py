"""
Toolchain acquisition: tool cache lookup, download, extraction, registration.

The tool cache is the idempotency boundary. Once an asset's (name, version)
is registered, later acquisitions return the cached root without touching
the network or the file system.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Optional

from haxekit.core.directory import get_work_dir
from haxekit.core.download import DownloadProgress, download_archive
from haxekit.core.exceptions import (
    AmbiguousToolRootError,
    ToolRootNotFoundError,
    UnknownArchiveExtensionError,
)
from haxekit.core.filesystem import (
    extract_tar_gz,
    extract_zip,
    list_visible_entries,
    safe_rmtree,
)
from haxekit.core.tool_cache import ToolCache
from haxekit.toolchain.assets import Asset

logger = logging.getLogger(__name__)

EXTRACTORS: Dict[str, Callable[[Path, Path], Path]] = {
    ".tar.gz": extract_tar_gz,
    ".zip": extract_zip,
}

# Versions naming a moving build; a cached copy would never be refreshed
MUTABLE_VERSIONS = {"latest"}


def find_tool_root(extract_path: Path, nested: bool) -> Path:
    """
    Locate the installation root inside an extracted archive.

    Nested archives must contain exactly one visible top-level entry, e.g.
    ``haxe-4.0.5-linux64/haxe_20191217082701_67feacebc``. Dot-entries are
    ignored.

    Raises:
        ToolRootNotFoundError: The extraction directory is empty
        AmbiguousToolRootError: More than one visible entry was found
    """
    if not nested:
        return extract_path

    entries = list_visible_entries(extract_path)
    if not entries:
        raise ToolRootNotFoundError(extract_path)
    if len(entries) > 1:
        raise AmbiguousToolRootError(extract_path, entries)

    return extract_path / entries[0]


class Acquirer:
    """
    Fetches toolchain assets into the tool cache.

    Example:
        >>> acquirer = Acquirer()
        >>> neko_root = acquirer.acquire(NekoAsset("2.4.1"))
        >>> haxe_root = acquirer.acquire(HaxeAsset("4.0.5"))
    """

    def __init__(
        self,
        tool_cache: Optional[ToolCache] = None,
        work_dir: Optional[Path] = None,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    ):
        """
        Initialize acquirer.

        Args:
            tool_cache: Tool cache to consult and populate (default: ToolCache())
            work_dir: Scratch directory for downloads and staging
                (default: RUNNER_TEMP or ~/.haxekit/work)
            progress_callback: Optional download progress callback
        """
        self.tool_cache = tool_cache or ToolCache()
        self.work_dir = Path(work_dir) if work_dir else get_work_dir()
        self.downloads_dir = self.work_dir / "downloads"
        self.progress_callback = progress_callback

    def staging_path(self, asset: Asset) -> Path:
        """Deterministic extraction directory for an asset."""
        return self.work_dir / asset.archive_base_name

    def acquire(self, asset: Asset) -> Path:
        """
        Return the installation root of an asset, downloading it on a cache miss.

        Args:
            asset: Asset to acquire

        Returns:
            Path to the cached installation root

        Raises:
            DownloadError: If the archive cannot be downloaded
            ArchiveExtractionError: If the archive cannot be extracted
            UnknownArchiveExtensionError: If no extractor matches the asset
            ToolRootNotFoundError: If the installation root cannot be located
        """
        if asset.version not in MUTABLE_VERSIONS:
            cached = self.tool_cache.find(asset.name, asset.version)
            if cached is not None:
                logger.info(f"[{asset.name}] found = {cached}")
                return cached

        extractor = EXTRACTORS.get(asset.archive_ext)
        if extractor is None:
            raise UnknownArchiveExtensionError(asset.archive_ext)

        logger.info(f"[{asset.name}] dl start = {asset.version} ({asset.download_url})")
        archive_path = download_archive(
            asset.download_url, self.downloads_dir, self.progress_callback
        )

        try:
            staging = self.staging_path(asset)
            safe_rmtree(staging)
            extract_path = extractor(archive_path, staging)

            tool_root = find_tool_root(Path(extract_path), asset.is_nested)
            logger.debug(f"found toolRoot: {tool_root}")

            return self.tool_cache.cache_dir(tool_root, asset.name, asset.version)
        finally:
            archive_path.unlink(missing_ok=True)


__all__ = ["Acquirer", "find_tool_root", "EXTRACTORS", "MUTABLE_VERSIONS"]
