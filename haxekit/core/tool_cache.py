"""
Local tool cache keyed by (name, version).

Extracted toolchains are copied into ``<root>/<name>/<version>/<arch>`` and
recorded in a JSON registry guarded by a file lock, so repeated or concurrent
runs on the same host find an installation instead of downloading it again.

Layout:
    <root>/
        .haxekit-registry.json
        .locks/registry.lock
        haxe/4.0.5/x64/             : installation root
        haxe/4.0.5/x64.complete     : marker written after the copy finished
        neko/2.4.1/x64/
        neko/2.4.1/x64.complete
"""

import json
import logging
import platform
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from haxekit.core.directory import get_tool_cache_dir
from haxekit.core.exceptions import ToolCacheError
from haxekit.core.filesystem import atomic_write, recursive_copy, safe_rmtree
from haxekit.core.platform import MACHINE_MAP

logger = logging.getLogger(__name__)


def default_arch() -> str:
    """Normalized host machine name used as the last path component."""
    machine = platform.machine().lower()
    return MACHINE_MAP.get(machine, machine)


class ToolCache:
    """
    Registry of extracted tools with thread- and process-safe writes.

    Example:
        >>> cache = ToolCache()
        >>> root = cache.find("haxe", "4.0.5")
        >>> if root is None:
        ...     root = cache.cache_dir(extracted_root, "haxe", "4.0.5")
    """

    def __init__(
        self,
        root: Optional[Path] = None,
        arch: Optional[str] = None,
        lock_timeout: int = 300,
    ):
        """
        Initialize tool cache.

        Args:
            root: Cache root (default: RUNNER_TOOL_CACHE or ~/.haxekit/tools)
            arch: Architecture component of cache paths (default: host machine)
            lock_timeout: Timeout in seconds for acquiring the registry lock
        """
        self.root = (Path(root) if root else get_tool_cache_dir()).resolve()
        self.arch = arch or default_arch()
        self.registry_path = self.root / ".haxekit-registry.json"
        self.lock_path = self.root / ".locks" / "registry.lock"
        self.lock_timeout = lock_timeout

        logger.debug(f"Initialized tool cache at {self.root}")

    @staticmethod
    def _entry_id(name: str, version: str, arch: str) -> str:
        return f"{name}/{version}/{arch}"

    def _tool_path(self, name: str, version: str) -> Path:
        return self.root / name / version / self.arch

    def _marker_path(self, name: str, version: str) -> Path:
        return self.root / name / version / f"{self.arch}.complete"

    def _load_registry(self) -> dict:
        if not self.registry_path.exists():
            return {"version": 1, "tools": {}}

        try:
            with open(self.registry_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ToolCacheError(f"Failed to load tool cache registry: {e}") from e

        if "version" not in data or "tools" not in data:
            logger.warning("Invalid tool cache registry format, resetting")
            return {"version": 1, "tools": {}}

        return data

    def _save_registry(self, data: dict) -> None:
        try:
            atomic_write(self.registry_path, json.dumps(data, indent=2))
        except OSError as e:
            raise ToolCacheError(f"Failed to save tool cache registry: {e}") from e

    @contextmanager
    def _lock(self):
        """
        Acquire the exclusive registry lock.

        Raises:
            ToolCacheError: If the lock cannot be acquired within timeout
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.lock_path, timeout=self.lock_timeout)

        try:
            with lock:
                yield
        except Timeout as e:
            raise ToolCacheError(
                f"Could not acquire tool cache lock within {self.lock_timeout} seconds"
            ) from e

    def find(self, name: str, version: str) -> Optional[Path]:
        """
        Look up a registered installation.

        The record is trusted as is; installation contents are not re-verified.

        Returns:
            Installation root, or None if (name, version) is not cached
        """
        entry = self._load_registry()["tools"].get(
            self._entry_id(name, version, self.arch)
        )
        if entry is None or not self._marker_path(name, version).exists():
            logger.debug(f"Tool not cached: {name} {version}")
            return None

        return Path(entry["path"])

    def cache_dir(self, source_dir: Path, name: str, version: str) -> Path:
        """
        Copy an extracted installation into the cache and register it.

        An existing installation for the same (name, version) is replaced.

        Args:
            source_dir: Installation root to copy
            name: Tool name ('haxe', 'neko')
            version: Tool version or nightly token

        Returns:
            Path of the cached installation root
        """
        source_dir = Path(source_dir)
        if not source_dir.is_dir():
            raise ToolCacheError(f"Source directory does not exist: {source_dir}")

        dest = self._tool_path(name, version)
        marker = self._marker_path(name, version)

        with self._lock():
            marker.unlink(missing_ok=True)
            safe_rmtree(dest, require_prefix=self.root)
            recursive_copy(source_dir, dest)
            marker.write_text("", encoding="utf-8")

            data = self._load_registry()
            data["tools"][self._entry_id(name, version, self.arch)] = {
                "name": name,
                "version": version,
                "arch": self.arch,
                "path": str(dest),
                "installed": datetime.now().isoformat(),
            }
            self._save_registry(data)

        logger.info(f"[{name}] cached {version} at {dest}")
        return dest


__all__ = ["ToolCache", "default_arch"]
