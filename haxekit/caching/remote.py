"""
Archive cache backing the haxelib dependency cache.

Entries are gzip tarballs stored under a cache directory and indexed by key in
``index.json``. Writes are serialised with a file lock: the first writer of a
key wins and later writers get ``-1`` back instead of an error.

Usage:
    from haxekit.caching.remote import ArchiveCache

    cache = ArchiveCache()
    hit = cache.restore([haxelib_path], primary_key)
    ...
    cache.save([haxelib_path], primary_key)
"""

import json
import logging
import shutil
import tarfile
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from filelock import FileLock, Timeout

from haxekit.core.directory import get_archive_cache_dir
from haxekit.core.exceptions import ArchiveCacheError
from haxekit.core.filesystem import atomic_write, extract_tar_gz, recursive_copy

logger = logging.getLogger(__name__)

INDEX_VERSION = 1
ALREADY_EXISTS = -1


class ArchiveCache:
    """
    Key-addressed store of directory snapshots.

    Attributes:
        root: Directory holding the index and tarballs
    """

    def __init__(self, root: Optional[Path] = None, lock_timeout: int = 300):
        self.root = Path(root) if root else get_archive_cache_dir()
        self.index_path = self.root / "index.json"
        self.lock_path = self.root / ".locks" / "index.lock"
        self.lock_timeout = lock_timeout

    def _load_index(self) -> dict:
        if not self.index_path.exists():
            return {"version": INDEX_VERSION, "next_id": 1, "entries": {}}

        try:
            with open(self.index_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ArchiveCacheError(f"Failed to load archive cache index: {e}") from e

        if data.get("version") != INDEX_VERSION or "entries" not in data:
            raise ArchiveCacheError(f"Unsupported archive cache index: {self.index_path}")

        return data

    @contextmanager
    def _lock(self):
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.lock_path, timeout=self.lock_timeout)

        try:
            with lock:
                yield
        except Timeout as e:
            raise ArchiveCacheError(
                f"Could not acquire archive cache lock within {self.lock_timeout} seconds"
            ) from e

    @staticmethod
    def _normalize_paths(paths: Sequence) -> List[str]:
        return [str(Path(p).resolve()) for p in paths]

    def _find_entry(
        self, entries: dict, paths: List[str], primary_key: str, restore_keys: Sequence[str]
    ) -> Optional[str]:
        candidates = {k: e for k, e in entries.items() if e["paths"] == paths}

        if primary_key in candidates:
            return primary_key

        for prefix in restore_keys:
            matches = [k for k in candidates if k.startswith(prefix)]
            if matches:
                return max(matches, key=lambda k: candidates[k]["created"])

        return None

    def restore(
        self,
        paths: Sequence,
        primary_key: str,
        restore_keys: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        """
        Restore a snapshot into paths.

        Args:
            paths: Directories the snapshot was saved from
            primary_key: Exact key to look up first
            restore_keys: Key prefixes tried in order when the exact key misses;
                the newest matching entry wins

        Returns:
            Key of the restored entry, or None on a miss
        """
        normalized = self._normalize_paths(paths)
        entries = self._load_index()["entries"]

        key = self._find_entry(entries, normalized, primary_key, restore_keys or [])
        if key is None:
            logger.debug(f"Archive cache miss: {primary_key}")
            return None

        archive = self.root / entries[key]["file"]
        logger.info(f"Restoring {archive.name} for key {key}")

        with tempfile.TemporaryDirectory(prefix="haxekit_restore_") as tmp:
            extract_tar_gz(archive, tmp)
            for index, target in enumerate(normalized):
                source = Path(tmp) / str(index)
                if source.is_dir():
                    recursive_copy(source, target)
                elif source.exists():
                    Path(target).parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(source, target)

        return key

    def save(self, paths: Sequence, key: str) -> int:
        """
        Save a snapshot of paths under key.

        Returns:
            Entry id, or -1 if the key already exists

        Raises:
            ArchiveCacheError: If a path does not exist
        """
        normalized = self._normalize_paths(paths)
        for path in normalized:
            if not Path(path).exists():
                raise ArchiveCacheError(f"Path does not exist, cannot cache: {path}")

        with self._lock():
            data = self._load_index()
            if key in data["entries"]:
                logger.info(f"Cache entry already exists for key {key}, not saving")
                return ALREADY_EXISTS

            entry_id = data["next_id"]
            file_name = f"{entry_id}.tar.gz"
            self.root.mkdir(parents=True, exist_ok=True)

            temp_archive = self.root / f".{file_name}.tmp"
            try:
                with tarfile.open(temp_archive, "w:gz") as tar:
                    for index, path in enumerate(normalized):
                        tar.add(path, arcname=str(index))
                temp_archive.replace(self.root / file_name)
            except (tarfile.TarError, OSError) as e:
                temp_archive.unlink(missing_ok=True)
                raise ArchiveCacheError(f"Failed to write cache entry {key}: {e}") from e

            data["entries"][key] = {
                "id": entry_id,
                "file": file_name,
                "paths": normalized,
                "created": datetime.now().isoformat(),
            }
            data["next_id"] = entry_id + 1
            atomic_write(self.index_path, json.dumps(data, indent=2))

        logger.debug(f"Saved cache entry {entry_id} for key {key}")
        return entry_id


__all__ = ["ArchiveCache", "ALREADY_EXISTS"]
