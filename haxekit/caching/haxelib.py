"""
haxelib dependency cache: key derivation plus the two-phase restore/save protocol.

The restore phase runs in the setup step and the save phase in the post step,
a separate process. Values are handed over through StepState with this schema:

    PRIMARY_KEY     str   key computed from the dependency manifests
    HAXELIB_PATH    str   haxelib repository directory
    RESTORE_RESULT  str   key that was restored; absent on a cache miss
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from haxekit.caching.hashing import hash_files
from haxekit.caching.remote import ALREADY_EXISTS, ArchiveCache
from haxekit.core.environment import RunnerEnvironment
from haxekit.core.exceptions import (
    CacheDirMissingAtSaveTimeError,
    NoDependencyFilesMatchedError,
)
from haxekit.core.state import StepState

logger = logging.getLogger(__name__)

KEY_PREFIX = "haxelib-cache"


class State(str, Enum):
    """Names of the values persisted between the setup and post steps."""

    CACHE_PRIMARY_KEY = "PRIMARY_KEY"
    CACHE_RESTORE_RESULT = "RESTORE_RESULT"
    CACHE_HAXELIB_PATH = "HAXELIB_PATH"


@dataclass
class PersistedCacheState:
    """Cache state as read back by the post step."""

    primary_key: str
    restore_result: Optional[str]
    haxelib_path: str

    @classmethod
    def load(cls, state: StepState) -> "PersistedCacheState":
        return cls(
            primary_key=state.get_state(State.CACHE_PRIMARY_KEY.value),
            restore_result=state.get_state(State.CACHE_RESTORE_RESULT.value) or None,
            haxelib_path=state.get_state(State.CACHE_HAXELIB_PATH.value),
        )


def create_haxelib_key(
    platform: str, version: str, cache_dependency_path: str, root: Optional[Path] = None
) -> str:
    """
    Build the cache key for a set of dependency manifests.

    Args:
        platform: Haxe target of the installation (e.g. 'linux64')
        version: Haxe version or nightly token
        cache_dependency_path: Glob pattern(s) of the manifests
        root: Directory the pattern is resolved against (default: cwd)

    Raises:
        NoDependencyFilesMatchedError: If the pattern matches no files

    Example:
        >>> create_haxelib_key("linux64", "4.0.5", "haxelib.json")
        'haxelib-cache-linux64-haxe4.0.5-3f7c...'
    """
    file_hash = hash_files(cache_dependency_path, root)
    if not file_hash:
        raise NoDependencyFilesMatchedError(cache_dependency_path)

    return f"{KEY_PREFIX}-{platform}-haxe{version}-{file_hash}"


def restore_haxelib(
    primary_key: str,
    haxelib_path: Path,
    state: Optional[StepState] = None,
    archive_cache: Optional[ArchiveCache] = None,
    env: Optional[RunnerEnvironment] = None,
) -> bool:
    """
    Restore phase: persist the key and path, then try to restore the cache.

    Values left by an earlier run whose post step never ran are discarded
    first. The key and path are saved before the restore is attempted so the
    post step always has them. A miss is not an error.

    Returns:
        True on a cache hit (also published as the 'cache-hit' output)
    """
    state = state or StepState()
    archive_cache = archive_cache or ArchiveCache()
    env = env or RunnerEnvironment()

    state.clear()
    state.save_state(State.CACHE_PRIMARY_KEY.value, primary_key)
    state.save_state(State.CACHE_HAXELIB_PATH.value, haxelib_path)

    restore_result = archive_cache.restore([haxelib_path], primary_key, [primary_key])
    env.set_output("cache-hit", bool(restore_result))

    if not restore_result:
        logger.info("haxelib cache is not found")
        return False

    state.save_state(State.CACHE_RESTORE_RESULT.value, restore_result)
    logger.info(f"Cache restored from key: {restore_result}")
    return True


def save_haxelib(
    state: Optional[StepState] = None,
    archive_cache: Optional[ArchiveCache] = None,
) -> bool:
    """
    Save phase: upload the haxelib directory unless the exact key was restored.

    Raises:
        CacheDirMissingAtSaveTimeError: If the haxelib directory no longer exists

    Returns:
        True if a new entry was written or another run already wrote the same
        key, False if saving was skipped
    """
    state = state or StepState()
    archive_cache = archive_cache or ArchiveCache()

    persisted = PersistedCacheState.load(state)

    if not persisted.haxelib_path or not Path(persisted.haxelib_path).exists():
        raise CacheDirMissingAtSaveTimeError(persisted.haxelib_path)

    if persisted.primary_key == persisted.restore_result:
        logger.info(
            f"Cache hit occurred on the primary key {persisted.primary_key}, "
            "not saving cache."
        )
        state.clear()
        return False

    cache_id = archive_cache.save([persisted.haxelib_path], persisted.primary_key)
    state.clear()
    if cache_id == ALREADY_EXISTS:
        return True

    logger.info(f"Cache saved with the key: {persisted.primary_key}")
    return True


__all__ = [
    "KEY_PREFIX",
    "State",
    "PersistedCacheState",
    "create_haxelib_key",
    "restore_haxelib",
    "save_haxelib",
]
