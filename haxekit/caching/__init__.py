"""
haxelib dependency caching for haxekit.

Modules:
    hashing: Order-independent fingerprints of dependency manifests
    remote: Archive cache storing haxelib directory snapshots by key
    haxelib: Cache key derivation and the restore/save protocol
"""

from .hashing import hash_files, match_files
from .remote import ArchiveCache
from .haxelib import (
    PersistedCacheState,
    create_haxelib_key,
    restore_haxelib,
    save_haxelib,
)

__all__ = [
    "hash_files",
    "match_files",
    "ArchiveCache",
    "PersistedCacheState",
    "create_haxelib_key",
    "restore_haxelib",
    "save_haxelib",
]
