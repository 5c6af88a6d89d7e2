"""
Content fingerprints of dependency manifests.

The fingerprint depends on file contents only: every matched file is hashed,
the digests are sorted and hashed again, so the result does not change with
file names or with the order a file system enumerates them in.
"""

import glob
import hashlib
import logging
from pathlib import Path
from typing import List, Optional, Set

from haxekit.core.filesystem import compute_file_hash

logger = logging.getLogger(__name__)


def _expand(pattern: str, root: Path) -> Set[Path]:
    matches = glob.glob(pattern, root_dir=root, recursive=True)
    return {(root / match).resolve() for match in matches}


def match_files(patterns: str, root: Optional[Path] = None) -> List[Path]:
    """
    Resolve newline-separated glob patterns to a sorted list of files.

    Lines starting with ``!`` remove matches of earlier lines; blank lines
    and lines starting with ``#`` are ignored.

    Args:
        patterns: One or more glob patterns, ``**`` allowed
        root: Directory relative patterns are resolved against (default: cwd)

    Example:
        >>> match_files("haxelib.json\\n**/*.hxml\\n!test/**")
    """
    root = Path(root) if root else Path.cwd()
    included: Set[Path] = set()

    for line in patterns.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("!"):
            included -= _expand(line[1:].strip(), root)
        else:
            included |= _expand(line, root)

    return sorted(path for path in included if path.is_file())


def hash_files(patterns: str, root: Optional[Path] = None) -> str:
    """
    Compute an order-independent SHA-256 fingerprint of the matched files.

    Returns:
        Hex digest, or an empty string if no file matched
    """
    files = match_files(patterns, root)
    if not files:
        logger.debug(f"No files matched: {patterns!r}")
        return ""

    digests = sorted(compute_file_hash(path, "sha256") for path in files)
    combined = hashlib.sha256()
    for digest in digests:
        combined.update(digest.encode("ascii"))

    logger.debug(f"Hashed {len(files)} file(s) for {patterns!r}")
    return combined.hexdigest()


__all__ = ["match_files", "hash_files"]
