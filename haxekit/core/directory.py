"""
Directory layout for haxekit.

Directory Structure:
    Global home (~/.haxekit/ or %USERPROFILE%\\.haxekit\\, HAXEKIT_HOME overrides):
        - tools/      : Extracted toolchains keyed by name/version/arch
        - work/       : Staging directories for archive extraction
        - archives/   : Local archive cache for haxelib dependencies
        - lock/       : Lock files guarding shared registries

    On a CI runner the tool cache and work directory follow the runner's
    RUNNER_TOOL_CACHE and RUNNER_TEMP instead.

    Project-local (<workspace>/.haxekit/):
        - state.json  : Values handed from the setup step to the post step
"""

import os
from pathlib import Path
from typing import Optional

from haxekit.core.exceptions import ConfigError


def get_global_cache_dir() -> Path:
    """
    Get the haxekit home directory.

    Returns:
        Path: HAXEKIT_HOME if set, otherwise
            - Windows: %USERPROFILE%\\.haxekit
            - Linux/macOS: ~/.haxekit/
    """
    override = os.environ.get("HAXEKIT_HOME")
    if override:
        return Path(override)

    if os.name == "nt":
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise ConfigError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine haxekit home directory."
            )
        return Path(user_profile) / ".haxekit"
    return Path.home() / ".haxekit"


def get_tool_cache_dir() -> Path:
    """Get the root of the tool cache (RUNNER_TOOL_CACHE on CI runners)."""
    runner_cache = os.environ.get("RUNNER_TOOL_CACHE")
    if runner_cache:
        return Path(runner_cache)
    return get_global_cache_dir() / "tools"


def get_work_dir() -> Path:
    """Get the scratch directory for downloads and staging (RUNNER_TEMP on CI)."""
    runner_temp = os.environ.get("RUNNER_TEMP")
    if runner_temp:
        return Path(runner_temp)
    return get_global_cache_dir() / "work"


def get_archive_cache_dir() -> Path:
    """Get the directory holding cached haxelib archives."""
    return get_global_cache_dir() / "archives"


def get_project_local_dir(workspace: Optional[Path] = None) -> Path:
    """
    Get the project-local .haxekit directory.

    Args:
        workspace: Project root (default: GITHUB_WORKSPACE or the current directory)
    """
    if workspace is None:
        workspace = Path(os.environ.get("GITHUB_WORKSPACE") or Path.cwd())
    return Path(workspace) / ".haxekit"


def get_state_file(workspace: Optional[Path] = None) -> Path:
    """Get the default path of the cross-step state file."""
    return get_project_local_dir(workspace) / "state.json"


__all__ = [
    "get_global_cache_dir",
    "get_tool_cache_dir",
    "get_work_dir",
    "get_archive_cache_dir",
    "get_project_local_dir",
    "get_state_file",
]
