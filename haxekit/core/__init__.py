"""
Core functionality for haxekit.

This package contains the foundational modules that other components depend on.
"""

from .platform import (
    PlatformId,
    resolve_platform,
    detect_platform,
    clear_platform_cache,
)

from .tool_cache import ToolCache

from .state import StepState

from .environment import RunnerEnvironment

from .exceptions import (
    HaxekitError,
    PlatformError,
    UnsupportedPlatformError,
    UnsupportedArchError,
    AcquisitionError,
    UnknownArchiveExtensionError,
    ToolRootNotFoundError,
    AmbiguousToolRootError,
    ToolCacheError,
    DependencyCacheError,
    NoDependencyFilesMatchedError,
    CacheDirMissingAtSaveTimeError,
    ArchiveCacheError,
    StateError,
    ConfigError,
    InvalidVersionError,
    ProcessExecutionError,
)

__all__ = [
    "PlatformId",
    "resolve_platform",
    "detect_platform",
    "clear_platform_cache",
    "ToolCache",
    "StepState",
    "RunnerEnvironment",
    "HaxekitError",
    "PlatformError",
    "UnsupportedPlatformError",
    "UnsupportedArchError",
    "AcquisitionError",
    "UnknownArchiveExtensionError",
    "ToolRootNotFoundError",
    "AmbiguousToolRootError",
    "ToolCacheError",
    "DependencyCacheError",
    "NoDependencyFilesMatchedError",
    "CacheDirMissingAtSaveTimeError",
    "ArchiveCacheError",
    "StateError",
    "ConfigError",
    "InvalidVersionError",
    "ProcessExecutionError",
]
