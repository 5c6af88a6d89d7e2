"""
Centralized exception hierarchy for haxekit.

Every error raised by the toolchain and dependency-cache engines derives from
HaxekitError so the command-line layer can report any of them uniformly.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class HaxekitError(Exception):
    """Base exception for all haxekit errors."""

    pass


# ============================================================================
# Platform Exceptions
# ============================================================================


class PlatformError(HaxekitError):
    """Base exception for host platform resolution errors."""

    pass


class UnsupportedPlatformError(PlatformError):
    """Raised when the host operating system has no Haxe builds."""

    def __init__(self, platform_name: str):
        self.platform_name = platform_name
        super().__init__(f"{platform_name} not supported")


class UnsupportedArchError(PlatformError):
    """Raised when the host CPU architecture has no Haxe builds on this OS."""

    def __init__(self, arch: str, os_name: str = ""):
        self.arch = arch
        self.os_name = os_name
        msg = f"{arch} not supported"
        if os_name:
            msg += f" on {os_name}"
        super().__init__(msg)


# ============================================================================
# Acquisition Exceptions
# ============================================================================


class AcquisitionError(HaxekitError):
    """Base exception for toolchain download and extraction errors."""

    pass


class UnknownArchiveExtensionError(AcquisitionError):
    """Raised when an asset reports an archive extension with no extractor."""

    def __init__(self, ext: str):
        self.ext = ext
        super().__init__(f"unknown ext: {ext}")


class ToolRootNotFoundError(AcquisitionError):
    """Raised when the installation root cannot be located after extraction."""

    def __init__(self, extract_path, message: str = ""):
        self.extract_path = extract_path
        super().__init__(message or f"tool directory not found: {extract_path}")


class AmbiguousToolRootError(ToolRootNotFoundError):
    """Raised when a nested archive unpacks into more than one top-level entry."""

    def __init__(self, extract_path, entries):
        self.entries = list(entries)
        super().__init__(
            extract_path,
            f"expected exactly one directory in {extract_path}, "
            f"found: {', '.join(self.entries)}",
        )


# ============================================================================
# Tool Cache Exceptions
# ============================================================================


class ToolCacheError(HaxekitError):
    """Raised when the local tool cache cannot be read or written."""

    pass


# ============================================================================
# Dependency Cache Exceptions
# ============================================================================


class DependencyCacheError(HaxekitError):
    """Base exception for haxelib dependency cache errors."""

    pass


class NoDependencyFilesMatchedError(DependencyCacheError):
    """Raised when cache-dependency-path matches no files."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(
            "Some specified paths were not resolved, unable to cache dependencies. "
            f"Pattern: {pattern}"
        )


class CacheDirMissingAtSaveTimeError(DependencyCacheError):
    """Raised when the haxelib directory vanished between restore and save."""

    def __init__(self, path):
        self.path = path
        super().__init__(
            f"Cache folder path is retrieved but doesn't exist on disk: {path}"
        )


class ArchiveCacheError(DependencyCacheError):
    """Raised when the archive cache backend fails to read or write an entry."""

    pass


# ============================================================================
# State, Configuration and Process Exceptions
# ============================================================================


class StateError(HaxekitError):
    """Raised when persisted step state cannot be read or written."""

    pass


class ConfigError(HaxekitError):
    """Configuration parsing or validation error."""

    pass


class InvalidVersionError(ConfigError):
    """Raised when haxe-version is neither a semantic version nor a nightly token."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(
            f"Invalid haxe-version: '{version}' "
            "(expected MAJOR.MINOR.PATCH, a nightly build id or 'latest')"
        )


class ProcessExecutionError(HaxekitError):
    """Raised when an external command fails to start or exits non-zero."""

    def __init__(self, command, exit_code=None, stderr: str = ""):
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        if exit_code is None:
            msg = f"Unable to run command: {' '.join(self.command)}"
        else:
            msg = f"Command failed with exit code {exit_code}: {' '.join(self.command)}"
        if stderr:
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)
