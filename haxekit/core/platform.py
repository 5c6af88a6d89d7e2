"""
Host platform detection for haxekit.

Haxe and Neko release archives are named after a platform id such as
``linux64``, ``osx`` or ``win64``. This module maps the host operating system
and CPU architecture onto that naming convention.

Usage:
    from haxekit.core.platform import detect_platform

    platform_id = detect_platform()
    print(platform_id.os, platform_id.arch)   # e.g. 'linux', '64'
    print(platform_id.target())               # e.g. 'linux64'
"""

import functools
import platform
import sys
from dataclasses import dataclass
from typing import Optional

from haxekit.core.exceptions import UnsupportedArchError, UnsupportedPlatformError

# Raw OS identifier (sys.platform) -> toolchain OS id
OS_MAP = {
    "linux": "linux",
    "darwin": "osx",
    "win32": "win",
}

# platform.machine() spellings -> normalized architecture
MACHINE_MAP = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
}

# Normalized architecture -> toolchain arch suffix
ARCH_MAP = {
    "x64": "64",
}

# Architectures only published as universal binaries on these OS ids
UNIVERSAL_ARCH_OS = {
    "arm64": {"osx"},
}


@dataclass(frozen=True)
class PlatformId:
    """
    Host platform in the Haxe release naming convention.

    Attributes:
        os: Operating system id ('linux', 'osx', 'win')
        arch: Architecture suffix ('64')
    """

    os: str
    arch: str

    def target(self) -> str:
        """
        Get the default archive target for this platform.

        Example:
            >>> PlatformId("linux", "64").target()
            'linux64'
        """
        return f"{self.os}{self.arch}"

    def __str__(self) -> str:
        return self.target()


def resolve_os(system: str) -> str:
    """
    Map a raw OS identifier to the toolchain OS id.

    Args:
        system: Raw identifier as reported by ``sys.platform``

    Raises:
        UnsupportedPlatformError: If the OS has no Haxe builds
    """
    os_name = OS_MAP.get(system.lower())
    if os_name is None:
        raise UnsupportedPlatformError(system)
    return os_name


def resolve_arch(machine: str, os_name: str) -> str:
    """
    Map a CPU architecture to the toolchain arch suffix.

    ``arm64`` is accepted on osx only, where releases ship universal binaries.

    Args:
        machine: Raw machine name as reported by ``platform.machine()``
        os_name: Already resolved toolchain OS id

    Raises:
        UnsupportedArchError: If no build exists for this arch on this OS
    """
    arch = MACHINE_MAP.get(machine.lower(), machine.lower())

    if arch in ARCH_MAP:
        return ARCH_MAP[arch]

    if os_name in UNIVERSAL_ARCH_OS.get(arch, set()):
        return "64"

    raise UnsupportedArchError(machine, os_name)


def resolve_platform(
    system: Optional[str] = None, machine: Optional[str] = None
) -> PlatformId:
    """
    Resolve a PlatformId from raw OS and machine identifiers.

    Args:
        system: Raw OS identifier (default: ``sys.platform``)
        machine: Raw machine name (default: ``platform.machine()``)

    Returns:
        PlatformId for the given host

    Raises:
        UnsupportedPlatformError: Unknown operating system
        UnsupportedArchError: Unknown architecture, or arm64 outside osx

    Example:
        >>> resolve_platform("darwin", "arm64")
        PlatformId(os='osx', arch='64')
    """
    if system is None:
        system = sys.platform
    if machine is None:
        machine = platform.machine()

    os_name = resolve_os(system)
    return PlatformId(os=os_name, arch=resolve_arch(machine, os_name))


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformId:
    """
    Detect the current host platform.

    This function is cached - it only runs detection once per process.
    """
    return resolve_platform()


def clear_platform_cache():
    """
    Clear the platform detection cache.

    Forces the next call to detect_platform() to re-detect.
    """
    detect_platform.cache_clear()


__all__ = [
    "PlatformId",
    "resolve_os",
    "resolve_arch",
    "resolve_platform",
    "detect_platform",
    "clear_platform_cache",
]
