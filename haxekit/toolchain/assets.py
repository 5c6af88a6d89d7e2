"""
Release asset descriptors for the Haxe toolchain.

An asset describes one fetchable archive: where it is hosted, what it is
called, which extension it has and whether its payload is wrapped in an
extra directory with an unpredictable name. Descriptors are pure functions of
(name, version, nightly flag, platform) and hold no mutable state.

Examples of resolved URLs:
    https://github.com/HaxeFoundation/neko/releases/download/v2-4-1/neko-2.4.1-linux64.tar.gz
    https://github.com/HaxeFoundation/neko/releases/download/v2-4-1/neko-2.4.1-osx-universal.tar.gz
    https://github.com/HaxeFoundation/haxe/releases/download/4.0.5/haxe-4.0.5-linux64.tar.gz
    https://github.com/HaxeFoundation/haxe/releases/download/3.4.7/haxe-3.4.7-win.zip
    https://build.haxe.org/builds/haxe/linux64/haxe_latest.tar.gz
"""

from abc import ABC, abstractmethod
from typing import Optional

from haxekit.core.exceptions import UnsupportedPlatformError
from haxekit.core.platform import PlatformId, detect_platform

GITHUB_BASE_URL = "https://github.com/HaxeFoundation"
NIGHTLY_BASE_URL = "https://build.haxe.org/builds/haxe"

# Haxe 3 only supports Neko 2.1
NEKO_VERSION_HAXE3 = "2.1.0"
NEKO_VERSION_DEFAULT = "2.4.1"

# OS id -> archive extension
ARCHIVE_EXT = {
    "win": ".zip",
}
DEFAULT_ARCHIVE_EXT = ".tar.gz"

# OS id -> build.haxe.org channel directory
NIGHTLY_CHANNELS = {
    "osx": "mac",
    "linux": "linux64",
    "win": "windows64",
}


def resolve_neko_version(haxe_version: str) -> str:
    """
    Get the Neko version haxelib needs for a Haxe version.

    Example:
        >>> resolve_neko_version("3.4.7")
        '2.1.0'
        >>> resolve_neko_version("4.0.5")
        '2.4.1'
    """
    return NEKO_VERSION_HAXE3 if haxe_version.startswith("3.") else NEKO_VERSION_DEFAULT


class Asset(ABC):
    """
    A downloadable toolchain archive.

    Attributes:
        name: Tool name, also the tool cache key
        version: Version string (or nightly build token)
        platform: Host platform the archive is built for
    """

    def __init__(self, name: str, version: str, platform: Optional[PlatformId] = None):
        self.name = name
        self.version = version
        self.platform = platform or detect_platform()

    @property
    @abstractmethod
    def target(self) -> str:
        """Platform part of the archive name."""
        pass

    @property
    @abstractmethod
    def download_url(self) -> str:
        """Absolute URL of the archive."""
        pass

    @property
    @abstractmethod
    def archive_base_name(self) -> str:
        """Archive file name without extension, also the staging directory name."""
        pass

    @property
    @abstractmethod
    def is_nested(self) -> bool:
        """Whether the archive wraps its payload in one extra directory."""
        pass

    @property
    def archive_ext(self) -> str:
        return ARCHIVE_EXT.get(self.platform.os, DEFAULT_ARCHIVE_EXT)

    @property
    def archive_file_name(self) -> str:
        return f"{self.archive_base_name}{self.archive_ext}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, version={self.version!r}, target={self.target!r})"


class NekoAsset(Asset):
    """
    Neko virtual machine release archive.

    Neko is versioned independently of Haxe; haxelib runs on it.
    """

    def __init__(self, version: str, platform: Optional[PlatformId] = None):
        super().__init__("neko", version, platform)

    @classmethod
    def resolve_from_haxe_version(
        cls, haxe_version: str, platform: Optional[PlatformId] = None
    ) -> "NekoAsset":
        return cls(resolve_neko_version(haxe_version), platform)

    @property
    def target(self) -> str:
        # No 64bit build of Neko 2.1 exists for Windows
        if self.platform.os == "win" and self.version.startswith("2.1"):
            return self.platform.os

        if self.platform.os == "osx" and self.version.startswith("2.4"):
            return "osx-universal"

        return self.platform.target()

    @property
    def tag(self) -> str:
        """
        Release tag for the version.

        Example:
            >>> NekoAsset("2.4.1").tag
            'v2-4-1'
        """
        return "v" + self.version.replace(".", "-")

    @property
    def download_url(self) -> str:
        return f"{GITHUB_BASE_URL}/neko/releases/download/{self.tag}/{self.archive_file_name}"

    @property
    def archive_base_name(self) -> str:
        return f"neko-{self.version}-{self.target}"

    @property
    def is_nested(self) -> bool:
        return True


class HaxeAsset(Asset):
    """
    Haxe compiler archive, either a tagged release or a nightly build.

    In nightly mode the version is an opaque build token such as
    ``2019-12-17_development_67feace`` or ``latest``.
    """

    def __init__(
        self, version: str, nightly: bool = False, platform: Optional[PlatformId] = None
    ):
        super().__init__("haxe", version, platform)
        self.nightly = nightly

    @property
    def target(self) -> str:
        # Universal binary on osx
        if self.platform.os == "osx":
            return self.platform.os

        # Haxe 3 pairs with Neko 2.1, which is 32bit only on Windows
        if self.platform.os == "win" and self.version.startswith("3."):
            return self.platform.os

        return self.platform.target()

    @property
    def nightly_channel(self) -> str:
        channel = NIGHTLY_CHANNELS.get(self.platform.os)
        if channel is None:
            raise UnsupportedPlatformError(self.platform.os)
        return channel

    @property
    def download_url(self) -> str:
        if self.nightly:
            return f"{NIGHTLY_BASE_URL}/{self.nightly_channel}/{self.archive_file_name}"
        return f"{GITHUB_BASE_URL}/haxe/releases/download/{self.version}/{self.archive_file_name}"

    @property
    def archive_base_name(self) -> str:
        if self.nightly:
            return f"haxe_{self.version}"
        return f"haxe-{self.version}-{self.target}"

    @property
    def is_nested(self) -> bool:
        return True


__all__ = [
    "Asset",
    "NekoAsset",
    "HaxeAsset",
    "resolve_neko_version",
    "GITHUB_BASE_URL",
    "NIGHTLY_BASE_URL",
]
