"""
Toolchain management for haxekit.

This package provides:
- Release asset descriptors for Haxe and Neko
- Download, extraction and tool cache registration
- Environment wiring and haxelib setup
"""

from haxekit.toolchain.assets import (
    Asset,
    HaxeAsset,
    NekoAsset,
    resolve_neko_version,
)
from haxekit.toolchain.acquirer import Acquirer, find_tool_root
from haxekit.toolchain.wiring import (
    ToolchainInstallation,
    fix_haxelib_dylib,
    setup_toolchain,
)

__all__ = [
    "Asset",
    "HaxeAsset",
    "NekoAsset",
    "resolve_neko_version",
    "Acquirer",
    "find_tool_root",
    "ToolchainInstallation",
    "fix_haxelib_dylib",
    "setup_toolchain",
]
