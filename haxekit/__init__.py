"""
haxekit - Haxe toolchain provisioning with haxelib dependency caching.
"""

__version__ = "0.1.0"
