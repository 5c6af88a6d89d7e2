"""
Command-line interface for haxekit.
"""

from haxekit.cli.parser import CLI, main

__all__ = ["CLI", "main"]
