"""
Entry point for running haxekit as a module.

Usage: python -m haxekit [command] [options]
"""

from haxekit.cli.parser import main

if __name__ == "__main__":
    main()
