"""
Command-line parser and dispatcher for haxekit.

Two subcommands map onto the two steps of a CI job:

    haxekit setup   install Neko and Haxe, wire the environment, restore the
                    haxelib cache
    haxekit post    save the haxelib cache after the build
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from haxekit import __version__

logger = logging.getLogger(__name__)

# Subcommand -> module exposing run(args) -> int
COMMANDS = {
    "setup": "haxekit.cli.commands.setup",
    "post": "haxekit.cli.commands.post",
}

EXIT_INTERRUPTED = 130


class CLI:
    """haxekit command-line interface."""

    def __init__(self):
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="haxekit",
            description="Install the Haxe toolchain and cache haxelib dependencies",
            epilog='Run "haxekit COMMAND --help" for the options of a command',
        )
        parser.add_argument(
            "--version", action="version", version=f"haxekit {__version__}"
        )

        verbosity = parser.add_mutually_exclusive_group()
        verbosity.add_argument(
            "-v", "--verbose", action="store_true", help="Log debug messages"
        )
        verbosity.add_argument(
            "-q", "--quiet", action="store_true", help="Log errors only"
        )

        parser.add_argument(
            "--config",
            type=Path,
            metavar="FILE",
            help="haxekit.yaml to read instead of the one in the project root",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="DIR",
            default=Path.cwd(),
            help="Project directory dependency globs are resolved in (default: cwd)",
        )

        commands = parser.add_subparsers(dest="command", metavar="COMMAND")

        setup = commands.add_parser(
            "setup",
            help="Install Neko and Haxe and restore the haxelib cache",
            description="Install Neko and Haxe, add them to the environment, "
            "run 'haxelib setup' and restore the haxelib dependency cache",
        )
        setup.add_argument(
            "--haxe-version",
            metavar="VERSION",
            help="Release such as 4.3.4, a nightly build id, or 'latest'",
        )
        setup.add_argument(
            "--cache-dependency-path",
            metavar="GLOB",
            help="Files whose content keys the haxelib cache (empty: no caching)",
        )

        post = commands.add_parser(
            "post",
            help="Save the haxelib cache",
            description="Save the haxelib dependency cache unless the setup "
            "step restored it from the exact same key",
        )
        post.add_argument(
            "--cache-dependency-path",
            metavar="GLOB",
            help="Same value as given to setup (empty: no caching)",
        )

        return parser

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Parse args and run the selected command.

        Returns:
            Process exit code: 0 on success, 1 on failure, 130 when interrupted
        """
        options = self.parse_args(args)
        configure_logging(verbose=options.verbose, quiet=options.quiet)

        if options.command is None:
            self.parser.print_help()
            return 1

        try:
            module = importlib.import_module(COMMANDS[options.command])
            return module.run(options)
        except KeyboardInterrupt:
            logger.info("Interrupted")
            return EXIT_INTERRUPTED
        except Exception as e:
            logger.error(f"Unexpected error: {e}", exc_info=options.verbose)
            return 1


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route haxekit log records to stderr at the requested verbosity."""
    if verbose:
        level, fmt = logging.DEBUG, "%(levelname)s [%(name)s] %(message)s"
    elif quiet:
        level, fmt = logging.ERROR, "%(levelname)s: %(message)s"
    else:
        level, fmt = logging.INFO, "%(message)s"

    logging.basicConfig(level=level, format=fmt, force=True)


def main(args: Optional[List[str]] = None):
    """Console script entry point."""
    sys.exit(CLI().run(args))


__all__ = ["CLI", "configure_logging", "main"]
