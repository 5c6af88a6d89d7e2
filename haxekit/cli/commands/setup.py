"""
Setup command implementation.

Installs Neko and Haxe, wires them into the environment, runs
``haxelib setup`` and restores the haxelib dependency cache.
"""

import logging

from haxekit.cli.utils import (
    config_from_args,
    make_acquirer,
    make_archive_cache,
    make_state,
    print_error,
)
from haxekit.config.parser import parse_haxe_version
from haxekit.core.exceptions import HaxekitError
from haxekit.toolchain.wiring import setup_toolchain

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the setup command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    logger.debug(f"Arguments: {args}")

    try:
        config = config_from_args(
            args,
            haxe_version=args.haxe_version,
            cache_dependency_path=args.cache_dependency_path,
        )
        if not config.haxe_version:
            print_error(
                "No Haxe version specified",
                "Pass --haxe-version, set INPUT_HAXE-VERSION or add "
                "'haxe-version' to haxekit.yaml",
            )
            return 1

        version, nightly = parse_haxe_version(config.haxe_version)
        logger.info(f"Setting up Haxe {version}{' (nightly)' if nightly else ''}")

        installation = setup_toolchain(
            version,
            nightly,
            config.cache_dependency_path,
            acquirer=make_acquirer(config),
            state=make_state(config),
            archive_cache=make_archive_cache(config),
            workspace=config.workspace,
        )
    except HaxekitError as e:
        logger.debug("Setup failed", exc_info=True)
        print_error("Setup failed", str(e))
        return 1

    logger.info(f"Haxe ready at {installation.haxe_path}")
    return 0
