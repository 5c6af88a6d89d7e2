"""
Post command implementation.

Runs after the build and saves the haxelib dependency cache when
cache-dependency-path is configured.
"""

import logging

from haxekit.caching.haxelib import save_haxelib
from haxekit.cli.utils import (
    config_from_args,
    make_archive_cache,
    make_state,
    print_error,
)
from haxekit.core.exceptions import HaxekitError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the post command.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        config = config_from_args(
            args, cache_dependency_path=args.cache_dependency_path
        )
        if not config.cache_dependency_path:
            logger.debug("Dependency caching disabled, nothing to save")
            return 0

        save_haxelib(state=make_state(config), archive_cache=make_archive_cache(config))
    except HaxekitError as e:
        logger.debug("Post step failed", exc_info=True)
        print_error("Saving haxelib cache failed", str(e))
        return 1

    return 0
