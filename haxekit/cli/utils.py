"""
Shared utilities for CLI commands.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from haxekit.caching.remote import ArchiveCache
from haxekit.config.parser import HaxekitConfig, load_config
from haxekit.core.directory import get_state_file
from haxekit.core.download import DownloadProgress
from haxekit.core.state import StepState
from haxekit.core.tool_cache import ToolCache
from haxekit.toolchain.acquirer import Acquirer

logger = logging.getLogger(__name__)


def config_from_args(args, **overrides) -> HaxekitConfig:
    """
    Resolve configuration for a parsed command line.

    Args:
        args: Parsed arguments with project_root and config
        **overrides: Command-specific values taking precedence over all sources
    """
    project_root = Path(args.project_root).resolve()
    return load_config(
        project_root=project_root,
        config_file=args.config,
        overrides=overrides,
    )


def make_state(config: HaxekitConfig) -> StepState:
    """Create the cross-step state store for a configuration."""
    return StepState(config.state_file or get_state_file(config.workspace))


def make_archive_cache(config: HaxekitConfig) -> ArchiveCache:
    """Create the archive cache backing the dependency cache."""
    return ArchiveCache(config.archive_cache_dir)


def _log_progress(progress: DownloadProgress) -> None:
    logger.debug(f"  {progress}")


def make_acquirer(config: HaxekitConfig) -> Acquirer:
    """Create an acquirer using the configured tool cache and work directory."""
    return Acquirer(
        tool_cache=ToolCache(config.tool_cache_dir),
        work_dir=config.work_dir,
        progress_callback=_log_progress,
    )


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)
