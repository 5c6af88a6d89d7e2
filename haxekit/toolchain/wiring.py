"""
Toolchain setup: acquire Neko and Haxe, wire them into the environment,
initialise haxelib and restore the haxelib dependency cache.

Neko is wired first because ``haxelib setup`` runs on the Neko VM.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from haxekit.caching.haxelib import create_haxelib_key, restore_haxelib
from haxekit.caching.remote import ArchiveCache
from haxekit.core.environment import RunnerEnvironment
from haxekit.core.platform import PlatformId, detect_platform
from haxekit.core.process import run_process
from haxekit.core.state import StepState
from haxekit.toolchain.acquirer import Acquirer
from haxekit.toolchain.assets import HaxeAsset, NekoAsset

logger = logging.getLogger(__name__)


@dataclass
class ToolchainInstallation:
    """Result of a toolchain setup."""

    neko_path: Path
    haxe_path: Path
    haxelib_path: Path
    target: str
    """Haxe archive target, also the platform tag of the dependency cache key"""

    cache_key: Optional[str] = None
    cache_hit: Optional[bool] = None


def _which(command: str, env: RunnerEnvironment) -> str:
    """Resolve a command against the wired PATH, falling back to the bare name."""
    return shutil.which(command, path=env.environ.get("PATH")) or command


def fix_haxelib_dylib(haxe_path: Path, neko_path: Path, env: RunnerEnvironment) -> bool:
    """
    Let the haxelib executable find libneko on macOS.

    System Integrity Protection strips DYLD_* variables for trusted binaries,
    so an rpath entry pointing at the Neko root is added to haxelib instead.
    Already patched binaries are left alone.

    See:
        https://blog.krzyzanowskim.com/2018/12/05/rpath-what/
        https://github.com/HaxeFoundation/haxe/issues/10297

    Returns:
        True if the binary was patched, False if the rpath was already present
    """
    haxelib_bin = Path(haxe_path) / "haxelib"
    child_env = dict(env.environ)

    logger.info("[neko] fixing dylib paths")
    otool_out = run_process("otool", ["-l", str(haxelib_bin)], env=child_env)
    if str(neko_path) in otool_out.stdout:
        logger.info("[neko] rpath already patched")
        return False

    logger.info(f"[neko] patching rpath for {haxelib_bin}")
    run_process(
        "install_name_tool",
        ["-add_rpath", str(neko_path), str(haxelib_bin)],
        env=child_env,
    )
    return True


def setup_toolchain(
    version: str,
    nightly: bool,
    cache_dependency_path: str = "",
    acquirer: Optional[Acquirer] = None,
    env: Optional[RunnerEnvironment] = None,
    state: Optional[StepState] = None,
    archive_cache: Optional[ArchiveCache] = None,
    platform: Optional[PlatformId] = None,
    workspace: Optional[Path] = None,
) -> ToolchainInstallation:
    """
    Install Neko and Haxe and prepare haxelib.

    Args:
        version: Haxe version or nightly build token
        nightly: Whether version is a nightly build token
        cache_dependency_path: Glob of haxelib dependency manifests; empty
            disables dependency caching
        acquirer: Asset acquirer (default: Acquirer())
        env: Environment to wire (default: RunnerEnvironment())
        state: Cross-step state store for the dependency cache
        archive_cache: Archive cache backing the dependency cache
        platform: Host platform (default: detected)
        workspace: Root the dependency glob is resolved against

    Returns:
        ToolchainInstallation describing what was set up
    """
    platform = platform or detect_platform()
    acquirer = acquirer or Acquirer()
    env = env or RunnerEnvironment()

    # haxelib requires Neko
    neko = NekoAsset.resolve_from_haxe_version(version, platform)
    neko_path = acquirer.acquire(neko)

    env.add_path(neko_path)
    logger.info(f"[neko] NEKOPATH = {neko_path}")
    env.export_variable("NEKOPATH", neko_path)
    env.prepend_variable("LD_LIBRARY_PATH", neko_path, os.pathsep)

    haxe = HaxeAsset(version, nightly, platform)
    haxe_path = acquirer.acquire(haxe)

    env.add_path(haxe_path)
    logger.info(f"[haxe] HAXE_STD_PATH = {haxe_path / 'std'}")
    env.export_variable("HAXEPATH", haxe_path)
    env.export_variable("HAXE_STD_PATH", haxe_path / "std")

    if platform.os == "osx":
        fix_haxelib_dylib(haxe_path, neko_path, env)

    haxelib_path = haxe_path / "lib"
    logger.info(f"[haxelib] setup start = {haxelib_path}")
    run_process(
        _which("haxelib", env), ["setup", str(haxelib_path)], env=dict(env.environ)
    )

    installation = ToolchainInstallation(
        neko_path=neko_path,
        haxe_path=haxe_path,
        haxelib_path=haxelib_path,
        target=haxe.target,
    )

    if cache_dependency_path:
        logger.info(f"[haxelib] dep cache = {cache_dependency_path}")
        key = create_haxelib_key(
            haxe.target, version, cache_dependency_path, root=workspace
        )
        installation.cache_key = key
        installation.cache_hit = restore_haxelib(
            key, haxelib_path, state=state, archive_cache=archive_cache, env=env
        )
    elif state is not None:
        # Drop cache values left by an earlier run
        state.clear()

    return installation


__all__ = ["ToolchainInstallation", "fix_haxelib_dylib", "setup_toolchain"]
