"""
Pytest configuration and shared fixtures for haxekit tests.
"""

import io
import tarfile
import zipfile
from pathlib import Path
from typing import Dict

import pytest

from haxekit.core.environment import RunnerEnvironment
from haxekit.core.platform import PlatformId, clear_platform_cache


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


# ============================================================================
# Archive helpers
# ============================================================================


def make_tar_gz(archive: Path, files: Dict[str, str]) -> bytes:
    """Write a .tar.gz holding files (member name -> text) and return its bytes."""
    archive.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(archive, "w:gz") as tar:
        for name, content in files.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
    return archive.read_bytes()


def make_zip(archive: Path, files: Dict[str, str]) -> bytes:
    """Write a .zip holding files (member name -> text) and return its bytes."""
    archive.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return archive.read_bytes()


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def linux64() -> PlatformId:
    return PlatformId("linux", "64")


@pytest.fixture
def osx64() -> PlatformId:
    return PlatformId("osx", "64")


@pytest.fixture
def win64() -> PlatformId:
    return PlatformId("win", "64")


@pytest.fixture
def runner_env(tmp_path) -> RunnerEnvironment:
    """RunnerEnvironment on a private mapping with file commands in tmp_path."""
    command_dir = tmp_path / "runner"
    command_dir.mkdir()
    environ = {
        "PATH": "/usr/bin",
        "GITHUB_PATH": str(command_dir / "path"),
        "GITHUB_ENV": str(command_dir / "env"),
        "GITHUB_OUTPUT": str(command_dir / "output"),
    }
    return RunnerEnvironment(environ)


@pytest.fixture
def isolated_home(tmp_path, monkeypatch) -> Path:
    """Point every haxekit directory default into tmp_path."""
    home = tmp_path / "haxekit-home"
    monkeypatch.setenv("HAXEKIT_HOME", str(home))
    monkeypatch.delenv("RUNNER_TOOL_CACHE", raising=False)
    monkeypatch.delenv("RUNNER_TEMP", raising=False)
    monkeypatch.delenv("GITHUB_WORKSPACE", raising=False)
    return home


@pytest.fixture(autouse=True)
def reset_platform_cache():
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture
def tar_gz_factory():
    """Factory writing .tar.gz archives, see make_tar_gz."""
    return make_tar_gz


@pytest.fixture
def zip_factory():
    """Factory writing .zip archives, see make_zip."""
    return make_zip
