"""
Tests for toolchain acquisition.
"""

from unittest.mock import patch

import pytest
import responses

from haxekit.core.exceptions import (
    AmbiguousToolRootError,
    ToolRootNotFoundError,
    UnknownArchiveExtensionError,
)
from haxekit.core.platform import PlatformId
from haxekit.core.tool_cache import ToolCache
from haxekit.toolchain.acquirer import Acquirer, find_tool_root
from haxekit.toolchain.assets import HaxeAsset, NekoAsset

NESTED_ROOT = "haxe_20191217082701_67feacebc"


@pytest.fixture
def acquirer(tmp_path) -> Acquirer:
    return Acquirer(
        tool_cache=ToolCache(tmp_path / "tools", arch="x64"),
        work_dir=tmp_path / "work",
    )


@pytest.fixture
def haxe_archive(tmp_path, tar_gz_factory) -> bytes:
    return tar_gz_factory(
        tmp_path / "fixtures" / "haxe-4.0.5-linux64.tar.gz",
        {
            f"{NESTED_ROOT}/haxe": "#!haxe",
            f"{NESTED_ROOT}/haxelib": "#!haxelib",
            f"{NESTED_ROOT}/std/Std.hx": "class Std {}",
        },
    )


class TestFindToolRoot:
    def test_not_nested(self, tmp_path):
        assert find_tool_root(tmp_path, nested=False) == tmp_path

    def test_single_entry(self, tmp_path):
        (tmp_path / NESTED_ROOT).mkdir()
        assert find_tool_root(tmp_path, nested=True) == tmp_path / NESTED_ROOT

    def test_hidden_entries_are_ignored(self, tmp_path):
        (tmp_path / NESTED_ROOT).mkdir()
        (tmp_path / "._haxe").write_text("")
        assert find_tool_root(tmp_path, nested=True) == tmp_path / NESTED_ROOT

    def test_empty_directory(self, tmp_path):
        with pytest.raises(ToolRootNotFoundError, match="tool directory not found"):
            find_tool_root(tmp_path, nested=True)

    def test_ambiguous(self, tmp_path):
        (tmp_path / "one").mkdir()
        (tmp_path / "two").mkdir()
        with pytest.raises(AmbiguousToolRootError):
            find_tool_root(tmp_path, nested=True)


class TestAcquire:
    @responses.activate
    def test_download_extract_and_cache(self, acquirer, haxe_archive, linux64):
        haxe = HaxeAsset("4.0.5", platform=linux64)
        responses.add(responses.GET, haxe.download_url, body=haxe_archive, status=200)

        root = acquirer.acquire(haxe)

        assert root == acquirer.tool_cache.root / "haxe" / "4.0.5" / "x64"
        assert (root / "haxe").read_text() == "#!haxe"
        assert (root / "std" / "Std.hx").exists()
        # Archive is deleted once extracted
        assert list(acquirer.downloads_dir.iterdir()) == []

    @responses.activate
    def test_second_acquire_is_cache_hit(self, acquirer, haxe_archive, linux64):
        haxe = HaxeAsset("4.0.5", platform=linux64)
        responses.add(responses.GET, haxe.download_url, body=haxe_archive, status=200)

        first = acquirer.acquire(haxe)
        second = acquirer.acquire(HaxeAsset("4.0.5", platform=linux64))

        assert second == first
        assert len(responses.calls) == 1

    @patch("haxekit.toolchain.acquirer.download_archive")
    def test_latest_is_always_downloaded(
        self, mock_download, acquirer, tmp_path, tar_gz_factory, linux64
    ):
        def fake_download(url, downloads_dir, progress_callback=None):
            archive = downloads_dir / "haxe_latest.tar.gz"
            tar_gz_factory(archive, {f"{NESTED_ROOT}/haxe": "#!haxe"})
            return archive

        mock_download.side_effect = fake_download
        latest = HaxeAsset("latest", nightly=True, platform=linux64)

        acquirer.acquire(latest)
        root = acquirer.acquire(latest)

        assert mock_download.call_count == 2
        assert root == acquirer.tool_cache.root / "haxe" / "latest" / "x64"
        assert mock_download.call_args[0][0] == (
            "https://build.haxe.org/builds/haxe/linux64/haxe_latest.tar.gz"
        )

    @patch("haxekit.toolchain.acquirer.download_archive")
    def test_stale_staging_directory_is_replaced(
        self, mock_download, acquirer, tar_gz_factory, linux64
    ):
        neko = NekoAsset("2.4.1", linux64)
        staging = acquirer.staging_path(neko)
        (staging / "leftover").mkdir(parents=True)

        def fake_download(url, downloads_dir, progress_callback=None):
            archive = downloads_dir / "neko.tar.gz"
            tar_gz_factory(archive, {"neko-2.4.1-linux64/neko": "#!neko"})
            return archive

        mock_download.side_effect = fake_download

        root = acquirer.acquire(neko)

        assert (root / "neko").read_text() == "#!neko"
        assert staging == acquirer.work_dir / "neko-2.4.1-linux64"

    @patch("haxekit.toolchain.acquirer.download_archive")
    def test_windows_zip(self, mock_download, acquirer, zip_factory, win64):
        def fake_download(url, downloads_dir, progress_callback=None):
            archive = downloads_dir / "haxe.zip"
            zip_factory(archive, {"haxe_20191217082701_67feacebc/haxe.exe": "MZ"})
            return archive

        mock_download.side_effect = fake_download

        root = acquirer.acquire(HaxeAsset("4.0.5", platform=win64))

        assert (root / "haxe.exe").read_text() == "MZ"

    @patch("haxekit.toolchain.acquirer.download_archive")
    def test_unknown_extension(self, mock_download, acquirer):
        asset = HaxeAsset("4.0.5", platform=PlatformId("linux", "64"))
        with patch.object(HaxeAsset, "archive_ext", ".7z"):
            with pytest.raises(UnknownArchiveExtensionError, match="unknown ext: .7z"):
                acquirer.acquire(asset)

        mock_download.assert_not_called()

    @patch("haxekit.toolchain.acquirer.download_archive")
    def test_archive_removed_on_failure(self, mock_download, acquirer, tar_gz_factory, linux64):
        archive = acquirer.downloads_dir / "empty.tar.gz"

        def fake_download(url, downloads_dir, progress_callback=None):
            tar_gz_factory(archive, {})
            return archive

        mock_download.side_effect = fake_download

        with pytest.raises(ToolRootNotFoundError):
            acquirer.acquire(HaxeAsset("4.0.5", platform=linux64))

        assert not archive.exists()
        assert acquirer.tool_cache.find("haxe", "4.0.5") is None
