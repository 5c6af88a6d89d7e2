"""
Tests for release asset descriptors.
"""

import pytest

from haxekit.core.exceptions import UnsupportedPlatformError
from haxekit.core.platform import PlatformId
from haxekit.toolchain.assets import HaxeAsset, NekoAsset, resolve_neko_version


class TestResolveNekoVersion:
    @pytest.mark.parametrize(
        "haxe_version,expected",
        [("3.4.7", "2.1.0"), ("3.0.0", "2.1.0"), ("4.0.5", "2.4.1"), ("4.3.4", "2.4.1")],
    )
    def test_versions(self, haxe_version, expected):
        assert resolve_neko_version(haxe_version) == expected

    def test_nightly_token_uses_default(self):
        assert resolve_neko_version("2019-12-17_development_67feace") == "2.4.1"


class TestNekoAsset:
    def test_linux(self, linux64):
        neko = NekoAsset.resolve_from_haxe_version("4.0.5", linux64)

        assert neko.version == "2.4.1"
        assert neko.target == "linux64"
        assert neko.archive_base_name == "neko-2.4.1-linux64"
        assert neko.archive_ext == ".tar.gz"
        assert neko.download_url == (
            "https://github.com/HaxeFoundation/neko/releases/download/"
            "v2-4-1/neko-2.4.1-linux64.tar.gz"
        )
        assert neko.is_nested is True

    def test_osx_universal(self, osx64):
        neko = NekoAsset("2.4.1", osx64)
        assert neko.target == "osx-universal"
        assert neko.download_url.endswith("/v2-4-1/neko-2.4.1-osx-universal.tar.gz")

    def test_osx_neko_21(self, osx64):
        assert NekoAsset("2.1.0", osx64).target == "osx64"

    def test_windows_neko_21_is_32bit(self, win64):
        neko = NekoAsset.resolve_from_haxe_version("3.4.7", win64)

        assert neko.target == "win"
        assert neko.archive_file_name == "neko-2.1.0-win.zip"
        assert neko.tag == "v2-1-0"

    def test_windows_neko_24(self, win64):
        neko = NekoAsset("2.4.1", win64)
        assert neko.target == "win64"
        assert neko.archive_ext == ".zip"


class TestHaxeAsset:
    def test_release_linux(self, linux64):
        haxe = HaxeAsset("4.0.5", platform=linux64)

        assert haxe.target == "linux64"
        assert haxe.archive_base_name == "haxe-4.0.5-linux64"
        assert haxe.archive_ext == ".tar.gz"
        assert haxe.download_url == (
            "https://github.com/HaxeFoundation/haxe/releases/download/"
            "4.0.5/haxe-4.0.5-linux64.tar.gz"
        )
        assert haxe.is_nested is True

    def test_release_osx(self, osx64):
        haxe = HaxeAsset("4.3.4", platform=osx64)
        assert haxe.target == "osx"
        assert haxe.archive_file_name == "haxe-4.3.4-osx.tar.gz"

    def test_haxe3_windows(self, win64):
        haxe = HaxeAsset("3.4.7", platform=win64)

        assert haxe.target == "win"
        assert haxe.download_url == (
            "https://github.com/HaxeFoundation/haxe/releases/download/"
            "3.4.7/haxe-3.4.7-win.zip"
        )

    def test_haxe4_windows(self, win64):
        assert HaxeAsset("4.2.5", platform=win64).archive_file_name == "haxe-4.2.5-win64.zip"

    @pytest.mark.parametrize(
        "platform_id,channel,ext",
        [
            (PlatformId("linux", "64"), "linux64", ".tar.gz"),
            (PlatformId("osx", "64"), "mac", ".tar.gz"),
            (PlatformId("win", "64"), "windows64", ".zip"),
        ],
    )
    def test_nightly(self, platform_id, channel, ext):
        haxe = HaxeAsset("2019-12-17_development_67feace", nightly=True, platform=platform_id)

        assert haxe.archive_base_name == "haxe_2019-12-17_development_67feace"
        assert haxe.download_url == (
            f"https://build.haxe.org/builds/haxe/{channel}/"
            f"haxe_2019-12-17_development_67feace{ext}"
        )

    def test_nightly_latest(self, linux64):
        haxe = HaxeAsset("latest", nightly=True, platform=linux64)
        assert haxe.download_url == "https://build.haxe.org/builds/haxe/linux64/haxe_latest.tar.gz"

    def test_nightly_unknown_os(self):
        haxe = HaxeAsset("latest", nightly=True, platform=PlatformId("solaris", "64"))
        with pytest.raises(UnsupportedPlatformError):
            haxe.download_url

    def test_descriptor_is_deterministic(self, linux64):
        first = HaxeAsset("4.0.5", platform=linux64)
        second = HaxeAsset("4.0.5", platform=linux64)
        assert first.download_url == second.download_url
        assert repr(first) == "HaxeAsset(name='haxe', version='4.0.5', target='linux64')"
