"""
Unit tests for download module.

Tests download functionality with mocked network requests.
"""

from unittest.mock import Mock, patch

import pytest
import requests
import responses

from haxekit.core.download import (
    DownloadError,
    DownloadProgress,
    download_archive,
    download_file,
    format_progress,
)
from haxekit.core.exceptions import HaxekitError

HAXE_URL = (
    "https://github.com/HaxeFoundation/haxe/releases/download/4.0.5/"
    "haxe-4.0.5-linux64.tar.gz"
)


class TestDownloadFile:
    """Test download_file function."""

    @responses.activate
    def test_download_success(self, tmp_path):
        """Test successful download."""
        responses.add(responses.GET, HAXE_URL, body=b"archive bytes", status=200)

        dest = tmp_path / "sub" / "haxe.tar.gz"
        result = download_file(HAXE_URL, dest)

        assert result == dest
        assert dest.read_bytes() == b"archive bytes"

    @responses.activate
    def test_progress_callback(self, tmp_path):
        """Test progress callback receives the final byte count."""
        content = b"x" * 20000
        responses.add(
            responses.GET,
            HAXE_URL,
            body=content,
            status=200,
            headers={"content-length": str(len(content))},
        )
        callback = Mock()

        download_file(HAXE_URL, tmp_path / "haxe.tar.gz", progress_callback=callback)

        assert callback.called
        last = callback.call_args[0][0]
        assert isinstance(last, DownloadProgress)
        assert last.bytes_downloaded == len(content)
        assert last.percentage == 100.0

    @responses.activate
    @patch("haxekit.core.download.time.sleep")
    def test_retries_then_succeeds(self, mock_sleep, tmp_path):
        """Test a transient server error is retried."""
        responses.add(responses.GET, HAXE_URL, status=503)
        responses.add(responses.GET, HAXE_URL, body=b"ok", status=200)

        result = download_file(HAXE_URL, tmp_path / "haxe.tar.gz")

        assert result.read_bytes() == b"ok"
        mock_sleep.assert_called_once_with(1)

    @responses.activate
    @patch("haxekit.core.download.time.sleep")
    def test_fails_after_max_retries(self, mock_sleep, tmp_path):
        """Test DownloadError after every attempt failed."""
        responses.add(responses.GET, HAXE_URL, status=404)
        dest = tmp_path / "haxe.tar.gz"

        with pytest.raises(DownloadError, match="after 3 attempts"):
            download_file(HAXE_URL, dest)

        assert not dest.exists()
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]

    @responses.activate
    @patch("haxekit.core.download.time.sleep")
    def test_connection_error(self, mock_sleep, tmp_path):
        responses.add(
            responses.GET, HAXE_URL, body=requests.exceptions.ConnectionError("refused")
        )

        with pytest.raises(DownloadError):
            download_file(HAXE_URL, tmp_path / "haxe.tar.gz", max_retries=1)

        mock_sleep.assert_not_called()

    def test_download_error_is_haxekit_error(self):
        assert issubclass(DownloadError, HaxekitError)

    def test_empty_url(self, tmp_path):
        with pytest.raises(ValueError, match="URL cannot be empty"):
            download_file("", tmp_path / "x")


class TestDownloadArchive:
    """Test download_archive function."""

    @responses.activate
    def test_unique_file_names(self, tmp_path):
        """Test two downloads of the same URL never share a file."""
        responses.add(responses.GET, HAXE_URL, body=b"one", status=200)
        responses.add(responses.GET, HAXE_URL, body=b"two", status=200)

        first = download_archive(HAXE_URL, tmp_path)
        second = download_archive(HAXE_URL, tmp_path)

        assert first != second
        assert first.parent == tmp_path
        assert first.name.endswith("-haxe-4.0.5-linux64.tar.gz")
        assert first.read_bytes() == b"one"
        assert second.read_bytes() == b"two"


class TestFormatProgress:
    def test_with_total(self):
        progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        assert format_progress(progress) == "50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s"

    def test_unknown_total(self):
        progress = DownloadProgress(1048576, 0, 0, 1048576, 0)
        assert str(progress) == "1.0 MB at 1.0 MB/s"
