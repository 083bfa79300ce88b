"""Tests for image downloads."""

from unittest.mock import patch

import pytest

from image_crawler.storage.image_store import (
    DownloadError,
    ImageDownloader,
    filename_from_url,
)

from .conftest import FakeFetcher


class TestFilenameFromURL:
    """Test cases for filename derivation."""

    def test_last_path_segment(self):
        assert filename_from_url("https://example.com/img/photos/cat.png") == "cat.png"

    def test_query_is_not_part_of_the_name(self):
        assert filename_from_url("https://example.com/img/cat.png?v=2") == "cat.png"

    def test_relative_url(self):
        assert filename_from_url("a.png") == "a.png"

    def test_empty_segment_raises(self):
        with pytest.raises(DownloadError):
            filename_from_url("https://example.com/images/")

    def test_unique_names_differ_per_url(self):
        first = filename_from_url("https://a.example.com/photo.jpg", unique=True)
        second = filename_from_url("https://b.example.com/photo.jpg", unique=True)

        assert first != second
        assert first.endswith("_photo.jpg")
        assert second.endswith("_photo.jpg")

    def test_unique_names_are_deterministic(self):
        url = "https://a.example.com/photo.jpg"

        assert filename_from_url(url, unique=True) == filename_from_url(url, unique=True)


class TestImageDownloader:
    """Test cases for ImageDownloader."""

    @pytest.fixture
    def output_dir(self, tmp_path):
        return tmp_path / "images"

    def test_writes_fetched_bytes(self, output_dir):
        payload = bytes(range(256)) * 4
        fetcher = FakeFetcher({"https://example.com/a.png": payload})
        downloader = ImageDownloader(fetcher, output_dir)

        result = downloader.download("https://example.com/a.png")

        assert result.ok
        assert result.path == output_dir / "a.png"
        assert result.bytes_written == len(payload)
        assert (output_dir / "a.png").read_bytes() == payload

    def test_creates_output_directory(self, tmp_path):
        output_dir = tmp_path / "nested" / "images"
        downloader = ImageDownloader(FakeFetcher({"https://x/a.gif": b"GIF89a"}), output_dir)

        downloader.download("https://x/a.gif")

        assert output_dir.is_dir()

    def test_overwrites_existing_file(self, output_dir):
        output_dir.mkdir()
        (output_dir / "a.png").write_bytes(b"old")
        downloader = ImageDownloader(FakeFetcher({"https://x/a.png": b"new"}), output_dir)

        downloader.download("https://x/a.png")

        assert (output_dir / "a.png").read_bytes() == b"new"

    def test_fetch_failure_is_reported(self, output_dir):
        downloader = ImageDownloader(FakeFetcher(), output_dir)

        result = downloader.download("https://x/missing.png")

        assert not result.ok
        assert "connection refused" in result.error
        assert not output_dir.exists()

    def test_filename_failure_is_reported(self, output_dir):
        downloader = ImageDownloader(FakeFetcher({"https://x/": b"data"}), output_dir)

        result = downloader.download("https://x/")

        assert not result.ok
        assert "filename" in result.error

    def test_directory_failure_is_reported(self, tmp_path):
        blocker = tmp_path / "images"
        blocker.write_bytes(b"not a directory")
        downloader = ImageDownloader(FakeFetcher({"https://x/a.png": b"data"}), blocker)

        result = downloader.download("https://x/a.png")

        assert not result.ok
        assert result.path is None

    def test_write_failure_is_reported(self, output_dir):
        downloader = ImageDownloader(FakeFetcher({"https://x/a.png": b"data"}), output_dir)

        with patch("pathlib.Path.write_bytes", side_effect=OSError("disk full")):
            result = downloader.download("https://x/a.png")

        assert not result.ok
        assert "disk full" in result.error

    def test_unique_filenames_avoid_collisions(self, output_dir):
        fetcher = FakeFetcher({
            "https://a.example.com/photo.jpg": b"a",
            "https://b.example.com/photo.jpg": b"b",
        })
        downloader = ImageDownloader(fetcher, output_dir, unique_filenames=True)

        downloader.download("https://a.example.com/photo.jpg")
        downloader.download("https://b.example.com/photo.jpg")

        assert len(list(output_dir.iterdir())) == 2

    def test_logs_status_line(self, output_dir, caplog):
        downloader = ImageDownloader(FakeFetcher({"https://x/a.png": b"data"}), output_dir)

        with caplog.at_level("INFO", logger="image_crawler.storage.image_store"):
            downloader.download("https://x/a.png")
            downloader.download("https://x/b.png")

        messages = [record.getMessage() for record in caplog.records]
        assert f"Downloaded: {output_dir / 'a.png'}" in messages
        assert any(m.startswith("Error downloading https://x/b.png") for m in messages)
