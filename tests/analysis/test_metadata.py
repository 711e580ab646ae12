"""
Tests for capture date extraction.
"""

from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from picsort.analysis.metadata import (
    MetadataReader,
    parse_exif_timestamp,
    read_capture_time,
)
from picsort.core.errors import ConfigurationError
from picsort.core.types import MetadataBackend


class TestParseExifTimestamp:
    """Tests for parse_exif_timestamp()."""

    def test_standard_format(self) -> None:
        """Test the EXIF "YYYY:MM:DD HH:MM:SS" format."""
        assert parse_exif_timestamp("2024:03:05 10:00:00") == datetime(2024, 3, 5, 10, 0, 0)

    def test_bytes_with_nul(self) -> None:
        """Test raw bytes with a trailing NUL are decoded."""
        assert parse_exif_timestamp(b"2023:12:31 23:59:59\x00") == datetime(
            2023, 12, 31, 23, 59, 59
        )

    def test_offset_kept_as_wall_clock(self) -> None:
        """Test an explicit offset does not shift the wall-clock time."""
        result = parse_exif_timestamp("2024:03:05 23:30:00+09:00")
        assert result == datetime(2024, 3, 5, 23, 30, 0)
        assert result.tzinfo is None

    def test_dash_format(self) -> None:
        """Test ISO-like dates written by some tools."""
        assert parse_exif_timestamp("2022-07-14 08:15:00") == datetime(2022, 7, 14, 8, 15)

    def test_date_only(self) -> None:
        """Test a date without time."""
        assert parse_exif_timestamp("2022:07:14") == datetime(2022, 7, 14)

    @pytest.mark.parametrize(
        "value",
        [None, "", "   ", "0000:00:00 00:00:00", "not a date", "2024:02:30 10:00:00", 12345],
    )
    def test_unusable_values(self, value) -> None:
        """Test empty, zeroed and malformed values return None."""
        assert parse_exif_timestamp(value) is None


class TestMetadataReader:
    """Tests for MetadataReader with the Pillow backend."""

    def test_date_taken(self, make_photo) -> None:
        """Test DateTimeOriginal is read."""
        path = make_photo("a.jpg", "2024:03:05 10:00:00")

        with MetadataReader() as reader:
            assert reader.read_capture_time(path) == datetime(2024, 3, 5, 10, 0, 0)

    def test_date_taken_preferred_over_modified(self, make_photo) -> None:
        """Test DateTimeOriginal wins over DateTime."""
        path = make_photo(
            "a.jpg", "2024:03:05 10:00:00", modified="2025:01:01 00:00:00"
        )

        with MetadataReader() as reader:
            assert reader.read_capture_time(path) == datetime(2024, 3, 5, 10, 0, 0)

    def test_modified_fallback(self, make_photo) -> None:
        """Test DateTime is used when DateTimeOriginal is missing."""
        path = make_photo("a.jpg", modified="2023:12:31 23:59:59")

        with MetadataReader() as reader:
            assert reader.read_capture_time(path) == datetime(2023, 12, 31, 23, 59, 59)

    def test_no_date_tags(self, make_photo) -> None:
        """Test an image without date tags returns None."""
        path = make_photo("a.jpg")

        with MetadataReader() as reader:
            assert reader.read_capture_time(path) is None

    def test_zeroed_date_falls_back(self, make_photo) -> None:
        """Test an all-zero DateTimeOriginal is ignored in favour of DateTime."""
        path = make_photo(
            "a.jpg", "0000:00:00 00:00:00", modified="2021:06:01 12:00:00"
        )

        with MetadataReader() as reader:
            assert reader.read_capture_time(path) == datetime(2021, 6, 1, 12, 0, 0)

    def test_unsupported_extension_not_opened(self, temp_dir: Path) -> None:
        """Test files outside the allow-list are never opened."""
        path = temp_dir / "notes.txt"
        path.write_text("2024:03:05 10:00:00")

        with patch("picsort.analysis.metadata.Image.open") as mock_open:
            with MetadataReader() as reader:
                assert reader.read_capture_time(path) is None
            mock_open.assert_not_called()

    def test_extension_case_insensitive(self, make_photo) -> None:
        """Test upper-case extensions are supported."""
        path = make_photo("IMG_0001.JPG", "2024:03:05 10:00:00")

        with MetadataReader() as reader:
            assert reader.is_supported(path)
            assert reader.read_capture_time(path) is not None

    def test_custom_extensions(self, make_photo) -> None:
        """Test a custom allow-list."""
        path = make_photo("a.jpg", "2024:03:05 10:00:00")

        reader = MetadataReader(extensions={".PNG"})
        assert not reader.is_supported(path)
        assert reader.is_supported(Path("x.png"))

    def test_corrupt_file(self, temp_dir: Path) -> None:
        """Test an undecodable file returns None."""
        path = temp_dir / "broken.jpg"
        path.write_bytes(b"\xff\xd8 definitely not a jpeg")

        with MetadataReader() as reader:
            assert reader.read_capture_time(path) is None

    def test_missing_file(self, temp_dir: Path) -> None:
        """Test a vanished file returns None."""
        with MetadataReader() as reader:
            assert reader.read_capture_time(temp_dir / "gone.jpg") is None

    def test_permission_error(self, make_photo) -> None:
        """Test an unreadable file returns None."""
        path = make_photo("a.jpg", "2024:03:05 10:00:00")

        with patch(
            "picsort.analysis.metadata.Image.open",
            side_effect=PermissionError("denied"),
        ):
            with MetadataReader() as reader:
                assert reader.read_capture_time(path) is None

    def test_convenience_function(self, make_photo) -> None:
        """Test read_capture_time() helper."""
        path = make_photo("a.jpg", "2020:02:29 12:00:00")
        assert read_capture_time(path) == datetime(2020, 2, 29, 12, 0, 0)


class TestExifToolBackend:
    """Tests for MetadataReader with the ExifTool backend."""

    @patch("picsort.analysis.metadata.exiftool.ExifToolHelper")
    def test_reads_date_taken(self, mock_helper: MagicMock, temp_dir: Path) -> None:
        """Test group-prefixed tags are recognised."""
        path = temp_dir / "a.arw"
        path.write_bytes(b"raw")
        mock_helper.return_value.get_tags.return_value = [
            {
                "SourceFile": str(path),
                "EXIF:DateTimeOriginal": "2024:03:05 10:00:00",
                "EXIF:ModifyDate": "2025:01:01 00:00:00",
            }
        ]

        with MetadataReader(MetadataBackend.EXIFTOOL) as reader:
            assert reader.read_capture_time(path) == datetime(2024, 3, 5, 10, 0, 0)

        mock_helper.return_value.get_tags.assert_called_once_with(
            [str(path)], ["DateTimeOriginal", "ModifyDate"]
        )
        mock_helper.return_value.__exit__.assert_called_once()

    @patch("picsort.analysis.metadata.exiftool.ExifToolHelper")
    def test_modify_date_fallback(self, mock_helper: MagicMock, temp_dir: Path) -> None:
        """Test ModifyDate is used when DateTimeOriginal is missing."""
        path = temp_dir / "a.heic"
        path.write_bytes(b"heic")
        mock_helper.return_value.get_tags.return_value = [
            {"SourceFile": str(path), "EXIF:ModifyDate": "2019:05:06 07:08:09"}
        ]

        with MetadataReader(MetadataBackend.EXIFTOOL) as reader:
            assert reader.read_capture_time(path) == datetime(2019, 5, 6, 7, 8, 9)

    @patch("picsort.analysis.metadata.exiftool.ExifToolHelper")
    def test_tool_error(self, mock_helper: MagicMock, temp_dir: Path) -> None:
        """Test an exiftool failure for one file returns None."""
        path = temp_dir / "a.jpg"
        path.write_bytes(b"jpg")
        mock_helper.return_value.get_tags.side_effect = RuntimeError("exiftool failed")

        with MetadataReader(MetadataBackend.EXIFTOOL) as reader:
            assert reader.read_capture_time(path) is None

    @patch("picsort.analysis.metadata.exiftool.ExifToolHelper")
    def test_tool_missing(self, mock_helper: MagicMock) -> None:
        """Test a missing exiftool binary is a configuration error."""
        mock_helper.return_value.__enter__.side_effect = FileNotFoundError("exiftool")

        with pytest.raises(ConfigurationError, match="exiftool"):
            with MetadataReader(MetadataBackend.EXIFTOOL):
                pass

    def test_not_entered(self, temp_dir: Path) -> None:
        """Test the exiftool backend returns None outside a with block."""
        path = temp_dir / "a.jpg"
        path.write_bytes(b"jpg")

        reader = MetadataReader(MetadataBackend.EXIFTOOL)
        assert reader.read_capture_time(path) is None
