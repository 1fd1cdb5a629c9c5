"""Unit tests for .LastUsed file tracking."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from cachesync.sync.hashcheck import parse_utc
from cachesync.sync.last_used import last_used_path, update_last_used
from cachesync.sync.notify import RecordingNotifier


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "A.bin"
    path.write_bytes(b"payload")
    return path


class TestUpdateLastUsed:
    """Test update_last_used."""

    def test_path(self):
        """Test the .LastUsed path is the data path plus a suffix."""
        assert last_used_path("/cache/A.bin") == Path("/cache/A.bin.LastUsed")

    def test_writes_single_utc_line(self, data_file):
        """Test a single current UTC line is written."""
        update_last_used(data_file)

        lines = last_used_path(data_file).read_text().splitlines()
        assert len(lines) == 1

        written = parse_utc(lines[0])
        assert abs(datetime.now(timezone.utc) - written) < timedelta(seconds=5)

    def test_overwrites_existing_file(self, data_file):
        """Test the previous contents are replaced."""
        target = last_used_path(data_file)
        target.write_text("old line\nanother old line\n")

        update_last_used(data_file)

        lines = target.read_text().splitlines()
        assert len(lines) == 1
        assert "old" not in lines[0]

    def test_os_error_is_ignored(self, data_file):
        """A locked or unwritable .LastUsed file is not reported."""
        # A directory in place of the file makes open() raise an OSError
        last_used_path(data_file).mkdir()
        notifier = RecordingNotifier()

        update_last_used(data_file, notifier)

        assert notifier.warnings == []

    def test_unexpected_error_becomes_warning(self, data_file):
        """Test errors other than OSError are reported as warnings."""
        notifier = RecordingNotifier()

        with patch(
            "cachesync.sync.last_used.format_utc", side_effect=RuntimeError("clock broke")
        ):
            update_last_used(data_file, notifier)

        assert len(notifier.warnings) == 1
        assert "Unable to create a new .LastUsed file" in notifier.warnings[0]
        assert "clock broke" in notifier.warnings[0]
