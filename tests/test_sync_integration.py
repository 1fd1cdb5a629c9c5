"""Integration tests for the local file sync workflow.

This test suite walks a single cache entry through its whole life: first copy,
cache hit, local corruption, and recovery, using the real hash provider and
file transfer.
"""

import hashlib
import random
from unittest.mock import MagicMock

import pytest

from cachesync.sync import (
    DefaultHashProvider,
    LockingFileTransfer,
    RecordingNotifier,
    SyncConfig,
    SyncOrchestrator,
)
from cachesync.sync.hashcheck import hashcheck_path
from cachesync.sync.last_used import last_used_path

TEN_MB = 10 * 1024 * 1024


@pytest.fixture
def remote_file(tmp_path):
    """A 10 MB source file on 'shared storage'."""
    share = tmp_path / "share"
    share.mkdir()
    path = share / "A.bin"
    path.write_bytes(random.Random(7).randbytes(TEN_MB))
    return path


class TestSyncLifecycle:
    """End-to-end copy, hit, corruption, and recovery."""

    def test_full_cycle(self, remote_file, tmp_path):
        """Test first copy, cache hit, corruption, and recovery."""
        cache_dir = tmp_path / "cache"
        local_file = cache_dir / "A.bin"
        expected_hash = hashlib.sha1(remote_file.read_bytes()).hexdigest()

        transfer = MagicMock(wraps=LockingFileTransfer(lock_dir=tmp_path / "locks"))
        sleep = MagicMock()
        notifier = RecordingNotifier()
        orchestrator = SyncOrchestrator(
            transfer=transfer,
            notifier=notifier,
            config=SyncConfig(),
            sleep=sleep,
            rng=random.Random(3),
        )

        # First call copies the file and records its hash
        assert orchestrator.copy_file_to_local(remote_file, cache_dir)
        assert transfer.copy_file_using_locks.call_count == 1
        record = DefaultHashProvider().read_hash_record(hashcheck_path(local_file))
        assert record.hash_value == expected_hash
        assert record.file_size == TEN_MB
        assert last_used_path(local_file).exists()

        # Second call is a cache hit
        mtime = local_file.stat().st_mtime_ns
        assert orchestrator.copy_file_to_local(remote_file, cache_dir)
        assert transfer.copy_file_using_locks.call_count == 1
        assert local_file.stat().st_mtime_ns == mtime

        # Corrupt one byte of the local copy
        data = bytearray(local_file.read_bytes())
        data[12345] ^= 0xFF
        local_file.write_bytes(bytes(data))

        result = orchestrator.copy_file_to_local(remote_file, cache_dir, recheck_interval_days=0)

        assert result
        assert result.error_message == ""
        assert transfer.copy_file_using_locks.call_count == 2
        assert hashlib.sha1(local_file.read_bytes()).hexdigest() == expected_hash

        # The .hashcheck file was fresh, so the wait branch was taken
        sleep.assert_called_once()
        waited = sleep.call_args[0][0]
        assert 5.2 <= waited < 15.2

        assert any("Hash mismatch" in w for w in notifier.warnings)
        assert any("recopying" in w for w in notifier.warnings)
