"""Copy remote data files into a local cache directory.

Many processes may try to populate the same cache entry at the same time.
There is no shared lock: when a cached copy fails validation, a process waits
a random few seconds (longer for large files) and checks again, on the
assumption that another process may already be re-copying it. Only if the
copy is still invalid does it copy the file itself.
"""

import logging
import random
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union

from cachesync.sync.config import SyncConfig, get_global_config
from cachesync.sync.hashcheck import (
    DefaultHashProvider,
    HashProvider,
    HashRecord,
    HashType,
    file_mtime_utc,
    hashcheck_path,
)
from cachesync.sync.notify import LoggingNotifier, Notifier
from cachesync.sync.results import SyncErrorKind, SyncResult
from cachesync.sync.transfer import FileTransferService, LockingFileTransfer
from cachesync.sync.validation import ValidationOptions, Validator

logger = logging.getLogger(__name__)


def compute_backoff_seconds(
    file_size_bytes: int,
    rng: Optional[random.Random] = None,
    config: Optional[SyncConfig] = None,
) -> float:
    """Randomized wait before re-checking an invalid cached file.

    A whole number of seconds in [backoff_min_seconds, backoff_max_seconds),
    plus one second per backoff_mb_per_second MB of file.

    Args:
        file_size_bytes: Size of the source file
        rng: Random source (module-level random if None)
        config: Backoff settings (global config if None)

    Returns:
        Seconds to wait
    """
    config = config or get_global_config()
    rng = rng or random
    file_size_mb = file_size_bytes / 1024.0 / 1024.0
    base = rng.randrange(config.backoff_min_seconds, config.backoff_max_seconds)
    return base + file_size_mb / config.backoff_mb_per_second


def delete_hashcheck_file(data_file: Union[str, Path]) -> None:
    """Delete the .hashcheck file for a data file, ignoring any errors."""
    try:
        hashcheck_path(data_file).unlink(missing_ok=True)
    except OSError as e:
        logger.debug(f"Could not delete .hashcheck file for {data_file}: {e}")


class SyncOrchestrator:
    """Keeps local copies of remote data files valid.

    Examples:
        >>> orchestrator = SyncOrchestrator()
        >>> result = orchestrator.copy_file_to_local('/mnt/share/A.bin', '/cache/data')
        >>> if not result:
        ...     print(result.error_message)
    """

    def __init__(
        self,
        transfer: Optional[FileTransferService] = None,
        hash_provider: Optional[HashProvider] = None,
        notifier: Optional[Notifier] = None,
        config: Optional[SyncConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        """Initialize orchestrator.

        Args:
            transfer: Copies files (LockingFileTransfer if None)
            hash_provider: Hashes files and reads/writes .hashcheck files
            notifier: Receives warnings (LoggingNotifier if None)
            config: Sync settings (uses global if None)
            sleep: Called with the backoff duration in seconds
            rng: Random source for the backoff
        """
        self.config = config or get_global_config()
        self.transfer = transfer or LockingFileTransfer(
            lock_timeout=self.config.lock_timeout, lock_dir=self.config.lock_dir
        )
        self.hash_provider = hash_provider or DefaultHashProvider()
        self.notifier = notifier or LoggingNotifier()
        self.validator = Validator(self.hash_provider, self.notifier)
        self._sleep = sleep
        self._rng = rng or random.Random()

    def copy_file_to_local(
        self,
        source_path: Union[str, Path],
        target_dir: Union[str, Path],
        recheck_interval_days: Optional[int] = None,
        hash_type: Union[HashType, str, None] = None,
    ) -> SyncResult:
        """Copy a remote file into target_dir unless a valid copy is already there.

        Creates the .hashcheck file for the source (if missing) and for the
        local copy, and refreshes the local .LastUsed file.

        Args:
            source_path: Remote data file
            target_dir: Local cache directory (created if missing)
            recheck_interval_days: Recompute the local hash once its .hashcheck
                file is older than this; 0 checks on every call
                (config default if None)
            hash_type: Hash type for newly created .hashcheck files
                (config default if None)

        Returns:
            SyncResult; never raises
        """
        if recheck_interval_days is None:
            recheck_interval_days = self.config.recheck_interval_days
        hash_type = HashType.parse(hash_type or self.config.hash_type)
        if hash_type is HashType.UNDEFINED:
            hash_type = HashType.SHA1

        try:
            source_file = Path(source_path)
            if not source_file.exists():
                return SyncResult.failure(
                    SyncErrorKind.NOT_FOUND, f"File not found: {source_file}"
                )

            expected_hash = self._get_source_hash(source_file, hash_type)

            target_dir = Path(target_dir)
            target_dir.mkdir(parents=True, exist_ok=True)
            target_file = target_dir / source_file.name
            options = ValidationOptions(recheck_interval_days=recheck_interval_days)

            if not target_file.exists():
                delete_hashcheck_file(target_file)
                self.transfer.copy_file_using_locks(source_file, target_file, True)
                return self.validator.validate(target_file, expected_hash, options)

            if self.validator.validate(target_file, expected_hash, options):
                return SyncResult.success()

            # The local copy does not match; another process may be fixing it
            if not self._local_hashcheck_is_stale(target_file):
                wait_seconds = compute_backoff_seconds(
                    source_file.stat().st_size, self._rng, self.config
                )
                logger.debug(f"Waiting {wait_seconds:.1f}s before re-checking {target_file}")
                self._sleep(wait_seconds)

                recheck = self.validator.validate(
                    target_file, expected_hash, options.with_recheck_interval(0)
                )
                if recheck:
                    return recheck

            self.notifier.warning(
                f"Hash for local file does not match the remote file; "
                f"recopying {source_file} to {target_dir}"
            )

            delete_hashcheck_file(target_file)
            self.transfer.copy_file_using_locks(source_file, target_file, True)
            return self.validator.validate(
                target_file, expected_hash, options.with_recheck_interval(0)
            )

        except Exception as e:
            message = f"Error retrieving/validating {source_path}: {e}"
            self.notifier.warning(message)
            return SyncResult.failure(SyncErrorKind.UNHANDLED, message)

    def _get_source_hash(self, source_file: Path, hash_type: HashType) -> HashRecord:
        """Read the source .hashcheck file, creating it if missing.

        Failing to create it is not fatal; an empty record is returned and the
        local copy is then trusted on first use.
        """
        source_hashcheck = hashcheck_path(source_file)
        if source_hashcheck.exists():
            return self.hash_provider.read_hash_record(source_hashcheck)

        try:
            hash_value, warning = self.hash_provider.create_hash_record(source_file, hash_type)
        except Exception as e:
            self.notifier.warning(
                f"Unable to create the .hashcheck file for source file {source_file}: {e}"
            )
            return HashRecord.empty()

        if warning:
            self.notifier.warning(warning)

        if not hash_value:
            if not warning:
                self.notifier.warning(
                    f"Unable to create the hash value for remote file {source_file}"
                )
            return HashRecord.empty()

        stat = source_file.stat()
        return HashRecord(
            hash_value=hash_value,
            hash_type=hash_type,
            file_size=stat.st_size,
            file_date_utc=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def _local_hashcheck_is_stale(self, target_file: Path) -> bool:
        """True if the local .hashcheck file exists and is old enough to skip the wait."""
        local_hashcheck = hashcheck_path(target_file)
        try:
            age = datetime.now(timezone.utc) - file_mtime_utc(local_hashcheck)
        except FileNotFoundError:
            return False
        return age.total_seconds() / 60 > self.config.stale_sidecar_minutes
