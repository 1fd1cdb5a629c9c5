"""File transfer into the local cache."""

import hashlib
import logging
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from filelock import FileLock, Timeout

logger = logging.getLogger(__name__)


class TransferError(Exception):
    """Raised when a file could not be copied to its destination."""

    pass


class FileTransferService(ABC):
    """Copies a file to a destination path, fully or not at all."""

    @abstractmethod
    def copy_file_using_locks(
        self,
        source: Union[str, Path],
        destination_path: Union[str, Path],
        overwrite: bool,
    ) -> None:
        """Copy source to destination_path, blocking until done.

        Raises:
            FileExistsError: If the destination exists and overwrite is False
            TransferError: If the copy could not be completed
        """
        pass


class LockingFileTransfer(FileTransferService):
    """Copy files under a per-destination file lock.

    The data is written to a temporary file beside the destination and then
    renamed into place, so readers never observe a partially copied file.
    Lock files are kept in lock_dir (default ``~/.cachesync/locks``), never
    in the destination directory.
    """

    def __init__(self, lock_timeout: float = 30, lock_dir: Optional[Path] = None):
        self.lock_timeout = lock_timeout
        self.lock_dir = Path(lock_dir) if lock_dir is not None else None

    def _get_lock_path(self, destination: Path) -> Path:
        lock_dir = self.lock_dir or Path.home() / ".cachesync" / "locks"
        lock_dir.mkdir(parents=True, exist_ok=True)
        # Same-named files in different directories need different locks
        key = hashlib.md5(str(destination.resolve()).encode()).hexdigest()[:12]
        return lock_dir / f"{destination.name}.{key}.lock"

    def copy_file_using_locks(
        self,
        source: Union[str, Path],
        destination_path: Union[str, Path],
        overwrite: bool,
    ) -> None:
        source = Path(source)
        destination = Path(destination_path)

        if not overwrite and destination.exists():
            raise FileExistsError(f"Destination file already exists: {destination}")

        lock_path = self._get_lock_path(destination)
        try:
            with FileLock(lock_path, timeout=self.lock_timeout):
                self._copy_locked(source, destination)
        except Timeout as e:
            raise TransferError(
                f"Timeout acquiring lock for {destination} after {self.lock_timeout} seconds"
            ) from e

    def _copy_locked(self, source: Path, destination: Path) -> None:
        """Copy with lock already acquired."""
        temp_path = destination.with_name(destination.name + ".tmp")

        try:
            # copy2 keeps the source modification time
            shutil.copy2(source, temp_path)
            os.replace(temp_path, destination)
        except OSError as e:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as cleanup_error:
                    logger.warning(f"Failed to clean up temp file {temp_path}: {cleanup_error}")
            raise TransferError(f"Cannot copy {source} to {destination}: {e}") from e

        logger.debug(f"Copied {source} to {destination}")
