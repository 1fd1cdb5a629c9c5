"""Local cache synchronization for remote data files.

This module copies data files from shared storage into a local cache and
keeps them valid using .hashcheck and .LastUsed sidecar files.

Key components:
- SyncOrchestrator: Copy a file locally unless a valid copy exists
- Validator: Check a local file against its .hashcheck file
- SyncConfig: Configuration management
- DefaultHashProvider: Hashing and .hashcheck file I/O
- LockingFileTransfer: File copies under a file lock
"""

from cachesync.sync.config import SyncConfig
from cachesync.sync.hashcheck import (
    DefaultHashProvider,
    HashcheckFormatError,
    HashProvider,
    HashRecord,
    HashType,
)
from cachesync.sync.last_used import update_last_used
from cachesync.sync.notify import LoggingNotifier, Notifier, RecordingNotifier
from cachesync.sync.orchestrator import SyncOrchestrator, compute_backoff_seconds
from cachesync.sync.results import SyncErrorKind, SyncResult
from cachesync.sync.transfer import FileTransferService, LockingFileTransfer, TransferError
from cachesync.sync.validation import ValidationOptions, Validator

__all__ = [
    "SyncOrchestrator",
    "Validator",
    "ValidationOptions",
    "SyncConfig",
    "SyncResult",
    "SyncErrorKind",
    "HashType",
    "HashRecord",
    "HashProvider",
    "DefaultHashProvider",
    "HashcheckFormatError",
    "FileTransferService",
    "LockingFileTransfer",
    "TransferError",
    "Notifier",
    "LoggingNotifier",
    "RecordingNotifier",
    "update_last_used",
    "compute_backoff_seconds",
]
