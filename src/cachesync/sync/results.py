"""Result values returned by the sync operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SyncErrorKind(Enum):
    """Why a sync or validation call failed."""

    NOT_FOUND = "not_found"
    HASH_MISMATCH = "hash_mismatch"
    SIZE_MISMATCH = "size_mismatch"
    DATE_MISMATCH = "date_mismatch"
    UNDEFINED_HASH_TYPE = "undefined_hash_type"
    TRANSIENT_IO = "transient_io"
    UNHANDLED = "unhandled"


@dataclass(frozen=True)
class SyncResult:
    """Outcome of copy_file_to_local / validate.

    Truthy when the operation succeeded, so callers can write
    ``if orchestrator.copy_file_to_local(...):``.
    """

    ok: bool
    error_message: str = ""
    error_kind: Optional[SyncErrorKind] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> "SyncResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, kind: SyncErrorKind, message: str) -> "SyncResult":
        return cls(ok=False, error_message=message, error_kind=kind)
