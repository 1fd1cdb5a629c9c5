"""Hash computation and .hashcheck sidecar files.

A .hashcheck file sits next to a data file (``<data file>.hashcheck``) and
records the hash, size, and modification date of the data file at the time it
was hashed. The file is plain text, one ``key=value`` pair per line::

    # Hashcheck file created 2026-10-16 03:04:05 PM
    size=10485760
    modification_date_utc=2026-10-16 03:04:05 PM
    hash=2fd4e1c67a2d28fced849ee1bb76e7391b93eb12
    hashtype=sha1

The modification time of the .hashcheck file itself is used as the
"last checked" timestamp when deciding whether to recompute a hash.
"""

import hashlib
import logging
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

logger = logging.getLogger(__name__)

HASHCHECK_FILE_SUFFIX = ".hashcheck"

# Shared by every reader and writer of .hashcheck and .LastUsed files
DATE_TIME_FORMAT = "%Y-%m-%d %I:%M:%S %p"

_CHUNK_SIZE = 1024 * 1024


class HashcheckFormatError(ValueError):
    """Raised when a .hashcheck file cannot be parsed."""

    pass


class HashType(Enum):
    """Hash algorithms understood by .hashcheck files."""

    UNDEFINED = "undefined"
    CRC32 = "crc32"
    MD5 = "md5"
    SHA1 = "sha1"

    @classmethod
    def parse(cls, value: Union[str, "HashType", None]) -> "HashType":
        """Convert a hash type name (any case) to a HashType.

        Unknown or empty names map to UNDEFINED.
        """
        if isinstance(value, HashType):
            return value
        if not value:
            return cls.UNDEFINED
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNDEFINED


@dataclass
class HashRecord:
    """Contents of a .hashcheck file (or an expected hash from elsewhere)."""

    hash_value: str = ""
    hash_type: HashType = HashType.UNDEFINED
    file_size: int = 0
    file_date_utc: Optional[datetime] = None

    @classmethod
    def empty(cls) -> "HashRecord":
        """Record with no hash information."""
        return cls()

    @property
    def is_defined(self) -> bool:
        return self.hash_type is not HashType.UNDEFINED


def hashcheck_path(data_file_path: Union[str, Path]) -> Path:
    """Get the .hashcheck file path for a data file."""
    data_file_path = Path(data_file_path)
    return data_file_path.with_name(data_file_path.name + HASHCHECK_FILE_SUFFIX)


def format_utc(value: datetime) -> str:
    """Format a datetime as UTC using DATE_TIME_FORMAT."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(DATE_TIME_FORMAT)


def parse_utc(text: str) -> datetime:
    """Parse a UTC timestamp written with DATE_TIME_FORMAT (or ISO 8601).

    Raises:
        ValueError: If the text matches neither format
    """
    text = text.strip()
    try:
        parsed = datetime.strptime(text, DATE_TIME_FORMAT)
    except ValueError:
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def file_mtime_utc(path: Union[str, Path]) -> datetime:
    """Last modification time of a file, as an aware UTC datetime."""
    return datetime.fromtimestamp(Path(path).stat().st_mtime, tz=timezone.utc)


class HashProvider(ABC):
    """Computes file hashes and reads/writes .hashcheck files."""

    @abstractmethod
    def compute_file_hash(self, path: Union[str, Path], hash_type: HashType) -> str:
        """Compute the hash of a file.

        Args:
            path: File to hash
            hash_type: Algorithm to use

        Returns:
            Lowercase hex digest
        """
        pass

    @abstractmethod
    def read_hash_record(self, hashcheck_file: Union[str, Path]) -> HashRecord:
        """Read a .hashcheck file."""
        pass

    @abstractmethod
    def create_hash_record(
        self, data_file_path: Union[str, Path], hash_type: HashType
    ) -> Tuple[str, str]:
        """Hash a data file and write its .hashcheck file.

        Returns:
            Tuple of (hash value, warning message). The hash value is empty
            if the hash could not be computed.
        """
        pass


class DefaultHashProvider(HashProvider):
    """HashProvider backed by hashlib/zlib and the text .hashcheck format."""

    def compute_file_hash(self, path: Union[str, Path], hash_type: HashType) -> str:
        hash_type = HashType.parse(hash_type)

        if hash_type is HashType.CRC32:
            crc = 0
            with open(path, "rb") as f:
                while chunk := f.read(_CHUNK_SIZE):
                    crc = zlib.crc32(chunk, crc)
            return f"{crc & 0xFFFFFFFF:08x}"

        if hash_type is HashType.MD5:
            hasher = hashlib.md5()
        elif hash_type is HashType.SHA1:
            hasher = hashlib.sha1()
        else:
            raise ValueError(f"Unsupported hash type: {hash_type.value}")

        # Read file in chunks to handle large files
        with open(path, "rb") as f:
            while chunk := f.read(_CHUNK_SIZE):
                hasher.update(chunk)

        return hasher.hexdigest()

    def read_hash_record(self, hashcheck_file: Union[str, Path]) -> HashRecord:
        """Read a .hashcheck file.

        Unknown keys are ignored. A missing ``hashtype`` line leaves the
        record UNDEFINED.

        Raises:
            HashcheckFormatError: If a line is not ``key=value`` or a value is invalid
        """
        record = HashRecord.empty()

        with open(hashcheck_file, "r", encoding="utf-8") as f:
            for line_number, raw_line in enumerate(f, start=1):
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue

                key, sep, value = line.partition("=")
                if not sep:
                    raise HashcheckFormatError(
                        f"Invalid line {line_number} in {hashcheck_file}: {line!r}"
                    )

                key = key.strip().lower()
                value = value.strip()
                try:
                    if key == "size":
                        record.file_size = int(value)
                    elif key == "modification_date_utc":
                        record.file_date_utc = parse_utc(value)
                    elif key == "hash":
                        record.hash_value = value
                    elif key == "hashtype":
                        record.hash_type = HashType.parse(value)
                except ValueError as e:
                    raise HashcheckFormatError(
                        f"Invalid {key} value in {hashcheck_file}: {value!r}"
                    ) from e

        return record

    def write_hash_record(
        self, hashcheck_file: Union[str, Path], record: HashRecord
    ) -> None:
        """Overwrite a .hashcheck file with the given record."""
        file_date = record.file_date_utc or datetime.now(timezone.utc)
        lines = [
            f"# Hashcheck file created {format_utc(datetime.now(timezone.utc))}",
            f"size={record.file_size}",
            f"modification_date_utc={format_utc(file_date)}",
            f"hash={record.hash_value}",
            f"hashtype={record.hash_type.value}",
        ]
        with open(hashcheck_file, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    def create_hash_record(
        self, data_file_path: Union[str, Path], hash_type: HashType
    ) -> Tuple[str, str]:
        data_file = Path(data_file_path)
        hash_type = HashType.parse(hash_type)
        if hash_type is HashType.UNDEFINED:
            hash_type = HashType.SHA1

        try:
            stat = data_file.stat()
            hash_value = self.compute_file_hash(data_file, hash_type)
        except OSError as e:
            return "", f"Unable to compute the {hash_type.value} hash of {data_file}: {e}"

        record = HashRecord(
            hash_value=hash_value,
            hash_type=hash_type,
            file_size=stat.st_size,
            file_date_utc=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

        target = hashcheck_path(data_file)
        try:
            self.write_hash_record(target, record)
        except OSError as e:
            # The hash is still usable even if another process holds the file
            logger.debug(f"Could not write {target}: {e}")
            return hash_value, f"Unable to create the .hashcheck file {target}: {e}"

        return hash_value, ""
