"""Validation of local data files against their .hashcheck files."""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from cachesync.sync.hashcheck import (
    DefaultHashProvider,
    HashProvider,
    HashRecord,
    HashType,
    file_mtime_utc,
    format_utc,
    hashcheck_path,
)
from cachesync.sync.last_used import update_last_used
from cachesync.sync.notify import LoggingNotifier, Notifier
from cachesync.sync.results import SyncErrorKind, SyncResult

# Recorded and actual modification times may differ by this much
DATE_TOLERANCE_SECONDS = 2


@dataclass(frozen=True)
class ValidationOptions:
    """Which checks validate() performs.

    Attributes:
        check_date: Compare the file modification time to the .hashcheck file
            (only used when compute_hash is False)
        compute_hash: Recompute the file hash once the .hashcheck file is
            older than recheck_interval_days
        check_size: Compare the file size to the .hashcheck file
        recheck_interval_days: 0 or less means recompute the hash on every call
    """

    check_date: bool = True
    compute_hash: bool = True
    check_size: bool = True
    recheck_interval_days: int = 0

    @classmethod
    def always_recheck(cls) -> "ValidationOptions":
        """Size check plus a hash recompute on every call."""
        return cls(compute_hash=True, check_size=True, recheck_interval_days=0)

    @classmethod
    def size_and_date_only(cls) -> "ValidationOptions":
        """Cheap check that never reads the file contents."""
        return cls(check_date=True, compute_hash=False, check_size=True)

    def with_recheck_interval(self, days: int) -> "ValidationOptions":
        return replace(self, recheck_interval_days=days)


class Validator:
    """Decides whether a local data file can be trusted.

    The stored .hashcheck file is the reference. When it is missing, the
    hash is computed and a new .hashcheck file written (trust on first use).
    Successful validations refresh the .LastUsed file.

    Examples:
        >>> validator = Validator()
        >>> result = validator.validate('/cache/data.bin', HashRecord.empty())
        >>> if not result:
        ...     print(result.error_message)
    """

    def __init__(
        self,
        hash_provider: Optional[HashProvider] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.hash_provider = hash_provider or DefaultHashProvider()
        self.notifier = notifier or LoggingNotifier()

    def _fail(self, kind: SyncErrorKind, message: str) -> SyncResult:
        self.notifier.warning(message)
        return SyncResult.failure(kind, message)

    def validate(
        self,
        local_path: Union[str, Path],
        expected_hash: Optional[HashRecord] = None,
        options: Optional[ValidationOptions] = None,
        hashcheck_file: Optional[Union[str, Path]] = None,
        new_hash_type: Union[HashType, str, None] = None,
    ) -> SyncResult:
        """Validate a local file, creating its .hashcheck file if missing.

        Args:
            local_path: Data file to validate
            expected_hash: Expected hash info (e.g. from the remote file's
                .hashcheck file). An empty record skips the comparison.
            options: Checks to perform (defaults to ValidationOptions())
            hashcheck_file: .hashcheck path; defaults to ``<local_path>.hashcheck``
            new_hash_type: Hash type for a newly created .hashcheck file when
                expected_hash has none (defaults to SHA1)

        Returns:
            SyncResult; never raises
        """
        expected_hash = expected_hash or HashRecord.empty()
        options = options or ValidationOptions()

        try:
            local_file = Path(local_path)
            if not local_file.exists():
                return self._fail(SyncErrorKind.NOT_FOUND, f"File not found: {local_file}")

            if hashcheck_file:
                sidecar = Path(hashcheck_file)
            else:
                sidecar = hashcheck_path(local_file)

            if not sidecar.exists():
                return self._validate_first_use(local_file, expected_hash, new_hash_type)

            return self._validate_vs_sidecar(local_file, sidecar, expected_hash, options)

        except Exception as e:
            return self._fail(
                SyncErrorKind.UNHANDLED,
                f"Error validating {local_path} against the expected hash: {e}",
            )

    def _validate_first_use(
        self,
        local_file: Path,
        expected_hash: HashRecord,
        new_hash_type: Union[HashType, str, None] = None,
    ) -> SyncResult:
        # The expected hash can only be compared with a hash of the same type
        hash_type = expected_hash.hash_type
        if hash_type is HashType.UNDEFINED:
            hash_type = HashType.parse(new_hash_type)
        if hash_type is HashType.UNDEFINED:
            hash_type = HashType.SHA1

        local_hash, warning = self.hash_provider.create_hash_record(local_file, hash_type)

        if not local_hash:
            message = warning or f"Unable to compute the hash value for local file {local_file}"
            return self._fail(SyncErrorKind.TRANSIENT_IO, message)

        if warning:
            self.notifier.warning(warning)

        if expected_hash.hash_value and local_hash != expected_hash.hash_value:
            return self._fail(
                SyncErrorKind.HASH_MISMATCH,
                f"Mismatch between the expected hash value and the actual hash value "
                f"for {local_file.name}: {expected_hash.hash_value} vs. {local_hash}",
            )

        update_last_used(local_file, self.notifier)
        return SyncResult.success()

    def _validate_vs_sidecar(
        self,
        local_file: Path,
        sidecar: Path,
        expected_hash: HashRecord,
        options: ValidationOptions,
        assumed_hash_type: HashType = HashType.UNDEFINED,
    ) -> SyncResult:
        stored = self.hash_provider.read_hash_record(sidecar)
        if not stored.is_defined:
            stored = replace(stored, hash_type=assumed_hash_type)

        if expected_hash.is_defined and stored.hash_value != expected_hash.hash_value:
            return self._fail(
                SyncErrorKind.HASH_MISMATCH,
                f"Hash mismatch for {local_file.name}: expected "
                f"{expected_hash.hash_value} but actually {stored.hash_value}",
            )

        actual_size = local_file.stat().st_size
        if options.check_size and actual_size != stored.file_size:
            return self._fail(
                SyncErrorKind.SIZE_MISMATCH,
                f"File size mismatch for {local_file.name}: expected "
                f"{stored.file_size:,} bytes but actually {actual_size:,} bytes",
            )

        # The hash is authoritative, so dates only matter when it is not computed
        if not options.compute_hash and options.check_date:
            actual_date = file_mtime_utc(local_file)
            if stored.file_date_utc is None:
                return self._fail(
                    SyncErrorKind.DATE_MISMATCH,
                    f"File date mismatch for {local_file.name}: {sidecar.name} "
                    f"has no modification date",
                )
            delta = abs((actual_date - stored.file_date_utc).total_seconds())
            if delta > DATE_TOLERANCE_SECONDS:
                return self._fail(
                    SyncErrorKind.DATE_MISMATCH,
                    f"File date mismatch for {local_file.name}: expected "
                    f"{format_utc(stored.file_date_utc)} UTC but actually "
                    f"{format_utc(actual_date)} UTC",
                )

        if options.compute_hash:
            age = datetime.now(timezone.utc) - file_mtime_utc(sidecar)
            age_days = age.total_seconds() / 86400

            if options.recheck_interval_days <= 0 or age_days > options.recheck_interval_days:
                if not stored.is_defined:
                    return self._fail(
                        SyncErrorKind.UNDEFINED_HASH_TYPE,
                        "Hashtype is undefined; cannot compute the file hash "
                        "to compare to the .hashcheck file",
                    )

                actual_hash = self.hash_provider.compute_file_hash(local_file, stored.hash_type)
                if actual_hash != stored.hash_value:
                    return self._fail(
                        SyncErrorKind.HASH_MISMATCH,
                        f"Hash mismatch: expecting {stored.hash_value} but computed {actual_hash}",
                    )

        update_last_used(local_file, self.notifier)
        return SyncResult.success()

    def validate_against_hash(
        self,
        local_path: Union[str, Path],
        expected_hash_value: str,
        hash_type: Union[HashType, str],
    ) -> SyncResult:
        """Validate a local file against a bare hash value.

        Args:
            local_path: Data file to validate
            expected_hash_value: Expected digest
            hash_type: Algorithm that produced the digest
        """
        expected = HashRecord(hash_value=expected_hash_value, hash_type=HashType.parse(hash_type))
        return self.validate(local_path, expected)

    def validate_existing_sidecar(
        self,
        local_path: Union[str, Path],
        hashcheck_file: Optional[Union[str, Path]] = None,
        options: Optional[ValidationOptions] = None,
        assumed_hash_type: Union[HashType, str] = HashType.MD5,
    ) -> SyncResult:
        """Validate a local file that must already have a .hashcheck file.

        Unlike validate(), a missing .hashcheck file is a failure rather than
        a first use. The hash, when computed, is always recomputed.

        Args:
            local_path: Data file to validate
            hashcheck_file: .hashcheck path; defaults to ``<local_path>.hashcheck``
            options: Checks to perform; recheck_interval_days is forced to 0
            assumed_hash_type: Hash type to use if the .hashcheck file has no
                hashtype entry
        """
        options = (options or ValidationOptions()).with_recheck_interval(0)

        try:
            local_file = Path(local_path)
            sidecar = Path(hashcheck_file) if hashcheck_file else hashcheck_path(local_file)

            if not local_file.exists():
                return self._fail(SyncErrorKind.NOT_FOUND, f"File not found: {local_file}")

            if not sidecar.exists():
                return self._fail(
                    SyncErrorKind.NOT_FOUND,
                    f"Data file at {local_file} does not have a corresponding "
                    f".hashcheck file named {sidecar.name}",
                )

            return self._validate_vs_sidecar(
                local_file,
                sidecar,
                HashRecord.empty(),
                options,
                assumed_hash_type=HashType.parse(assumed_hash_type),
            )

        except Exception as e:
            return self._fail(
                SyncErrorKind.UNHANDLED, f"Error validating {local_path}: {e}"
            )
