"""Sync configuration management."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class SyncConfig:
    """Configuration for the local file sync core.

    Attributes:
        recheck_interval_days: Days a .hashcheck file is trusted before the
            hash of the local file is recomputed (0 = recompute every time)
        hash_type: Hash algorithm for newly created .hashcheck files
            ('crc32', 'md5', 'sha1')
        stale_sidecar_minutes: A local .hashcheck file older than this is
            assumed abandoned by other processes; re-copy without waiting
        backoff_min_seconds: Lower bound of the randomized wait (inclusive)
        backoff_max_seconds: Upper bound of the randomized wait (exclusive)
        backoff_mb_per_second: Extra second of wait per this many MB of source file
        lock_timeout: Seconds to wait for the transfer lock on a destination file
        lock_dir: Directory for transfer lock files (None = ~/.cachesync/locks)
    """

    recheck_interval_days: int = 0
    hash_type: str = "sha1"
    stale_sidecar_minutes: float = 10
    backoff_min_seconds: int = 5
    backoff_max_seconds: int = 15
    backoff_mb_per_second: float = 50
    lock_timeout: float = 30
    lock_dir: Optional[Path] = None

    def __post_init__(self):
        """Normalize the hash type name and sanity check the backoff window."""
        self.hash_type = str(self.hash_type).lower()
        if self.lock_dir is not None:
            self.lock_dir = Path(self.lock_dir).expanduser()
        if self.backoff_max_seconds <= self.backoff_min_seconds:
            raise ValueError(
                f"backoff_max_seconds ({self.backoff_max_seconds}) must be greater "
                f"than backoff_min_seconds ({self.backoff_min_seconds})"
            )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "SyncConfig":
        """Load configuration from file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            SyncConfig instance
        """
        if config_path is None:
            config_path = Path.home() / ".cachesync" / "config.json"

        if not config_path.exists():
            return cls()

        with open(config_path, "r") as f:
            data = json.load(f)

        return cls(**data)

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to file.

        Args:
            config_path: Path to config file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.home() / ".cachesync" / "config.json"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "recheck_interval_days": self.recheck_interval_days,
            "hash_type": self.hash_type,
            "stale_sidecar_minutes": self.stale_sidecar_minutes,
            "backoff_min_seconds": self.backoff_min_seconds,
            "backoff_max_seconds": self.backoff_max_seconds,
            "backoff_mb_per_second": self.backoff_mb_per_second,
            "lock_timeout": self.lock_timeout,
            "lock_dir": str(self.lock_dir) if self.lock_dir is not None else None,
        }

        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """Create configuration from environment variables.

        Environment variables:
            CACHESYNC_RECHECK_DAYS: Recheck interval in days
            CACHESYNC_HASH_TYPE: Hash type for new .hashcheck files
            CACHESYNC_STALE_MINUTES: Age at which a local .hashcheck file is stale
            CACHESYNC_LOCK_TIMEOUT: Transfer lock timeout in seconds
            CACHESYNC_LOCK_DIR: Directory for transfer lock files

        Returns:
            SyncConfig instance
        """
        config = cls()

        if os.getenv("CACHESYNC_RECHECK_DAYS"):
            config.recheck_interval_days = int(os.getenv("CACHESYNC_RECHECK_DAYS"))

        if os.getenv("CACHESYNC_HASH_TYPE"):
            config.hash_type = os.getenv("CACHESYNC_HASH_TYPE", "").lower()

        if os.getenv("CACHESYNC_STALE_MINUTES"):
            config.stale_sidecar_minutes = float(os.getenv("CACHESYNC_STALE_MINUTES"))

        if os.getenv("CACHESYNC_LOCK_TIMEOUT"):
            config.lock_timeout = float(os.getenv("CACHESYNC_LOCK_TIMEOUT"))

        if os.getenv("CACHESYNC_LOCK_DIR"):
            config.lock_dir = Path(os.getenv("CACHESYNC_LOCK_DIR")).expanduser()

        return config


# Global sync configuration instance
_global_config: Optional[SyncConfig] = None


def get_global_config() -> SyncConfig:
    """Get global sync configuration.

    Returns:
        Global SyncConfig instance
    """
    global _global_config
    if _global_config is None:
        # Try loading from file, then env, then defaults
        try:
            _global_config = SyncConfig.load()
        except (OSError, ValueError, TypeError):
            _global_config = SyncConfig.from_env()
    return _global_config


def set_global_config(config: Optional[SyncConfig]) -> None:
    """Set global sync configuration.

    Args:
        config: SyncConfig instance to use globally (None resets to lazy loading)
    """
    global _global_config
    _global_config = config
