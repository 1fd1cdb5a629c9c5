"""Tracking of when a cached data file was last used.

Each validated data file gets a ``<data file>.LastUsed`` file holding a single
UTC timestamp line. Nothing in this package reads it back; it is a liveness
signal for whatever purges old files from the cache.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from cachesync.sync.hashcheck import format_utc
from cachesync.sync.notify import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

LASTUSED_FILE_EXTENSION = ".LastUsed"


def last_used_path(data_file_path: Union[str, Path]) -> Path:
    """Get the .LastUsed file path for a data file."""
    data_file_path = Path(data_file_path)
    return data_file_path.with_name(data_file_path.name + LASTUSED_FILE_EXTENSION)


def update_last_used(
    data_file_path: Union[str, Path], notifier: Optional[Notifier] = None
) -> None:
    """Overwrite the .LastUsed file for a data file with the current UTC time.

    Best effort: an OSError (typically another process holding the file) is
    ignored, and anything else is reported as a warning.

    Args:
        data_file_path: Data file whose .LastUsed file should be updated
        notifier: Receives a warning on unexpected failures
    """
    target = last_used_path(data_file_path)

    try:
        with open(target, "w", encoding="utf-8") as f:
            f.write(format_utc(datetime.now(timezone.utc)) + "\n")
    except OSError as e:
        # The file is likely open by another process
        logger.debug(f"Skipped updating {target}: {e}")
    except Exception as e:
        (notifier or LoggingNotifier()).warning(
            f"Unable to create a new .LastUsed file at {target}: {e}"
        )
