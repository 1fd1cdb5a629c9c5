"""cachesync: Keep local copies of shared data files valid using sidecar files."""

__version__ = "0.1.0"

from cachesync.sync import SyncOrchestrator, ValidationOptions, Validator

__all__ = ["SyncOrchestrator", "Validator", "ValidationOptions", "__version__"]
