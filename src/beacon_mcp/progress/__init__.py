"""Progress ingestion: normalization, storage and digestion."""

from .digest import ProgressSnapshot, digest_progress_messages
from .messages import Begin, End, Opaque, ProgressKind, ProgressMessage, Report, normalize_value
from .receiver import ProgressReceiver
from .store import ProgressEntry, ProgressStore
from .updates import UpdateSignal
from .workers import Worker, WorkerRegistry

__all__ = [
    "Begin",
    "End",
    "Opaque",
    "ProgressEntry",
    "ProgressKind",
    "ProgressMessage",
    "ProgressReceiver",
    "ProgressSnapshot",
    "ProgressStore",
    "Report",
    "UpdateSignal",
    "Worker",
    "WorkerRegistry",
    "digest_progress_messages",
    "normalize_value",
]
