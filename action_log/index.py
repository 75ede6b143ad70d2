import logging
import threading
from datetime import datetime, timezone

from action_log.errors import ActionLogError
from action_log.log_store import LogStore
from action_log.models import parse_timestamp

logger = logging.getLogger(__name__)

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(entry):
    ts = parse_timestamp(entry.get("timestamp")) if isinstance(entry, dict) else None
    return (ts is not None, ts or _UNDATED)


class LogIndex:
    """In-memory snapshot of every entry across all log files, newest first.

    Only ever rebuilt wholesale from the store; never patched in place.
    """

    def __init__(self, store: LogStore):
        self._store = store
        self._entries: list = []
        self._lock = threading.Lock()
        self._rebuilt_at = None

    def rebuild(self) -> int:
        """Re-read every file and swap in the new snapshot. Returns its size."""
        collected = []
        for file_name in self._store.list():
            try:
                collected.extend(self._store.read(file_name).entries)
            except (ActionLogError, OSError) as exc:
                logger.error("Error reading file %s: %s", file_name, exc)

        # sorted() is stable with reverse=True, so ties keep file order
        collected = sorted(collected, key=_sort_key, reverse=True)

        with self._lock:
            self._entries = collected
            self._rebuilt_at = datetime.now(timezone.utc)

        logger.debug("Index rebuilt with %d entries", len(collected))
        return len(collected)

    def get_all(self) -> list:
        """Return all entries as a list, most recent first."""
        with self._lock:
            return list(self._entries)

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def rebuilt_at(self):
        return self._rebuilt_at
