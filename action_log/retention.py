"""Age-based retention enforced per log file."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from action_log.errors import ActionLogError, NotFoundError
from action_log.log_store import LogStore
from action_log.models import parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    deleted_files: list = field(default_factory=list)
    failed_files: list = field(default_factory=list)
    max_age_days: int = 7

    @property
    def deleted_count(self) -> int:
        return len(self.deleted_files)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "deletedCount": self.deleted_count,
            "deletedFiles": list(self.deleted_files),
            "message": f"Deleted {self.deleted_count} log files older than {self.max_age_days} days",
        }


def oldest_timestamp(entries: list):
    """Minimum parseable timestamp across *entries*, or None.

    Entries without a readable timestamp neither hold a file back nor
    force its deletion.
    """
    parsed = [
        parse_timestamp(entry.get("timestamp"))
        for entry in entries
        if isinstance(entry, dict)
    ]
    parsed = [ts for ts in parsed if ts is not None]
    return min(parsed) if parsed else None


class RetentionSweeper:
    """Deletes whole files whose oldest entry predates ``now - max_age_days``."""

    def __init__(self, store: LogStore, max_age_days: int = 7, time_func=None):
        self._store = store
        self._max_age_days = max_age_days
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))

    @property
    def max_age_days(self) -> int:
        return self._max_age_days

    def cutoff(self) -> datetime:
        """``now - max_age_days`` in UTC; a naive clock is taken to be UTC."""
        now = self._time_func()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(timezone.utc) - timedelta(days=self._max_age_days)

    def sweep(self, trigger: str = "manual") -> SweepResult:
        cutoff = self.cutoff()
        result = SweepResult(max_age_days=self._max_age_days)

        for file_name in self._store.list():
            try:
                entries = self._store.read(file_name).entries
                if not entries:
                    continue

                oldest = oldest_timestamp(entries)
                if oldest is not None and oldest < cutoff:
                    self._store.delete(file_name)
                    result.deleted_files.append(file_name)
                    logger.info(
                        "[Cleanup] Deleted old log file: %s (oldest log: %s)",
                        file_name, oldest.isoformat(),
                    )
            except NotFoundError:
                logger.debug("%s vanished during cleanup", file_name)
            except (ActionLogError, OSError) as exc:
                result.failed_files.append(file_name)
                logger.error("Error processing file %s during cleanup: %s", file_name, exc)

        logger.info(
            "[Cleanup] %s sweep complete: deleted %d files older than %d days",
            trigger, result.deleted_count, self._max_age_days,
        )
        return result
