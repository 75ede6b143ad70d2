"""Log entry model and the two on-disk content shapes."""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from action_log.errors import ParseError


class Level(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def utc_now_iso() -> str:
    """Current UTC instant as an ISO-8601 string with millisecond precision."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value) -> Optional[datetime.datetime]:
    """Best-effort ISO-8601 parse. Returns an aware UTC datetime, or None.

    Naive values are taken to be UTC.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)


@dataclass
class LogEntry:
    user_name: str
    company_id: str
    event: str
    details: str
    level: Level = Level.INFO
    timestamp: str = field(default_factory=utc_now_iso)
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Wire form, with the camelCase keys the server and dashboard use."""
        data = dict(self.extra)
        data.update({
            "timestamp": self.timestamp,
            "userName": self.user_name,
            "companyId": self.company_id,
            "event": self.event,
            "details": self.details,
            "level": Level(self.level).value,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "LogEntry":
        known = {"timestamp", "userName", "companyId", "event", "details", "level"}
        return cls(
            user_name=data["userName"],
            company_id=data["companyId"],
            event=data["event"],
            details=data["details"],
            level=Level(data.get("level", Level.INFO.value)),
            timestamp=data.get("timestamp") or utc_now_iso(),
            extra={k: v for k, v in data.items() if k not in known},
        )


def create_log_entry(
    user_name: str,
    company_id: str,
    event: str,
    details: str,
    level: Union[Level, str] = Level.INFO,
    **extra,
) -> LogEntry:
    """Factory function that creates a LogEntry stamped with the current time."""
    return LogEntry(
        user_name=user_name,
        company_id=company_id,
        event=event,
        details=details,
        level=Level(level),
        extra=extra,
    )


def ensure_timestamp(entry: Union[LogEntry, dict]) -> dict:
    """Return the wire dict for *entry*, filling ``timestamp`` when absent."""
    if isinstance(entry, LogEntry):
        return entry.to_dict()
    data = dict(entry)
    if not data.get("timestamp"):
        data["timestamp"] = utc_now_iso()
    return data


# ----------------------------------------------------------------------
# File content: a single object or an ordered array of objects
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class SingleEntry:
    entry: dict

    @property
    def entries(self) -> list:
        return [self.entry]

    def to_raw(self):
        return self.entry


@dataclass(frozen=True)
class EntrySequence:
    items: tuple = ()

    @property
    def entries(self) -> list:
        return list(self.items)

    def to_raw(self):
        return list(self.items)


LogContent = Union[SingleEntry, EntrySequence]


def normalize_content(raw) -> LogContent:
    """Wrap parsed JSON into the matching content variant.

    Anything other than an object or an array is rejected.
    """
    if isinstance(raw, dict):
        return SingleEntry(raw)
    if isinstance(raw, list):
        return EntrySequence(tuple(raw))
    raise ParseError(
        "Log content must be a JSON object or array",
        details=f"got {type(raw).__name__}",
    )
