import json
import threading
from collections import defaultdict

import jsonschema

from action_log.errors import ValidationError
from action_log.models import LogContent, parse_timestamp


class LogValidator:
    """Validates incoming log entries against the packaged JSON schema."""

    def __init__(self, schema_path):
        with open(schema_path, "r") as f:
            schema = json.load(f)

        self._validator = jsonschema.Draft202012Validator(schema)
        self._lock = threading.Lock()
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats():
        return {
            "total": 0,
            "valid": 0,
            "invalid": 0,
            "error_types": defaultdict(int),
        }

    def validate(self, log_entry):
        """Validate a single log entry.

        Returns:
            tuple: (is_valid: bool, errors: list[str])
        """
        errors = list(self._validator.iter_errors(log_entry))
        messages = [error.message for error in errors]
        error_types = [error.validator for error in errors]

        if not errors and parse_timestamp(log_entry.get("timestamp")) is None:
            messages.append(f"{log_entry.get('timestamp')!r} is not an ISO-8601 timestamp")
            error_types.append("format")

        with self._lock:
            self._stats["total"] += 1
            if not messages:
                self._stats["valid"] += 1
            else:
                self._stats["invalid"] += 1
                for kind in error_types:
                    self._stats["error_types"][kind] += 1

        return not messages, messages

    def validate_content(self, content: LogContent):
        """Validate every entry of a file payload; raise ValidationError on the first bad one."""
        entries = content.entries
        if not entries:
            raise ValidationError("No valid logs found in data")

        for position, entry in enumerate(entries):
            is_valid, errors = self.validate(entry)
            if not is_valid:
                raise ValidationError(f"Invalid log entry at index {position}", details=errors)

    def get_stats(self):
        """Return a copy of the stats dict."""
        with self._lock:
            stats = dict(self._stats)
            stats["error_types"] = dict(stats["error_types"])
        return stats

    def reset_stats(self):
        """Reset all stat counters."""
        with self._lock:
            self._stats = self._empty_stats()
