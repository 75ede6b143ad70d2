"""File-per-stream log storage.

Each stream lives in ``<log_dir>/<sanitized name>.json`` holding either a
single JSON object or an array of objects.
"""

import json
import logging
import os
import re
import tempfile
import threading
from enum import Enum

from action_log.errors import AccessDeniedError, NotFoundError, ParseError, ValidationError
from action_log.models import EntrySequence, LogContent, normalize_content

logger = logging.getLogger(__name__)

FILE_SUFFIX = ".json"
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


class MergeMode(str, Enum):
    OVERWRITE = "overwrite"
    APPEND = "append"


def sanitize_name(name: str) -> str:
    """Replace every character outside ``[a-zA-Z0-9_-]`` with ``_``."""
    return _UNSAFE_CHARS.sub("_", name)


class LogStore:
    def __init__(self, log_dir: str):
        self._root = os.path.realpath(log_dir)
        self._lock = threading.Lock()
        os.makedirs(self._root, exist_ok=True)

    @property
    def root(self) -> str:
        return self._root

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def file_name(self, stream_name: str) -> str:
        """Sanitized on-disk file name for *stream_name* (with ``.json``)."""
        if not isinstance(stream_name, str) or not stream_name:
            raise ValidationError("fileName is required")
        if "/" in stream_name or "\\" in stream_name or stream_name == "..":
            raise AccessDeniedError("Access denied")

        if stream_name.endswith(FILE_SUFFIX):
            stream_name = stream_name[: -len(FILE_SUFFIX)]
        sanitized = sanitize_name(stream_name)
        if not sanitized:
            raise ValidationError("fileName is required")
        return sanitized + FILE_SUFFIX

    def path_for(self, stream_name: str) -> str:
        path = os.path.realpath(os.path.join(self._root, self.file_name(stream_name)))
        if os.path.commonpath([self._root, path]) != self._root:
            raise AccessDeniedError("Access denied")
        return path

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def append(self, stream_name: str, content: LogContent,
               mode: MergeMode = MergeMode.OVERWRITE) -> str:
        """Write *content* to the stream's file and return the file path.

        OVERWRITE replaces whatever the file held. APPEND concatenates the
        existing entries with the new ones and always writes an array.
        """
        path = self.path_for(stream_name)
        mode = MergeMode(mode)

        with self._lock:
            if mode is MergeMode.APPEND and os.path.exists(path):
                existing = self._load(path)
                content = EntrySequence(tuple(existing.entries) + tuple(content.entries))
            self._write_atomic(path, content.to_raw())

        logger.debug("Wrote %d entries to %s (%s)", len(content.entries), path, mode.value)
        return path

    def read(self, stream_name: str) -> LogContent:
        path = self.path_for(stream_name)
        if not os.path.exists(path):
            raise NotFoundError("Log file not found")
        return self._load(path)

    def list(self) -> list[str]:
        """File names of every stream in the storage root, sorted."""
        return sorted(
            name for name in os.listdir(self._root)
            if name.endswith(FILE_SUFFIX)
            and os.path.isfile(os.path.join(self._root, name))
        )

    def delete(self, stream_name: str) -> None:
        path = self.path_for(stream_name)
        try:
            os.remove(path)
        except FileNotFoundError:
            raise NotFoundError("Log file not found") from None
        logger.info("Deleted log file %s", os.path.basename(path))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _load(path: str) -> LogContent:
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ParseError(f"Malformed JSON in {os.path.basename(path)}", details=str(exc)) from exc
        return normalize_content(raw)

    def _write_atomic(self, path: str, raw) -> None:
        """Write to a temp file in the storage root, then move it into place."""
        fd, tmp_path = tempfile.mkstemp(dir=self._root, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(raw, f, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
