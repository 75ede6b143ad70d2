import json
import os
import threading
from datetime import datetime, timezone

import pytest
from werkzeug.serving import make_server

from action_log.app import create_app
from action_log.config import Config
from action_log.errors import TransportError
from action_log.log_store import LogStore

# Fixed clock for retention boundaries
NOW = datetime(2025, 1, 15, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


def make_entry(timestamp="2025-01-15T10:00:00Z", **overrides):
    entry = {
        "timestamp": timestamp,
        "userName": "u",
        "companyId": "c",
        "event": "e",
        "details": "d",
        "level": "info",
    }
    entry.update(overrides)
    return entry


def write_raw(log_dir, name, content):
    """Write *content* straight to disk, bypassing the store."""
    path = os.path.join(log_dir, name)
    with open(path, "w", encoding="utf-8") as f:
        if isinstance(content, str):
            f.write(content)
        else:
            json.dump(content, f)
    return path


@pytest.fixture
def sample_entry():
    return make_entry()


@pytest.fixture
def log_dir(tmp_path):
    path = tmp_path / "log"
    path.mkdir()
    return str(path)


@pytest.fixture
def store(log_dir):
    return LogStore(log_dir)


@pytest.fixture
def config(log_dir, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("LOG_DIR", raising=False)
    return Config(overrides={
        "storage": {"log_dir": log_dir},
        "retention": {"scheduler_enabled": False},
    })


@pytest.fixture
def app(config):
    """Create a Flask test app running on the fixed clock."""
    application = create_app(config, time_func=fixed_clock)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()


@pytest.fixture
def live_server(app):
    """Serve the app on an ephemeral port in a background thread."""
    server = make_server("127.0.0.1", 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}"
    server.shutdown()
    thread.join(timeout=5)


class FakeTransport:
    """Records every delivery instead of making network calls."""

    def __init__(self, fail=False):
        self.fail = fail
        self.batches: list[tuple[str, list[dict], str]] = []
        self.singles: list[tuple[str, dict, str]] = []
        self._lock = threading.Lock()
        self.delivered = threading.Event()

    def send_batch(self, entries, stream_name, mode="append"):
        if self.fail:
            raise TransportError("Internal server error", status=500)
        with self._lock:
            self.batches.append((stream_name, list(entries), mode))
        self.delivered.set()
        return {"success": True, "fileName": f"{stream_name}.json"}

    def send_log(self, entry, stream_name, mode="overwrite"):
        if self.fail:
            raise TransportError("Internal server error", status=500)
        with self._lock:
            self.singles.append((stream_name, entry, mode))
        return {"success": True, "fileName": f"{stream_name}.json"}


@pytest.fixture
def transport():
    return FakeTransport()
