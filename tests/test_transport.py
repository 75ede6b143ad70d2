"""End-to-end tests for LogTransport against a live server on an ephemeral port."""

import pytest

from conftest import make_entry

from action_log.errors import TransportError
from action_log.event_queue import EventQueue
from action_log.transport import LogTransport


@pytest.fixture
def remote(live_server):
    transport = LogTransport(live_server, timeout=5.0)
    yield transport
    transport.close()


class TestDelivery:
    def test_send_log_single_object(self, remote, sample_entry):
        result = remote.send_log(sample_entry, "t")
        assert result["success"] is True
        assert result["fileName"] == "t.json"
        assert remote.get_file("t") == sample_entry

    def test_send_batch_appends(self, remote):
        remote.send_batch([make_entry(event="a"), make_entry(event="b")], "t")
        remote.send_batch([make_entry(event="c")], "t")
        assert [e["event"] for e in remote.get_file("t.json")] == ["a", "b", "c"]

    def test_send_log_fills_timestamp(self, remote):
        entry = make_entry()
        del entry["timestamp"]
        # a real "now" stamp is newer than the fixed clock, so it survives the sweep
        remote.send_log(entry, "t")
        assert remote.get_file("t")["timestamp"]

    def test_validation_error_surfaces_status(self, remote):
        with pytest.raises(TransportError) as exc_info:
            remote.send_log(make_entry(userName=""), "t")
        assert exc_info.value.status == 400
        assert "Invalid log entry" in exc_info.value.message

    def test_connection_failure(self):
        transport = LogTransport("http://127.0.0.1:9", timeout=1.0)
        with pytest.raises(TransportError) as exc_info:
            transport.get_logs()
        assert exc_info.value.status is None


class TestFileManagement:
    def test_list_get_delete(self, remote, sample_entry):
        remote.send_log(sample_entry, "a")
        remote.send_log(sample_entry, "b")

        assert remote.list_files() == {"success": True, "count": 2, "files": ["a.json", "b.json"]}
        assert remote.get_logs() == [sample_entry, sample_entry]

        assert remote.delete_file("a.json")["success"] is True
        assert remote.list_files()["files"] == ["b.json"]

    def test_missing_file(self, remote):
        with pytest.raises(TransportError) as exc_info:
            remote.get_file("nope")
        assert exc_info.value.status == 404
        assert exc_info.value.message == "Log file not found"

    def test_traversal_rejected(self, remote):
        with pytest.raises(TransportError) as exc_info:
            remote.delete_file("../../etc/passwd")
        assert exc_info.value.status == 403

    def test_cleanup(self, remote):
        remote.upload([make_entry("2025-01-14T00:00:00Z")])
        result = remote.cleanup()
        assert result["success"] is True
        assert result["deletedCount"] == 0

    def test_upload(self, remote):
        result = remote.upload([make_entry(), make_entry()])
        assert result["count"] == 2
        assert len(remote.get_logs()) == 2


class TestQueueToServer:
    def test_batches_accumulate_in_one_stream(self, remote):
        queue = EventQueue(remote, default_stream="clicks", batch_size=2, batch_timeout_ms=60_000)

        for i in range(5):
            queue.enqueue(make_entry(event=f"e{i}"))
        queue.close()

        stored = remote.get_file("clicks")
        assert [e["event"] for e in stored] == [f"e{i}" for i in range(5)]
        assert len(remote.get_logs()) == 5
