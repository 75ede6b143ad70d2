from conftest import make_entry, write_raw

from action_log.index import LogIndex


class TestRebuild:
    def test_flattens_and_sorts_newest_first(self, store, log_dir):
        write_raw(log_dir, "a.json", [make_entry("2025-01-10T00:00:00Z"), make_entry("2025-01-14T00:00:00Z")])
        write_raw(log_dir, "b.json", make_entry("2025-01-12T00:00:00Z"))

        index = LogIndex(store)
        assert index.rebuild() == 3
        assert [e["timestamp"] for e in index.get_all()] == [
            "2025-01-14T00:00:00Z",
            "2025-01-12T00:00:00Z",
            "2025-01-10T00:00:00Z",
        ]

    def test_ties_keep_file_order(self, store, log_dir):
        ts = "2025-01-10T00:00:00Z"
        write_raw(log_dir, "a.json", [make_entry(ts, event="a1"), make_entry(ts, event="a2")])
        write_raw(log_dir, "b.json", make_entry(ts, event="b1"))

        index = LogIndex(store)
        index.rebuild()
        assert [e["event"] for e in index.get_all()] == ["a1", "a2", "b1"]

    def test_undated_entries_sort_last(self, store, log_dir):
        write_raw(log_dir, "a.json", [make_entry("garbage", event="bad"), make_entry("2025-01-10T00:00:00Z")])

        index = LogIndex(store)
        index.rebuild()
        assert index.get_all()[-1]["event"] == "bad"

    def test_bad_file_skipped(self, store, log_dir):
        write_raw(log_dir, "broken.json", "{oops")
        write_raw(log_dir, "good.json", make_entry())

        index = LogIndex(store)
        assert index.rebuild() == 1

    def test_undecodable_file_skipped(self, store, log_dir):
        with open(f"{log_dir}/aaa_bad.json", "wb") as f:
            f.write(b'{"timestamp": "\xff\xfe"}')
        write_raw(log_dir, "zzz_good.json", make_entry())

        index = LogIndex(store)
        assert index.rebuild() == 1

    def test_snapshot_until_next_rebuild(self, store, log_dir):
        write_raw(log_dir, "a.json", make_entry())
        index = LogIndex(store)
        index.rebuild()

        write_raw(log_dir, "b.json", make_entry())
        assert index.size == 1

        index.rebuild()
        assert index.size == 2

    def test_rebuild_replaces_not_accumulates(self, store, log_dir):
        write_raw(log_dir, "a.json", make_entry())
        index = LogIndex(store)
        index.rebuild()
        index.rebuild()
        assert index.size == 1
        assert index.rebuilt_at is not None

    def test_get_all_returns_copy(self, store, log_dir):
        write_raw(log_dir, "a.json", make_entry())
        index = LogIndex(store)
        index.rebuild()
        index.get_all().clear()
        assert index.size == 1
