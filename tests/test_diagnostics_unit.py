"""Unit tests for warning collection."""

import threading

from feed_ingest.diagnostics import WarningCollector


class TestWarningCollector:
    def test_keeps_first_seen_order_without_duplicates(self):
        warnings = WarningCollector()

        assert warnings.add("b") is True
        assert warnings.add("a") is True
        assert warnings.add("b") is False
        warnings.extend(["c", "a", "d"])

        assert warnings.messages == ["b", "a", "c", "d"]
        assert len(warnings) == 4
        assert "c" in warnings
        assert "z" not in warnings

    def test_messages_is_a_copy(self):
        warnings = WarningCollector()
        warnings.add("one")

        snapshot = warnings.messages
        snapshot.append("two")

        assert warnings.messages == ["one"]

    def test_concurrent_adds(self):
        warnings = WarningCollector()

        def worker():
            for i in range(200):
                warnings.add(f"warning {i % 50}")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(warnings.messages) == sorted(f"warning {i}" for i in range(50))

    def test_reads_wait_for_concurrent_writers(self):
        warnings = WarningCollector()
        warnings.add("one")
        results = {}

        def reader():
            results["len"] = len(warnings)
            results["contains"] = "one" in warnings

        with warnings._lock:
            thread = threading.Thread(target=reader)
            thread.start()
            thread.join(timeout=0.2)
            assert thread.is_alive()
            assert results == {}

        thread.join()
        assert results == {"len": 1, "contains": True}
