"""Tests for the in-memory provenance index."""

from __future__ import annotations

import threading

import pytest

pytestmark = [pytest.mark.unit, pytest.mark.storage]

from ccprov.storage.provenance_index import ProvenanceIndex


@pytest.fixture
def index():
    idx = ProvenanceIndex()
    idx.replace_all({"a.txt": "one.net", "b.txt": "two.net"})
    return idx


class TestProvenanceIndex:
    """Test ProvenanceIndex operations."""

    def test_lookup(self, index):
        assert index.get("a.txt") == "one.net"
        assert index.get("missing.txt") is None
        assert index.contains("b.txt")
        assert not index.contains("missing.txt")
        assert len(index) == 2

    def test_insert_if_absent_keeps_first_host(self, index):
        assert index.insert_if_absent("c.txt", "three.net") is None
        assert index.insert_if_absent("c.txt", "other.net") == "three.net"
        assert index.get("c.txt") == "three.net"

    def test_pop(self, index):
        assert index.pop("a.txt") == "one.net"
        assert index.pop("a.txt") is None
        assert len(index) == 1

    def test_rename_moves_record(self, index):
        assert index.rename("a.txt", "renamed.txt") == "one.net"
        assert index.get("renamed.txt") == "one.net"
        assert not index.contains("a.txt")

    def test_rename_replaces_target_record(self, index):
        assert index.rename("a.txt", "b.txt") == "one.net"
        assert index.snapshot() == {"b.txt": "one.net"}

    def test_rename_unknown_is_noop(self, index):
        assert index.rename("missing.txt", "new.txt") is None
        assert not index.contains("new.txt")

    def test_retain(self, index):
        stale = index.retain({"a.txt", "unrelated.bin"})
        assert stale == ["b.txt"]
        assert index.snapshot() == {"a.txt": "one.net"}

    def test_clear(self, index):
        assert index.clear() == 2
        assert len(index) == 0

    def test_snapshot_is_a_copy(self, index):
        snapshot = index.snapshot()
        snapshot["a.txt"] = "changed.net"
        index.pop("b.txt")
        assert index.get("a.txt") == "one.net"
        assert "b.txt" in snapshot

    def test_concurrent_inserts(self):
        index = ProvenanceIndex()
        winners = []

        def worker(host):
            if index.insert_if_absent("shared.bin", host) is None:
                winners.append(host)

        threads = [
            threading.Thread(target=worker, args=(f"host{i}.net",)) for i in range(20)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(winners) == 1
        assert index.get("shared.bin") == winners[0]
