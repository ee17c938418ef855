"""Tests for the snapshot cell."""

import threading
from datetime import datetime, timezone

from landingpage.cache import IngressCache
from landingpage.models import IngressEntry, IngressSnapshot


def _snapshot(generation: int, entries: int = 3) -> IngressSnapshot:
    return IngressSnapshot(
        entries=tuple(
            IngressEntry(
                cluster_name="local",
                name=f"svc-{i}",
                namespace="default",
                display_name=f"gen-{generation}",
                hosts=(f"svc-{i}.example.com",),
            )
            for i in range(entries)
        ),
        generated_at=datetime.now(timezone.utc),
        cluster_errors={"foobar": "fetch failed"} if generation % 2 else {},
        generation=generation,
    )


class TestIngressCache:
    """Tests for IngressCache."""

    def test_empty_before_first_publish(self):
        cache = IngressCache()

        snapshot = cache.current()

        assert snapshot.entries == ()
        assert snapshot.generation == 0
        assert snapshot.generated_at is None

    def test_publish_replaces_snapshot(self):
        cache = IngressCache()
        first = _snapshot(1)

        previous = cache.publish(first)

        assert previous.generation == 0
        assert cache.current() is first

        second = _snapshot(2)
        assert cache.publish(second) is first
        assert cache.current() is second

    def test_reader_keeps_old_snapshot(self):
        """A snapshot held by a reader stays intact after a new publish."""
        cache = IngressCache(_snapshot(1))
        held = cache.current()

        cache.publish(_snapshot(2, entries=1))

        assert held.generation == 1
        assert len(held.entries) == 3

    def test_status(self):
        cache = IngressCache(_snapshot(3))

        status = cache.status()

        assert status.generation == 3
        assert status.entry_count == 3
        assert status.cluster_errors == {"foobar": "fetch failed"}
        assert not status.healthy

    def test_concurrent_readers_see_whole_snapshots(self):
        """Readers in other threads never see a mix of two snapshots."""
        cache = IngressCache(_snapshot(0))
        torn = []
        done = threading.Event()

        def reader():
            while not done.is_set():
                snapshot = cache.current()
                labels = {e.display_name for e in snapshot.entries}
                if labels != {f"gen-{snapshot.generation}"}:
                    torn.append(snapshot.generation)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for generation in range(1, 200):
            cache.publish(_snapshot(generation))
        done.set()
        for t in threads:
            t.join()

        assert torn == []
