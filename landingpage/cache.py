"""The published snapshot cell shared by the scheduler and its readers."""

import threading
from typing import Optional

from .logging_config import get_logger
from .models import CacheStatus, IngressSnapshot

logger = get_logger(__name__)


class IngressCache:
    """Holds the current ``IngressSnapshot``.

    One writer (the refresh scheduler) replaces the snapshot wholesale;
    any number of readers call ``current()``. The lock only guards the
    reference swap, so readers never wait on a refresh in progress.
    """

    def __init__(self, initial: Optional[IngressSnapshot] = None):
        self._lock = threading.Lock()
        self._snapshot = initial if initial is not None else IngressSnapshot()

    def current(self) -> IngressSnapshot:
        with self._lock:
            return self._snapshot

    def publish(self, snapshot: IngressSnapshot) -> IngressSnapshot:
        """Replace the current snapshot, returning the previous one."""
        with self._lock:
            previous, self._snapshot = self._snapshot, snapshot
        logger.debug("Snapshot published", generation=snapshot.generation,
                     entries=len(snapshot.entries), previous_generation=previous.generation)
        return previous

    def status(self) -> CacheStatus:
        snapshot = self.current()
        return CacheStatus(
            generation=snapshot.generation,
            generated_at=snapshot.generated_at,
            entry_count=len(snapshot.entries),
            cluster_count=len(snapshot.clusters),
            cluster_errors=dict(snapshot.cluster_errors),
        )
