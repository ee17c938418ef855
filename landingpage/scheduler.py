"""Periodic, concurrent refresh of every registered cluster."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .cache import IngressCache
from .connection import ConnectionFactory, connection_for
from .errors import ClusterError, FetchError, error_message
from .logging_config import get_logger, log_function_entry, log_function_exit, log_refresh_event
from .models import ClusterDescriptor, ClusterSummary, GlobalSettings, IngressEntry, IngressSnapshot
from .normalize import normalize_all
from .registry import ClusterRegistry

logger = get_logger(__name__)

MIN_REFRESH_INTERVAL_SECONDS = 5
FETCH_TIMEOUT_RATIO = 0.8


class SchedulerState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    MERGING = "merging"
    PUBLISHED = "published"


@dataclass(frozen=True)
class ClusterOutcome:
    """What one cluster contributed to a cycle."""

    descriptor: ClusterDescriptor
    entries: List[IngressEntry] = field(default_factory=list)
    error: Optional[str] = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def effective_interval(settings: GlobalSettings) -> float:
    return float(max(settings.refresh_interval_seconds, MIN_REFRESH_INTERVAL_SECONDS))


def effective_fetch_timeout(settings: GlobalSettings) -> float:
    """Per-cluster timeout, always shorter than the refresh interval."""
    ceiling = effective_interval(settings) * FETCH_TIMEOUT_RATIO
    if settings.fetch_timeout_seconds is None:
        return ceiling
    return min(settings.fetch_timeout_seconds, ceiling)


def next_tick(previous_tick: float, now: float, interval: float) -> Tuple[float, int]:
    """The tick following ``previous_tick`` that is not yet in the past.

    Returns the tick and how many ticks were skipped to reach it.
    """
    tick = previous_tick + interval
    if now <= tick:
        return tick, 0
    skipped = int((now - tick) // interval) + 1
    return tick + skipped * interval, skipped


class RefreshScheduler:
    """Drives refresh cycles and publishes their snapshots.

    Each cycle fans out one task per cluster, waits for all of them to
    finish or time out, merges the results and publishes a new snapshot
    to the cache. Cycles never overlap.
    """

    def __init__(
        self,
        registry: ClusterRegistry,
        cache: IngressCache,
        settings: Optional[GlobalSettings] = None,
        connection_factory: ConnectionFactory = connection_for,
    ):
        settings = settings or GlobalSettings()
        self.registry = registry
        self.cache = cache
        self.only_with_annotation = settings.only_with_annotation
        self.refresh_interval = effective_interval(settings)
        self.fetch_timeout = effective_fetch_timeout(settings)
        self.state = SchedulerState.IDLE
        self._connection_factory = connection_factory
        self._cycle_lock: Optional[asyncio.Lock] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_lock is not None and self._cycle_lock.locked()

    def _lock(self) -> asyncio.Lock:
        # created inside the running loop; the scheduler is built before uvicorn starts its loop
        if self._cycle_lock is None:
            self._cycle_lock = asyncio.Lock()
        return self._cycle_lock

    async def _fetch_cluster(self, descriptor: ClusterDescriptor) -> ClusterOutcome:
        """Fetch and normalize one cluster, turning any failure into an outcome."""
        connection = self._connection_factory(descriptor)
        try:
            raws = await asyncio.wait_for(connection.fetch(self.fetch_timeout), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            error: BaseException = FetchError.timeout(descriptor.name, self.fetch_timeout)
        except ClusterError as e:
            error = e
        except Exception as e:
            logger.exception("Unexpected error fetching cluster", cluster=descriptor.name)
            error = e
        else:
            entries = normalize_all(raws, descriptor.name, self.only_with_annotation)
            logger.debug("Cluster fetched", cluster=descriptor.name, raw=len(raws), entries=len(entries))
            return ClusterOutcome(descriptor, entries=entries)

        message = error_message(error)
        timed_out = isinstance(error, FetchError) and error.timed_out
        log_refresh_event(logger, "cluster_failed", cluster=descriptor.name, error=message, timed_out=timed_out)
        return ClusterOutcome(descriptor, error=message, timed_out=timed_out)

    def merge(self, outcomes: Sequence[ClusterOutcome], previous: IngressSnapshot, generation: int) -> IngressSnapshot:
        """Build the next snapshot.

        Failed clusters keep the entries they had in ``previous``. Entries
        are ordered by group (registry order), cluster name, object name
        and namespace.
        """
        group_rank = {group: i for i, group in enumerate(self.registry.group_order())}
        rank_of: Dict[str, int] = {}
        entries: List[IngressEntry] = []
        errors: Dict[str, str] = {}
        summaries: List[ClusterSummary] = []

        for outcome in outcomes:
            descriptor = outcome.descriptor
            rank_of[descriptor.name] = group_rank.get(descriptor.group or "", len(group_rank))
            if outcome.ok:
                cluster_entries = list(outcome.entries)
            else:
                cluster_entries = list(previous.entries_for(descriptor.name))
                errors[descriptor.name] = outcome.error
            entries.extend(cluster_entries)
            summaries.append(ClusterSummary(
                name=descriptor.name,
                description=descriptor.description,
                group=descriptor.group,
                entry_count=len(cluster_entries),
                stale=not outcome.ok and bool(cluster_entries),
                error=outcome.error,
            ))

        entries.sort(key=lambda e: (rank_of[e.cluster_name], e.cluster_name, e.name, e.namespace))
        summaries.sort(key=lambda s: (rank_of[s.name], s.name))

        return IngressSnapshot(
            entries=tuple(entries),
            generated_at=datetime.now(timezone.utc),
            cluster_errors=errors,
            clusters=tuple(summaries),
            generation=generation,
        )

    async def run_cycle(self) -> IngressSnapshot:
        """Run one complete refresh cycle and publish its snapshot.

        ``state`` stays PUBLISHED until the next cycle starts; a cycle that
        is abandoned or fails leaves it IDLE.
        """
        async with self._lock():
            previous = self.cache.current()
            generation = previous.generation + 1
            log_function_entry(logger, "run_cycle", generation=generation, clusters=len(self.registry))
            try:
                self.state = SchedulerState.FETCHING
                outcomes = await asyncio.gather(*(self._fetch_cluster(d) for d in self.registry))

                self.state = SchedulerState.MERGING
                snapshot = self.merge(outcomes, previous, generation)

                self.cache.publish(snapshot)
            except BaseException:
                self.state = SchedulerState.IDLE
                raise
            self.state = SchedulerState.PUBLISHED

            log_refresh_event(logger, "snapshot_published",
                              generation=generation,
                              entries=len(snapshot.entries),
                              failed_clusters=sorted(snapshot.cluster_errors))
            log_function_exit(logger, "run_cycle", generation=generation)
            return snapshot

    async def run_forever(self) -> None:
        """Run a cycle immediately, then once per interval.

        Ticks missed while a cycle overran the interval are skipped.
        """
        loop = asyncio.get_running_loop()
        tick = loop.time()
        logger.info("Refresh loop started", interval_seconds=self.refresh_interval,
                    fetch_timeout_seconds=self.fetch_timeout, clusters=len(self.registry))
        while True:
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Refresh cycle failed, keeping previous snapshot")

            now = loop.time()
            tick, skipped = next_tick(tick, now, self.refresh_interval)
            if skipped:
                logger.warning("Refresh cycle overran interval", skipped_ticks=skipped)
            await asyncio.sleep(tick - now)

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.create_task(self.run_forever(), name="landingpage-refresh")
        return self._task

    async def stop(self) -> None:
        """Stop scheduling cycles. An in-flight cycle is abandoned."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.state = SchedulerState.IDLE
        logger.info("Refresh loop stopped")
