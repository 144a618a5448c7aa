"""
Aggregate statistics over the catalogue with a time-bounded cache.

``StatsCache`` recomputes ``total`` and ``average_price`` from a full
scan of the store and keeps the result for ``ttl`` seconds. Any call to
``invalidate()`` marks the cached snapshot stale before that. The store
calls it after its own writes, and ``FileChangeWatcher`` calls it when
the data file changes on disk behind our back.

Snapshots are immutable and replaced with a single assignment, so a
reader sees either the previous snapshot or the new one, never a mix.
Recomputation is single-flight: concurrent callers that find the cache
stale wait for one computation instead of each scanning the file.
"""

from __future__ import annotations

import enum
import logging
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from ..models import Item

logger = logging.getLogger(__name__)

DEFAULT_TTL = 30.0  # seconds

Clock = Callable[[], float]
Loader = Callable[[], Sequence[Item]]


class CacheState(str, enum.Enum):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class StatsSnapshot:
    total: int
    average_price: float
    computed_at: float
    # Invalidation generation the snapshot was computed under.
    generation: int = 0


def compute_stats(records: Sequence[Item]) -> Tuple[int, float]:
    """Return ``(count, average price)``; missing prices count as 0."""
    total = len(records)
    if total == 0:
        return 0, 0.0
    return total, sum(item.price or 0 for item in records) / total


class StatsCache:
    """Memoised stats with a TTL and explicit invalidation.

    Parameters
    ----------
    loader : Callable[[], Sequence[Item]]
        Returns the full collection, typically ``RecordStore.read_all``.
    ttl : float
        Seconds a snapshot stays fresh.
    clock : Callable[[], float]
        Monotonic time source; tests inject a fake one.
    """

    def __init__(self, loader: Loader, ttl: float = DEFAULT_TTL, clock: Clock = time.monotonic):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._loader = loader
        self.ttl = ttl
        self._clock = clock
        self._snapshot: Optional[StatsSnapshot] = None
        self._generation = 0
        self._generation_lock = threading.Lock()
        self._refresh_lock = threading.Lock()

    @property
    def snapshot(self) -> Optional[StatsSnapshot]:
        return self._snapshot

    @property
    def state(self) -> CacheState:
        snapshot = self._snapshot
        if snapshot is None:
            return CacheState.EMPTY
        return CacheState.FRESH if self._is_fresh(snapshot) else CacheState.STALE

    def _is_fresh(self, snapshot: Optional[StatsSnapshot]) -> bool:
        if snapshot is None or snapshot.generation != self._generation:
            return False
        return self._clock() - snapshot.computed_at < self.ttl

    def invalidate(self) -> None:
        """Mark the current snapshot stale; the next ``get()`` recomputes."""
        with self._generation_lock:
            self._generation += 1
        logger.debug("Stats cache invalidated (generation %d)", self._generation)

    def get(self) -> StatsSnapshot:
        """Return a fresh snapshot, recomputing it if needed.

        Errors raised by the loader propagate and leave the previous
        snapshot in place.
        """
        snapshot = self._snapshot
        if self._is_fresh(snapshot):
            return snapshot

        with self._refresh_lock:
            # Another thread may have refreshed while we waited.
            snapshot = self._snapshot
            if self._is_fresh(snapshot):
                return snapshot

            generation = self._generation
            records = self._loader()
            total, average_price = compute_stats(records)
            snapshot = StatsSnapshot(
                total=total,
                average_price=average_price,
                computed_at=self._clock(),
                generation=generation,
            )
            self._snapshot = snapshot
            logger.debug("Stats recomputed: total=%d average_price=%.4f", total, average_price)
            return snapshot


class FileChangeWatcher:
    """Poll a file's modification time and size and report changes.

    ``check()`` performs one poll and is what the background thread runs
    every ``interval`` seconds. Watching is best effort: if the file
    cannot be stat'ed the failure is logged once and the cache falls
    back to its TTL.
    """

    def __init__(self, path: Path, on_change: Callable[[], None], interval: float = 1.0):
        self.path = Path(path)
        self.on_change = on_change
        self.interval = interval
        self._signature = self._stat()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._warned = False

    def _stat(self) -> Optional[Tuple[int, int]]:
        try:
            st = os.stat(self.path)
        except OSError:
            return None
        return st.st_mtime_ns, st.st_size

    def check(self) -> bool:
        """Poll once; call ``on_change`` and return True if the file changed."""
        signature = self._stat()
        if signature is None and not self._warned:
            logger.warning("Cannot stat %s; stats rely on TTL only", self.path)
            self._warned = True
        elif signature is not None:
            self._warned = False
        if signature == self._signature:
            return False
        self._signature = signature
        logger.info("Detected change to %s", self.path)
        self.on_change()
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.check()
            except Exception:
                logger.exception("File watcher callback failed")

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="item-catalog-watcher", daemon=True)
        self._thread.start()
        logger.info("Watching %s every %.1fs", self.path, self.interval)

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join(timeout=self.interval + 1)
        self._thread = None
        logger.info("Stopped watching %s", self.path)
