from __future__ import annotations

import threading
import time
from typing import List

import pytest

from item_catalog.catalog.stats import CacheState, FileChangeWatcher, StatsCache, compute_stats
from item_catalog.errors import StoreUnavailableError
from item_catalog.models import Item

TTL = 30.0


class CountingLoader:
    def __init__(self, records: List[Item]):
        self.records = records
        self.calls = 0

    def __call__(self) -> List[Item]:
        self.calls += 1
        return list(self.records)


def test_compute_stats_treats_missing_price_as_zero():
    records = [Item(id=1, name="a", price=10), Item(id=2, name="b"), Item(id=3, name="c", price=20)]

    assert compute_stats(records) == (3, 10.0)


def test_compute_stats_on_empty_collection():
    assert compute_stats([]) == (0, 0.0)


def test_cache_starts_empty_then_fresh(records, fake_clock):
    cache = StatsCache(CountingLoader(records), ttl=TTL, clock=fake_clock)
    assert cache.state is CacheState.EMPTY

    snapshot = cache.get()

    assert cache.state is CacheState.FRESH
    assert snapshot.total == 12
    # prices 10..110, item 12 has none
    assert snapshot.average_price == pytest.approx(sum(range(10, 120, 10)) / 12)


def test_calls_within_ttl_return_identical_snapshot(records, fake_clock):
    loader = CountingLoader(records)
    cache = StatsCache(loader, ttl=TTL, clock=fake_clock)

    first = cache.get()
    fake_clock.advance(TTL - 1)
    second = cache.get()

    assert second is first
    assert loader.calls == 1


def test_ttl_expiry_forces_recompute(records, fake_clock):
    loader = CountingLoader(records)
    cache = StatsCache(loader, ttl=TTL, clock=fake_clock)
    first = cache.get()

    fake_clock.advance(TTL)
    assert cache.state is CacheState.STALE
    loader.records = records[:2]
    second = cache.get()

    assert loader.calls == 2
    assert second is not first
    assert second.total == 2
    assert second.computed_at == fake_clock.now


def test_invalidate_marks_stale_before_ttl(records, fake_clock):
    loader = CountingLoader(records)
    cache = StatsCache(loader, ttl=TTL, clock=fake_clock)
    cache.get()

    cache.invalidate()

    assert cache.state is CacheState.STALE
    assert cache.get().total == 12
    assert loader.calls == 2
    assert cache.state is CacheState.FRESH


def test_empty_store_average_is_zero(fake_clock):
    cache = StatsCache(CountingLoader([]), ttl=TTL, clock=fake_clock)

    snapshot = cache.get()

    assert snapshot.total == 0
    assert snapshot.average_price == 0


def test_loader_failure_propagates_and_keeps_previous_snapshot(records, fake_clock):
    calls = {"n": 0}

    def loader():
        calls["n"] += 1
        if calls["n"] > 1:
            raise StoreUnavailableError("gone")
        return records

    cache = StatsCache(loader, ttl=TTL, clock=fake_clock)
    first = cache.get()
    cache.invalidate()

    with pytest.raises(StoreUnavailableError):
        cache.get()
    assert cache.snapshot is first


def test_invalidation_during_recompute_leaves_result_stale(records, fake_clock):
    holder = {}

    def loader_that_sees_a_write():
        holder["cache"].invalidate()
        return records

    cache = holder["cache"] = StatsCache(loader_that_sees_a_write, ttl=TTL, clock=fake_clock)
    cache.get()

    assert cache.state is CacheState.STALE


def test_concurrent_stale_readers_share_one_recompute(records):
    release = threading.Event()
    calls = []

    def slow_loader():
        calls.append(1)
        release.wait(5)
        return records

    cache = StatsCache(slow_loader, ttl=TTL)
    results = []
    threads = [threading.Thread(target=lambda: results.append(cache.get())) for _ in range(8)]
    for t in threads:
        t.start()
    time.sleep(0.05)
    release.set()
    for t in threads:
        t.join(5)

    assert len(calls) == 1
    assert len(results) == 8
    assert all(r is results[0] for r in results)


def test_rejects_non_positive_ttl(records):
    with pytest.raises(ValueError):
        StatsCache(lambda: records, ttl=0)


def test_watcher_reports_file_changes(tmp_path):
    path = tmp_path / "items.json"
    path.write_text("[]", encoding="utf-8")
    fired = []
    watcher = FileChangeWatcher(path, lambda: fired.append(1), interval=0.1)

    assert watcher.check() is False

    path.write_text('[{"id": 1, "name": "x"}]', encoding="utf-8")
    assert watcher.check() is True
    assert watcher.check() is False
    assert fired == [1]


def test_watcher_treats_missing_file_as_change_and_keeps_going(tmp_path):
    path = tmp_path / "items.json"
    path.write_text("[]", encoding="utf-8")
    fired = []
    watcher = FileChangeWatcher(path, lambda: fired.append(1))

    path.unlink()
    assert watcher.check() is True
    assert watcher.check() is False

    path.write_text("[]", encoding="utf-8")
    assert watcher.check() is True
    assert len(fired) == 2


def test_watcher_thread_invalidates_cache(tmp_path, records):
    path = tmp_path / "items.json"
    path.write_text("[]", encoding="utf-8")
    cache = StatsCache(lambda: records, ttl=3600)
    cache.get()
    watcher = FileChangeWatcher(path, cache.invalidate, interval=0.02)
    watcher.start()
    try:
        path.write_text('[{"id": 99, "name": "new"}]', encoding="utf-8")
        deadline = time.monotonic() + 5
        while cache.state is CacheState.FRESH and time.monotonic() < deadline:
            time.sleep(0.02)
    finally:
        watcher.stop()

    assert cache.state is CacheState.STALE
