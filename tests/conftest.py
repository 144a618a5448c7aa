"""
Pytest configuration for the item catalogue.

Provides fixtures for:
- A temporary JSON data file seeded with sample records
- Settings pointing at that file (file watcher off)
- A FastAPI TestClient over an app built from those settings
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List

import pytest
from fastapi.testclient import TestClient

from item_catalog.config import Settings
from item_catalog.main import create_app
from item_catalog.models import Item

SAMPLE_COUNT = 12


def make_records(count: int = SAMPLE_COUNT) -> List[Dict[str, Any]]:
    """Records 1..count; every third has no description, the last has no price."""
    records: List[Dict[str, Any]] = []
    for i in range(1, count + 1):
        record: Dict[str, Any] = {
            "id": i,
            "name": f"Item {i}",
            "category": "Furniture" if i % 2 else "Electronics",
            "price": float(i * 10),
        }
        if i % 3:
            record["description"] = f"Description of item {i}"
        if i == count:
            del record["price"]
        records.append(record)
    return records


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def records() -> List[Item]:
    return [Item.model_validate(r) for r in make_records()]


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    path = tmp_path / "items.json"
    path.write_text(json.dumps(make_records(), indent=2), encoding="utf-8")
    return path


@pytest.fixture
def settings(data_file: Path) -> Settings:
    return Settings(data_path=data_file, watch_enabled=False, log_level="DEBUG")


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
