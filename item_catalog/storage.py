# item_catalog/storage.py
"""
Flat-file record store.

The whole collection lives in one JSON array on disk. Reads parse the
full file and writes replace it, so the query engine and the stats
cache always work on a complete snapshot. Writes from this process are
serialised with a lock; separate processes writing the same file can
still race and the last write wins.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

from pydantic import ValidationError

from .errors import StoreUnavailableError
from .models import Item, ItemCreate

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


def _new_item_id() -> int:
    # Millisecond wall-clock reading; two creates in the same millisecond collide.
    return time.time_ns() // 1_000_000


class RecordStore:
    """Read-all / replace-all access to the JSON data file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._write_lock = threading.Lock()
        self._listeners: List[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> None:
        """Call ``listener`` after every successful ``replace_all``."""
        self._listeners.append(listener)

    def read_all(self) -> List[Item]:
        """Load every record from disk.

        Raises
        ------
        StoreUnavailableError
            If the file is missing, is not valid JSON, or does not hold
            an array of records.
        """
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError as exc:
            raise StoreUnavailableError(f"Data file not found: {self.path}") from exc
        except (OSError, ValueError) as exc:
            logger.error("Cannot read %s: %s", self.path, exc)
            raise StoreUnavailableError(f"Cannot read data file: {self.path}") from exc

        if not isinstance(raw, list):
            raise StoreUnavailableError(f"Data file does not contain a JSON array: {self.path}")
        try:
            return [Item.model_validate(entry) for entry in raw]
        except ValidationError as exc:
            logger.error("Malformed record in %s: %s", self.path, exc)
            raise StoreUnavailableError(f"Malformed record in data file: {self.path}") from exc

    def replace_all(self, records: Sequence[Item]) -> None:
        """Overwrite the data file with ``records`` and notify listeners."""
        payload = [_dump(record) for record in records]
        with self._write_lock:
            try:
                with self.path.open("w", encoding="utf-8") as f:
                    json.dump(payload, f, ensure_ascii=False, indent=2)
            except OSError as exc:
                logger.error("Cannot write %s: %s", self.path, exc)
                raise StoreUnavailableError(f"Failed to write data file: {self.path}") from exc
        for listener in list(self._listeners):
            listener()

    def create(self, payload: ItemCreate) -> Item:
        """Append a new record with a server-assigned id and persist it."""
        data = payload.model_dump(exclude_unset=True)
        data["id"] = _new_item_id()
        item = Item.model_validate(data)
        records = self.read_all()
        records.append(item)
        self.replace_all(records)
        logger.info("Created item %s", item.id)
        return item


def _dump(record: Item) -> Dict[str, Any]:
    data = record.model_dump(exclude_unset=True)
    data["id"] = record.id
    return data
