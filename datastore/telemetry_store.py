from __future__ import annotations
import json
import logging
import os
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.schemas import Alert, BatchReading
from errors import StoreError
from settings import get_settings

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT", bound=BaseModel)


class MockTable(Generic[ItemT]):
    """In-process table keyed by the item's ``id`` with optional JSON persistence."""

    def __init__(
        self,
        name: str,
        model: Type[ItemT],
        persistence_path: Optional[Path] = None,
    ) -> None:
        self.name = name
        self.model = model
        self._items: Dict[str, ItemT] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def insert(self, item: ItemT) -> None:
        key = getattr(item, "id")
        with self._lock:
            if key in self._items:
                raise StoreError(f"Item {key!r} already exists in table {self.name!r}.")
            self._items[key] = item.model_copy(deep=True)
            try:
                self._persist()
            except OSError as exc:
                del self._items[key]
                raise StoreError(f"Failed to persist table {self.name!r}: {exc}") from exc

    def update(self, key: str, mutate: Callable[[ItemT], ItemT]) -> Optional[ItemT]:
        with self._lock:
            current = self._items.get(key)
            if current is None:
                return None
            updated = mutate(current.model_copy(deep=True))
            self._items[key] = updated
            try:
                self._persist()
            except OSError as exc:
                self._items[key] = current
                raise StoreError(f"Failed to persist table {self.name!r}: {exc}") from exc
            return updated.model_copy(deep=True)

    def get(self, key: str) -> Optional[ItemT]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            return item.model_copy(deep=True)

    def scan(self) -> list[ItemT]:
        """Return deep copies of all stored items in insertion order."""

        with self._lock:
            return [item.model_copy(deep=True) for item in self._items.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {key: item.model_dump(mode="json") for key, item in self._items.items()}
        # Replace the file in one step so a crash never leaves a truncated table.
        staging = self.persistence_path.with_name(f"{self.persistence_path.name}.tmp")
        staging.write_text(json.dumps(payload, indent=2, sort_keys=True))
        os.replace(staging, self.persistence_path)

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable table file %s",
                self.persistence_path,
                extra={"reason": "unreadable"},
            )
            data = {}

        for key, payload in data.items():
            try:
                self._items[key] = self.model.model_validate(payload)
            except ValidationError:
                logger.warning(
                    "Skipping invalid record %s in table %s",
                    key,
                    self.name,
                    extra={"reason": "invalid record"},
                )


def _newest_first(items: list[ItemT], key: Callable[[ItemT], datetime], limit: int) -> list[ItemT]:
    if limit <= 0:
        return []
    return sorted(items, key=key, reverse=True)[:limit]


class TelemetryStore:
    """Append-only tables for batch readings and alerts."""

    def __init__(self, readings: MockTable[BatchReading], alerts: MockTable[Alert]) -> None:
        self.readings = readings
        self.alerts = alerts

    def insert_reading(self, reading: BatchReading) -> None:
        self.readings.insert(reading)

    def insert_alert(self, alert: Alert) -> None:
        self.alerts.insert(alert)

    def list_readings(self, limit: int = 50) -> list[BatchReading]:
        return _newest_first(self.readings.scan(), lambda reading: reading.timestamp, limit)

    def list_alerts(self, limit: int = 20) -> list[Alert]:
        return _newest_first(self.alerts.scan(), lambda alert: alert.created_at, limit)

    def get_alert(self, alert_id: str) -> Optional[Alert]:
        return self.alerts.get(alert_id)

    def acknowledge_alert(self, alert_id: str) -> Optional[Alert]:
        """Mark an alert as acknowledged; returns ``None`` when it does not exist."""
        return self.alerts.update(
            alert_id, lambda alert: alert.model_copy(update={"acknowledged": True})
        )


@lru_cache
def build_default_store(
    readings_path: Optional[str] = None,
    alerts_path: Optional[str] = None,
) -> TelemetryStore:
    settings = get_settings()
    readings_file = settings.readings_table_path if readings_path is None else readings_path
    alerts_file = settings.alerts_table_path if alerts_path is None else alerts_path
    return TelemetryStore(
        readings=MockTable(
            name="batch_readings",
            model=BatchReading,
            persistence_path=Path(readings_file) if readings_file else None,
        ),
        alerts=MockTable(
            name="alerts",
            model=Alert,
            persistence_path=Path(alerts_file) if alerts_file else None,
        ),
    )
