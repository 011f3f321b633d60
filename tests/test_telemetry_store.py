"""Unit tests for the telemetry tables."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from app.schemas import Alert, BatchReading
from datastore.telemetry_store import MockTable, TelemetryStore
from errors import StoreError
from models.records import ParameterType, Severity

_BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _reading(batch_id: str = "BATCH-1", minutes: int = 0) -> BatchReading:
    return BatchReading(
        batch_id=batch_id,
        timestamp=_BASE_TIME + timedelta(minutes=minutes),
        temperature=88.0,
        pressure=2.2,
        ph=7.5,
        viscosity=1300.0,
    )


def _alert(batch_id: str = "BATCH-1", minutes: int = 0, severity: Severity = Severity.high) -> Alert:
    return Alert(
        title="High Temperature Alert",
        message=f"Temperature exceeded safe threshold in {batch_id}",
        severity=severity,
        parameter_type=ParameterType.temperature,
        parameter_value=93.0,
        threshold_value=90.0,
        batch_id=batch_id,
        created_at=_BASE_TIME + timedelta(minutes=minutes),
    )


def _store(tmp_path: Path | None = None) -> TelemetryStore:
    return TelemetryStore(
        readings=MockTable(
            name="batch_readings",
            model=BatchReading,
            persistence_path=tmp_path / "readings.json" if tmp_path else None,
        ),
        alerts=MockTable(
            name="alerts",
            model=Alert,
            persistence_path=tmp_path / "alerts.json" if tmp_path else None,
        ),
    )


def test_insert_rejects_duplicate_ids() -> None:
    store = _store()
    reading = _reading()

    store.insert_reading(reading)

    with pytest.raises(StoreError):
        store.insert_reading(reading)
    assert len(store.readings) == 1


def test_lists_are_newest_first_and_limited() -> None:
    store = _store()
    for minute in (1, 3, 2):
        store.insert_reading(_reading(batch_id=f"BATCH-{minute}", minutes=minute))
        store.insert_alert(_alert(batch_id=f"BATCH-{minute}", minutes=minute))

    assert [r.batch_id for r in store.list_readings(limit=2)] == ["BATCH-3", "BATCH-2"]
    assert [a.batch_id for a in store.list_alerts(limit=5)] == ["BATCH-3", "BATCH-2", "BATCH-1"]


def test_acknowledge_alert_updates_stored_copy() -> None:
    store = _store()
    alert = _alert()
    store.insert_alert(alert)

    updated = store.acknowledge_alert(alert.id)

    assert updated is not None and updated.acknowledged is True
    fetched = store.get_alert(alert.id)
    assert fetched is not None and fetched.acknowledged is True


def test_acknowledge_unknown_alert_returns_none() -> None:
    assert _store().acknowledge_alert("missing") is None


def test_scan_returns_copies() -> None:
    store = _store()
    alert = _alert()
    store.insert_alert(alert)

    listed = store.list_alerts()
    listed[0].acknowledged = True

    assert store.get_alert(alert.id).acknowledged is False  # type: ignore[union-attr]


def test_tables_persist_to_disk_and_reload(tmp_path: Path) -> None:
    store = _store(tmp_path)
    reading = _reading()
    alert = _alert()
    store.insert_reading(reading)
    store.insert_alert(alert)

    payload = json.loads((tmp_path / "alerts.json").read_text())
    assert payload[alert.id]["severity"] == "high"
    assert payload[alert.id]["parameter_type"] == "Temperature"

    reloaded = _store(tmp_path)
    assert reloaded.list_readings() == [reading]
    assert reloaded.list_alerts() == [alert]


def test_unreadable_table_file_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "readings.json"
    path.write_text("{not json")

    table = MockTable(name="batch_readings", model=BatchReading, persistence_path=path)

    assert table.scan() == []


def test_write_failure_raises_store_error_and_rolls_back(tmp_path: Path, monkeypatch) -> None:
    store = _store(tmp_path)

    def broken_write(*_args, **_kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "write_text", broken_write)

    with pytest.raises(StoreError, match="disk full"):
        store.insert_alert(_alert())
    assert len(store.alerts) == 0


def test_failed_write_leaves_previous_table_file_intact(tmp_path: Path, monkeypatch) -> None:
    store = _store(tmp_path)
    kept = _alert(batch_id="BATCH-1")
    store.insert_alert(kept)

    def crash_mid_write(self: Path, data: str, *args, **kwargs) -> int:
        with open(self, "w") as handle:
            handle.write(data[: len(data) // 2])
        raise OSError("disk full")

    monkeypatch.setattr(Path, "write_text", crash_mid_write)

    with pytest.raises(StoreError):
        store.insert_alert(_alert(batch_id="BATCH-2"))
    monkeypatch.undo()

    reloaded = _store(tmp_path)
    assert reloaded.list_alerts() == [kept]
