from __future__ import annotations

import random

import pytest

from app.schemas import Alert, BatchReading
from datastore.telemetry_store import MockTable, TelemetryStore
from errors import AuthorizationError, StoreError
from models.records import ParameterType, Role, SessionProfile, Severity
from services.dispatcher import DispatchOutcome
from services.generator import ReadingGenerator
from services.mailer import OutboxMailer
from services.pipeline import TickPipeline, TickResult

SESSION = SessionProfile(user_id="user-1", email="qa@example.com", role=Role.operator)


class FixedGenerator(ReadingGenerator):
    def __init__(self, **values: float) -> None:
        super().__init__(rng=random.Random(0))
        self.values = values

    def generate(self, user_id=None) -> BatchReading:
        base = super().generate(user_id=user_id)
        return base.model_copy(update=self.values)


def _store() -> TelemetryStore:
    return TelemetryStore(
        readings=MockTable(name="readings", model=BatchReading),
        alerts=MockTable(name="alerts", model=Alert),
    )


def test_tick_persists_reading_before_alerts() -> None:
    store = _store()
    mailer = OutboxMailer(sender="Quality Monitor <alerts@example.com>")
    generator = FixedGenerator(temperature=96.0, pressure=2.2, ph=7.5, viscosity=1300.0)
    pipeline = TickPipeline(store=store, mailer=mailer, generator=generator)

    result = pipeline.run_tick(SESSION)

    assert result.reading is not None
    assert result.error is None
    [reading] = store.list_readings()
    assert reading.batch_id == result.reading.batch_id
    assert reading.user_id == "user-1"
    [alert] = store.list_alerts()
    assert alert.batch_id == reading.batch_id
    assert alert.created_at >= reading.timestamp
    assert result.alerts_persisted == 1
    assert result.alerts_notified == 1
    assert [message.to for message in mailer.outbox] == ["qa@example.com"]


def test_in_range_tick_creates_no_alerts() -> None:
    store = _store()
    mailer = OutboxMailer(sender="alerts@example.com")
    generator = FixedGenerator(temperature=88.0, pressure=2.2, ph=7.5)

    result = TickPipeline(store=store, mailer=mailer, generator=generator).run_tick(SESSION)

    assert result.violations == []
    assert len(store.list_readings()) == 1
    assert store.list_alerts() == []
    assert mailer.outbox == []


def test_reading_persistence_failure_skips_evaluation() -> None:
    class BrokenStore(TelemetryStore):
        def insert_reading(self, reading: BatchReading) -> None:
            raise StoreError("readings table unavailable")

    store = BrokenStore(
        readings=MockTable(name="readings", model=BatchReading),
        alerts=MockTable(name="alerts", model=Alert),
    )
    generator = FixedGenerator(temperature=99.0)
    mailer = OutboxMailer(sender="alerts@example.com")

    result = TickPipeline(store=store, mailer=mailer, generator=generator).run_tick(SESSION)

    assert result.reading is None
    assert result.error == "readings table unavailable"
    assert store.list_alerts() == []
    assert mailer.outbox == []


def test_tick_requires_notification_email() -> None:
    pipeline = TickPipeline(store=_store(), mailer=OutboxMailer(sender="alerts@example.com"))

    with pytest.raises(AuthorizationError):
        pipeline.run_tick(SessionProfile(user_id="user-1", email=None, role=Role.admin))



def test_tick_errors_list_reading_and_alert_failures() -> None:
    assert TickResult(error="readings table unavailable").errors == ["readings table unavailable"]

    alert = Alert(
        title="pH Level Alert",
        message="pH level out of acceptable range in BATCH-1",
        severity=Severity.medium,
        parameter_type=ParameterType.ph,
        parameter_value=6.5,
        threshold_value=7.0,
        batch_id="BATCH-1",
    )
    result = TickResult(
        outcomes=[
            DispatchOutcome(alert=alert, persisted=True, notified=True),
            DispatchOutcome(alert=alert, persisted=True, error="mail relay unavailable"),
        ]
    )

    assert result.errors == ["mail relay unavailable"]
