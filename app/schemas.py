"""Pydantic schemas for persisted records and the HTTP API layer."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field

from models.records import ParameterType, Severity, Violation


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class SimulationStatus(str, Enum):
    """States of the simulation control surface."""

    stopped = "stopped"
    running = "running"


class BatchReading(BaseModel):
    """One synthetic batch measurement. Never modified once stored."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    batch_id: str
    timestamp: datetime
    temperature: float
    pressure: float
    ph: float
    viscosity: float
    user_id: Optional[str] = None


class AlertPayload(BaseModel):
    """Fields sent to the mailer for one alert."""

    title: str
    message: str
    severity: Severity
    parameter_type: ParameterType
    parameter_value: float
    threshold_value: float
    batch_id: str


class Alert(AlertPayload):
    """Persisted record of one violation."""

    id: str = Field(default_factory=_new_id)
    acknowledged: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    user_id: Optional[str] = None

    @classmethod
    def from_violation(cls, violation: Violation, user_id: Optional[str] = None) -> "Alert":
        return cls(
            title=violation.title,
            message=violation.message,
            severity=violation.severity,
            parameter_type=violation.parameter_type,
            parameter_value=violation.parameter_value,
            threshold_value=violation.threshold_value,
            batch_id=violation.batch_id,
            user_id=user_id,
        )

    def to_payload(self) -> AlertPayload:
        return AlertPayload.model_validate(self.model_dump(include=set(AlertPayload.model_fields)))


class TickFailure(BaseModel):
    """A problem reported by one simulation tick."""

    tick: int = Field(..., ge=1)
    occurred_at: datetime = Field(default_factory=_utcnow)
    reason: str


class SimulationState(BaseModel):
    """Snapshot of the simulation controller."""

    status: SimulationStatus
    interval_seconds: float = Field(..., gt=0)
    started_at: Optional[datetime] = None
    started_by: Optional[str] = None
    ticks_dispatched: int = Field(default=0, ge=0)
    failed_ticks: int = Field(default=0, ge=0)
    recent_failures: List[TickFailure] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def last_error(self) -> Optional[str]:
        return self.recent_failures[-1].reason if self.recent_failures else None


class DashboardSummary(BaseModel):
    """KPI figures computed over the most recently fetched collections."""

    total_batches: int = Field(..., ge=0)
    active_alerts: int = Field(..., ge=0)
    critical_issues: int = Field(..., ge=0)
    simulation: SimulationStatus
    highest_open_severity: Optional[Severity] = None
    latest_reading: Optional[BatchReading] = None
