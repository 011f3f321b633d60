"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    """Alert urgency, declared in ascending order."""

    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


class ParameterType(str, Enum):
    """Measurement families covered by the threshold rules."""

    temperature = "Temperature"
    pressure = "Pressure"
    ph = "pH"


class Role(str, Enum):
    admin = "admin"
    operator = "operator"
    viewer = "viewer"
    none = "none"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        if not value:
            return cls.none
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.none


CONTROL_ROLES = frozenset({Role.admin, Role.operator})


@dataclass(frozen=True, slots=True)
class Violation:
    """A single parameter of one reading falling outside its safe range."""

    title: str
    message: str
    severity: Severity
    parameter_type: ParameterType
    parameter_value: float
    threshold_value: float
    batch_id: str


@dataclass(frozen=True, slots=True)
class SessionProfile:
    """Identity of the caller as supplied by the session provider."""

    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Role = Role.none

    @property
    def authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def can_control(self) -> bool:
        return self.role in CONTROL_ROLES
