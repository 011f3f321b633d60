"""Display attributes for alert severities."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from models.records import Severity


@dataclass(frozen=True, slots=True)
class SeverityDisplay:
    label: str
    color: str
    badge: str


_DISPLAY: Mapping[Severity, SeverityDisplay] = MappingProxyType(
    {
        Severity.critical: SeverityDisplay(label="Critical", color="#dc2626", badge="destructive"),
        Severity.high: SeverityDisplay(label="High", color="#ea580c", badge="destructive"),
        Severity.medium: SeverityDisplay(label="Medium", color="#ca8a04", badge="default"),
        Severity.low: SeverityDisplay(label="Low", color="#2563eb", badge="secondary"),
    }
)


def severity_display(severity: Severity | str) -> SeverityDisplay:
    """Return label, color and badge variant for ``severity``.

    Accepts the enum or its string value; unknown strings raise ``ValueError``.
    """
    return _DISPLAY[Severity(severity)]
