"""Threshold rules applied to a single batch reading."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from app.schemas import BatchReading
from models.records import ParameterType, Severity, Violation

TEMPERATURE_LIMIT = 90.0
TEMPERATURE_CRITICAL = 95.0
PRESSURE_LIMIT = 2.4
PRESSURE_CRITICAL = 2.5
PH_MIN = 7.0
PH_MAX = 8.0

Rule = Callable[[BatchReading], Optional[Violation]]


def check_temperature(reading: BatchReading) -> Optional[Violation]:
    value = reading.temperature
    if not value > TEMPERATURE_LIMIT:
        return None
    return Violation(
        title="High Temperature Alert",
        message=f"Temperature exceeded safe threshold in {reading.batch_id}",
        severity=Severity.critical if value > TEMPERATURE_CRITICAL else Severity.high,
        parameter_type=ParameterType.temperature,
        parameter_value=value,
        threshold_value=TEMPERATURE_LIMIT,
        batch_id=reading.batch_id,
    )


def check_pressure(reading: BatchReading) -> Optional[Violation]:
    value = reading.pressure
    if not value > PRESSURE_LIMIT:
        return None
    return Violation(
        title="High Pressure Alert",
        message=f"Pressure exceeded safe threshold in {reading.batch_id}",
        severity=Severity.critical if value > PRESSURE_CRITICAL else Severity.high,
        parameter_type=ParameterType.pressure,
        parameter_value=value,
        threshold_value=PRESSURE_LIMIT,
        batch_id=reading.batch_id,
    )


def check_ph(reading: BatchReading) -> Optional[Violation]:
    value = reading.ph
    if not (value < PH_MIN or value > PH_MAX):
        return None
    return Violation(
        title="pH Level Alert",
        message=f"pH level out of acceptable range in {reading.batch_id}",
        severity=Severity.medium,
        parameter_type=ParameterType.ph,
        parameter_value=value,
        threshold_value=PH_MIN if value < PH_MIN else PH_MAX,
        batch_id=reading.batch_id,
    )


DEFAULT_RULES: Sequence[Rule] = (check_temperature, check_pressure, check_ph)


class ViolationEvaluator:
    """Pure rule engine: the same reading always yields the same violations."""

    def __init__(self, rules: Sequence[Rule] = DEFAULT_RULES) -> None:
        self.rules = tuple(rules)

    def evaluate(self, reading: BatchReading) -> List[Violation]:
        violations: List[Violation] = []
        for rule in self.rules:
            violation = rule(reading)
            if violation is not None:
                violations.append(violation)
        return violations
