"""The per-tick unit of work: generate, persist, evaluate, dispatch."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from app.schemas import BatchReading
from datastore.telemetry_store import TelemetryStore
from errors import AuthorizationError, StoreError
from models.records import SessionProfile, Violation
from services.dispatcher import AlertDispatcher, DispatchOutcome
from services.evaluator import ViolationEvaluator
from services.generator import ReadingGenerator
from services.mailer import Mailer

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    reading: Optional[BatchReading] = None
    violations: List[Violation] = field(default_factory=list)
    outcomes: List[DispatchOutcome] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def alerts_persisted(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.persisted)

    @property
    def alerts_notified(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.notified)

    @property
    def errors(self) -> List[str]:
        """Every failure reported while running the tick, reading first."""
        alert_errors = [outcome.error for outcome in self.outcomes if outcome.error]
        return ([self.error] if self.error else []) + alert_errors


class TickPipeline:
    """Runs one simulated reading through persistence, evaluation and dispatch."""

    def __init__(
        self,
        store: TelemetryStore,
        mailer: Mailer,
        generator: Optional[ReadingGenerator] = None,
        evaluator: Optional[ViolationEvaluator] = None,
    ) -> None:
        self.store = store
        self.generator = generator or ReadingGenerator()
        self.evaluator = evaluator or ViolationEvaluator()
        self.dispatcher = AlertDispatcher(store=store, mailer=mailer)

    def run_tick(self, session: SessionProfile) -> TickResult:
        if not session.email:
            raise AuthorizationError("A notification email is required to run the simulation.")

        reading = self.generator.generate(user_id=session.user_id)
        try:
            self.store.insert_reading(reading)
        except StoreError as exc:
            logger.error(
                "Failed to persist batch reading; skipping evaluation",
                extra={"batch_id": reading.batch_id, "reason": str(exc)},
            )
            return TickResult(error=str(exc))

        violations = self.evaluator.evaluate(reading)
        logger.info(
            "Batch reading evaluated",
            extra={"batch_id": reading.batch_id, "alert_count": len(violations)},
        )
        outcomes = self.dispatcher.dispatch(
            violations, recipient=session.email, user_id=session.user_id
        )
        return TickResult(reading=reading, violations=violations, outcomes=outcomes)
