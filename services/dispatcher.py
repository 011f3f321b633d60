"""Persist violations as alerts and request a notification for each one."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from app.schemas import Alert
from datastore.telemetry_store import TelemetryStore
from errors import MailError, StoreError
from models.records import Violation
from services.mailer import Mailer

logger = logging.getLogger(__name__)


@dataclass
class DispatchOutcome:
    """What happened to a single violation."""

    alert: Alert
    persisted: bool = False
    notified: bool = False
    error: Optional[str] = None


class AlertDispatcher:
    """Each violation is handled on its own: one failure never blocks the others."""

    def __init__(self, store: TelemetryStore, mailer: Mailer) -> None:
        self.store = store
        self.mailer = mailer

    def dispatch(
        self,
        violations: Iterable[Violation],
        recipient: str,
        user_id: Optional[str] = None,
    ) -> List[DispatchOutcome]:
        return [self._dispatch_one(violation, recipient, user_id) for violation in violations]

    def _dispatch_one(
        self, violation: Violation, recipient: str, user_id: Optional[str]
    ) -> DispatchOutcome:
        alert = Alert.from_violation(violation, user_id=user_id)
        outcome = DispatchOutcome(alert=alert)
        context = {
            "batch_id": alert.batch_id,
            "alert_id": alert.id,
            "parameter_type": alert.parameter_type.value,
            "severity": alert.severity.value,
        }

        try:
            self.store.insert_alert(alert)
        except StoreError as exc:
            outcome.error = str(exc)
            logger.error(
                "Failed to persist alert; skipping notification",
                extra={**context, "reason": str(exc)},
            )
            return outcome
        except Exception as exc:  # pragma: no cover - defensive catch-all
            outcome.error = str(exc)
            logger.error(
                "Unexpected error persisting alert; skipping notification",
                exc_info=exc,
                extra={**context, "reason": str(exc)},
            )
            return outcome
        outcome.persisted = True
        logger.info("Alert persisted", extra=context)

        try:
            self.mailer.send_alert_email(recipient, alert.to_payload())
        except MailError as exc:
            outcome.error = str(exc)
            logger.warning(
                "Failed to send alert email",
                extra={**context, "recipient": recipient, "reason": str(exc)},
            )
            return outcome
        except Exception as exc:  # pragma: no cover - defensive catch-all
            outcome.error = str(exc)
            logger.error(
                "Unexpected error sending alert email",
                exc_info=exc,
                extra={**context, "recipient": recipient, "reason": str(exc)},
            )
            return outcome
        outcome.notified = True
        return outcome
