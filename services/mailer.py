"""Alert notification delivery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import List, Optional, Protocol

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.schemas import AlertPayload
from errors import MailError
from services.severity import severity_display
from settings import get_settings

logger = logging.getLogger(__name__)

_templates = Environment(
    loader=FileSystemLoader(str(Path(__file__).resolve().parent / "templates")),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class EmailMessage:
    sender: str
    to: str
    subject: str
    html: str


class Mailer(Protocol):
    def send_alert_email(self, to: str, alert: AlertPayload) -> None:
        ...


def build_subject(alert: AlertPayload) -> str:
    return f"\N{POLICE CARS REVOLVING LIGHT} {severity_display(alert.severity).label} Alert: {alert.title}"


def render_alert_html(alert: AlertPayload, sent_at: Optional[datetime] = None) -> str:
    """Render the severity-colored HTML body for ``alert``."""
    template = _templates.get_template("alert_email.html")
    return template.render(
        alert=alert,
        display=severity_display(alert.severity),
        sent_at=(sent_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S UTC"),
    )


def compose_alert_email(sender: str, to: str, alert: AlertPayload) -> EmailMessage:
    if not to or "@" not in to:
        raise MailError(f"Invalid recipient address {to!r}.")
    return EmailMessage(
        sender=sender,
        to=to,
        subject=build_subject(alert),
        html=render_alert_html(alert),
    )


class OutboxMailer:
    """Records composed messages instead of delivering them."""

    def __init__(self, sender: str) -> None:
        self.sender = sender
        self._outbox: List[EmailMessage] = []
        self._lock = Lock()

    def send_alert_email(self, to: str, alert: AlertPayload) -> None:
        message = compose_alert_email(self.sender, to, alert)
        with self._lock:
            self._outbox.append(message)
        logger.info(
            "Email delivery disabled; stored alert email in outbox",
            extra={"recipient": to, "batch_id": alert.batch_id, "severity": alert.severity.value},
        )

    @property
    def outbox(self) -> List[EmailMessage]:
        with self._lock:
            return list(self._outbox)


class ResendMailer:
    """Delivers alert emails through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        api_url: str = "https://api.resend.com/emails",
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self.sender = sender
        self.api_url = api_url
        self._client = client or httpx.Client(timeout=timeout)
        self._api_key = api_key

    def close(self) -> None:
        self._client.close()

    def send_alert_email(self, to: str, alert: AlertPayload) -> None:
        message = compose_alert_email(self.sender, to, alert)
        try:
            response = self._client.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={
                    "from": message.sender,
                    "to": [message.to],
                    "subject": message.subject,
                    "html": message.html,
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise MailError(
                f"Mail API rejected alert email with status {exc.response.status_code}: "
                f"{exc.response.text.strip() or 'no detail provided.'}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise MailError(f"Mail API request failed: {exc}") from exc
        logger.info(
            "Alert email sent",
            extra={"recipient": to, "batch_id": alert.batch_id, "severity": alert.severity.value},
        )


@lru_cache
def build_default_mailer() -> Mailer:
    settings = get_settings()
    if settings.resend_api_key:
        return ResendMailer(
            api_key=settings.resend_api_key,
            sender=settings.alert_sender,
            api_url=settings.resend_api_url,
        )
    return OutboxMailer(sender=settings.alert_sender)
