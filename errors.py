"""Exception hierarchy shared by the store, mailer and simulation layers."""

from __future__ import annotations


class QualityMonitorError(Exception):
    """Base class for recoverable errors raised by the monitor."""


class AuthorizationError(QualityMonitorError):
    """The session may not perform the requested action."""


class StoreError(QualityMonitorError):
    """A reading or alert could not be persisted or fetched."""


class MailError(QualityMonitorError):
    """An alert notification could not be delivered."""
