from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 30.0

_BASE_URL_ENV = "API_BASE_URL"
_TIMEOUT_ENV = "CLI_REQUEST_TIMEOUT"
_USER_ID_ENV = "QM_USER_ID"
_EMAIL_ENV = "QM_USER_EMAIL"
_ROLE_ENV = "QM_USER_ROLE"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    def session_headers(self) -> Dict[str, str]:
        headers = {
            "X-User-Id": self.user_id,
            "X-User-Email": self.email,
            "X-User-Role": self.role,
        }
        return {name: value for name, value in headers.items() if value}


def _read_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def load_config(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    role: Optional[str] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if timeout is None:
        timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    return CLIConfig(
        base_url=url.rstrip("/"),
        timeout=timeout,
        user_id=user_id or _read_optional(os.getenv(_USER_ID_ENV)),
        email=email or _read_optional(os.getenv(_EMAIL_ENV)),
        role=role or _read_optional(os.getenv(_ROLE_ENV)),
    )
