"""Resolve the caller's session profile from request headers or cookies."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from errors import AuthorizationError
from models.records import Role, SessionProfile
from services.simulation import authorize_control

USER_ID_HEADER = "X-User-Id"
EMAIL_HEADER = "X-User-Email"
ROLE_HEADER = "X-User-Role"

USER_ID_COOKIE = "qm_user_id"
EMAIL_COOKIE = "qm_user_email"
ROLE_COOKIE = "qm_user_role"


def _lookup(request: Request, header: str, cookie: str) -> Optional[str]:
    value = request.headers.get(header) or request.cookies.get(cookie)
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def get_session(request: Request) -> Optional[SessionProfile]:
    user_id = _lookup(request, USER_ID_HEADER, USER_ID_COOKIE)
    if user_id is None:
        return None
    return SessionProfile(
        user_id=user_id,
        email=_lookup(request, EMAIL_HEADER, EMAIL_COOKIE),
        role=Role.parse(_lookup(request, ROLE_HEADER, ROLE_COOKIE)),
    )


def require_session(
    session: Optional[SessionProfile] = Depends(get_session),
) -> SessionProfile:
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )
    return session


def require_controller(
    session: SessionProfile = Depends(require_session),
) -> SessionProfile:
    try:
        return authorize_control(session)
    except AuthorizationError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(exc),
        ) from exc
