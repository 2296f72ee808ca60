from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from crm_backend.config import settings

logger = logging.getLogger("crm_backend.auth")


@dataclass(frozen=True)
class SessionContext:
    """
    Caller identity threaded through every user-dependent service call.

    Single-tenant for now: there is no login, the id comes from a header,
    a cookie, or the configured default user.
    """

    user_id: int


def _parse_user_id(raw: Optional[str], source: str) -> Optional[int]:
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s value: %r", source, raw)
        return None


def current_context(request: Request) -> SessionContext:
    """
    FastAPI dependency resolving the caller.

    Order: X-User-Id header, session_user_id cookie, DEFAULT_USER_ID.
    """
    user_id = _parse_user_id(request.headers.get("X-User-Id"), "X-User-Id header")
    if user_id is None:
        user_id = _parse_user_id(
            request.cookies.get("session_user_id"), "session_user_id cookie"
        )
    if user_id is None:
        user_id = settings.default_user_id

    return SessionContext(user_id=user_id)
