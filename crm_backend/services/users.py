from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from crm_backend.models import Team, User, UserTeam
from crm_backend.services.auth_service import SessionContext

logger = logging.getLogger("crm_backend.services.users")


def get_user(session: Session, user_id: int) -> Optional[User]:
    return session.get(User, user_id)


def get_current_user(session: Session, ctx: SessionContext) -> Optional[User]:
    """Resolve the caller's user row; None when the id does not exist."""
    user = get_user(session, ctx.user_id)
    if user is None:
        logger.warning("Session user %s does not exist", ctx.user_id)
    return user


def list_users(session: Session) -> List[User]:
    return session.query(User).order_by(User.name.asc()).all()


def list_teams(session: Session) -> List[Team]:
    return session.query(Team).order_by(Team.name.asc()).all()


def list_user_teams(session: Session, user_id: int) -> List[UserTeam]:
    return (
        session.query(UserTeam)
        .filter(UserTeam.user_id == user_id)
        .order_by(UserTeam.id.asc())
        .all()
    )
