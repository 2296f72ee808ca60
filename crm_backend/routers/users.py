from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crm_backend.db import get_db
from crm_backend.schemas.user import TeamResponse, UserResponse
from crm_backend.services.auth_service import SessionContext, current_context
from crm_backend.services.users import (
    get_current_user,
    list_teams,
    list_user_teams,
    list_users,
)

logger = logging.getLogger("crm_backend.routers.users")

router = APIRouter(prefix="/api", tags=["users"])


@router.get("/users/current", response_model=UserResponse)
def read_current_user(
    ctx: SessionContext = Depends(current_context),
    db: Session = Depends(get_db),
) -> UserResponse:
    try:
        user = get_current_user(db, ctx)
    except Exception as exc:
        logger.exception("Error fetching current user")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch current user",
        ) from exc

    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)


@router.get("/users/current/teams", summary="Caller's team memberships.")
def read_current_user_teams(
    ctx: SessionContext = Depends(current_context),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        memberships = list_user_teams(db, ctx.user_id)
    except Exception as exc:
        logger.exception("Error fetching teams for user=%s", ctx.user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch user teams",
        ) from exc

    return {
        "teams": [
            {
                **TeamResponse.model_validate(m.team).model_dump(),
                "isAdmin": m.is_admin,
            }
            for m in memberships
        ]
    }


@router.get("/users")
def read_users(db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        users = list_users(db)
    except Exception as exc:
        logger.exception("Error fetching users")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch users",
        ) from exc
    return {"users": [UserResponse.model_validate(u) for u in users]}


@router.get("/teams", response_model=List[TeamResponse])
def read_teams(db: Session = Depends(get_db)) -> List[TeamResponse]:
    try:
        teams = list_teams(db)
    except Exception as exc:
        logger.exception("Error fetching teams")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch teams",
        ) from exc
    return [TeamResponse.model_validate(t) for t in teams]
