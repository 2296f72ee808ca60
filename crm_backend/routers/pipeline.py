from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from crm_backend.db import get_db
from crm_backend.schemas.user import UserResponse
from crm_backend.services.pipeline import get_pipeline, get_pipeline_overview
from crm_backend.services.users import list_users

logger = logging.getLogger("crm_backend.routers.pipeline")

router = APIRouter(prefix="/api/pipeline", tags=["pipeline"])


def _parse_user_filter(user: Optional[str]) -> Optional[int]:
    """`all` (or nothing) means every owner."""
    if not user or user == "all":
        return None
    try:
        return int(user)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="user must be an integer id or 'all'",
        ) from exc


@router.get("/overview", summary="Top deals and totals per stage for the dashboard.")
def pipeline_overview(db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        stages = get_pipeline_overview(db)
    except Exception as exc:
        logger.exception("Error fetching pipeline overview")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch pipeline overview",
        ) from exc
    return {"stages": stages}


@router.get("", summary="Full pipeline board, optionally filtered by owner.")
def pipeline_board(
    user: Optional[str] = Query(default=None),
    sort: Optional[str] = Query(default="updated"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    filter_user_id = _parse_user_filter(user)

    try:
        stages = get_pipeline(db, filter_user_id=filter_user_id, sort_by=sort)
        users = list_users(db)
    except Exception as exc:
        logger.exception("Error fetching pipeline")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch pipeline",
        ) from exc

    return {
        "stages": stages,
        "users": [UserResponse.model_validate(u) for u in users],
    }
