from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crm_backend.db import get_db
from crm_backend.schemas.activity import ActivityCreate, ActivityResponse
from crm_backend.services.activities import create_activity, get_recent_activities
from crm_backend.services.related import related_summary
from crm_backend.services.view_models import owner_summary

logger = logging.getLogger("crm_backend.routers.activities")

router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.get("/recent")
def recent_activities(db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        activities = [
            {
                **ActivityResponse.model_validate(a).model_dump(mode="json"),
                "user": owner_summary(a.user),
                "relatedTo": related_summary(db, a),
            }
            for a in get_recent_activities(db)
        ]
    except Exception as exc:
        logger.exception("Error fetching recent activities")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch recent activities",
        ) from exc

    return {"activities": activities}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ActivityResponse)
def post_activity(payload: ActivityCreate, db: Session = Depends(get_db)) -> ActivityResponse:
    try:
        activity = create_activity(db, payload.model_dump())
    except Exception as exc:
        logger.exception("Error creating activity")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create activity",
        ) from exc
    return ActivityResponse.model_validate(activity)
