from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session, joinedload

from crm_backend.models import Activity

logger = logging.getLogger("crm_backend.services.activities")

RECENT_ACTIVITIES_LIMIT = 5


def create_activity(session: Session, activity_data: dict) -> Activity:
    """
    Append an activity to the log. There is no update or delete path.
    """
    data = dict(activity_data)
    if "metadata" in data:
        data["meta"] = data.pop("metadata")

    try:
        activity = Activity(**data)
        session.add(activity)
        session.flush()

        logger.info(
            "Logged %s activity id=%s by user=%s",
            activity.type,
            activity.id,
            activity.user_id,
        )
        return activity

    except Exception:
        logger.exception("Failed to create activity from data: %r", activity_data)
        raise


def get_recent_activities(
    session: Session,
    limit: int = RECENT_ACTIVITIES_LIMIT,
) -> List[Activity]:
    return (
        session.query(Activity)
        .options(joinedload(Activity.user))
        .order_by(Activity.created_at.desc())
        .limit(limit)
        .all()
    )
