from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload

from crm_backend.models import Deal, PipelineStage
from crm_backend.services.view_models import deal_card, money

logger = logging.getLogger("crm_backend.services.pipeline")

OVERVIEW_DEALS_PER_STAGE = 5

# Accepted `sort` values. Bare "value"/"name" are the older spellings.
SORT_ALIASES = {
    "value": "value-desc",
    "name": "name-asc",
}


def _ordered_stages(session: Session) -> List[PipelineStage]:
    return session.query(PipelineStage).order_by(PipelineStage.order.asc()).all()


def _stage_header(stage: PipelineStage) -> Dict[str, Any]:
    return {
        "id": stage.id,
        "name": stage.name,
        "color": stage.color,
        "order": stage.order,
    }


def _apply_sort(query: Query, sort_by: Optional[str]) -> Query:
    """
    Order a deals query. Anything unrecognised sorts by most recently
    updated. No secondary key: ties come back in store order.
    """
    key = SORT_ALIASES.get(sort_by or "", sort_by)

    if key == "value-desc":
        return query.order_by(Deal.value.desc())
    if key == "value-asc":
        return query.order_by(Deal.value.asc())
    if key == "name-asc":
        return query.order_by(Deal.name.asc())
    if key == "closing":
        # Soonest close first, undated deals at the end
        return query.order_by(
            Deal.expected_close_date.is_(None),
            Deal.expected_close_date.asc(),
        )
    return query.order_by(Deal.updated_at.desc())


def get_pipeline_overview(session: Session) -> List[Dict[str, Any]]:
    """
    Dashboard pipeline widget.

    Each stage lists its five most recently updated deals, while
    `totalValue` is summed over every deal in the stage.
    """
    stages = []
    for stage in _ordered_stages(session):
        deals = (
            session.query(Deal)
            .options(joinedload(Deal.owner))
            .filter(Deal.stage_id == stage.id)
            .order_by(Deal.updated_at.desc())
            .limit(OVERVIEW_DEALS_PER_STAGE)
            .all()
        )
        total = (
            session.query(func.coalesce(func.sum(Deal.value), 0))
            .filter(Deal.stage_id == stage.id)
            .scalar()
        )

        stages.append(
            {
                **_stage_header(stage),
                "totalValue": money(total),
                "deals": [deal_card(deal) for deal in deals],
            }
        )

    logger.debug("Pipeline overview built for %d stages", len(stages))
    return stages


def get_pipeline(
    session: Session,
    filter_user_id: Optional[int] = None,
    sort_by: Optional[str] = "updated",
) -> List[Dict[str, Any]]:
    """
    Full kanban board: every deal in every stage.

    With `filter_user_id` only that owner's deals are listed and the stage
    totals cover only those deals, so they can be lower than the overview's.
    """
    stages = []
    for stage in _ordered_stages(session):
        query = (
            session.query(Deal)
            .options(joinedload(Deal.owner))
            .filter(Deal.stage_id == stage.id)
        )
        if filter_user_id is not None:
            query = query.filter(Deal.owner_id == filter_user_id)

        deals: List[Deal] = _apply_sort(query, sort_by).all()
        total = sum((Decimal(deal.value) for deal in deals), Decimal("0"))

        stages.append(
            {
                **_stage_header(stage),
                "totalValue": money(total),
                "deals": [deal_card(deal) for deal in deals],
            }
        )

    logger.debug(
        "Pipeline built (user=%s, sort=%s, stages=%d)",
        filter_user_id,
        sort_by,
        len(stages),
    )
    return stages
