from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crm_backend.db import get_db
from crm_backend.schemas.deal import DealCreate, DealResponse, DealStageUpdate
from crm_backend.services.deals import create_deal, update_deal_stage
from crm_backend.services.errors import NotFoundError

logger = logging.getLogger("crm_backend.routers.deals")

router = APIRouter(prefix="/api/deals", tags=["deals"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=DealResponse)
def post_deal(payload: DealCreate, db: Session = Depends(get_db)) -> DealResponse:
    try:
        deal = create_deal(db, payload.model_dump())
    except Exception as exc:
        logger.exception("Error creating deal")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create deal",
        ) from exc
    return DealResponse.model_validate(deal)


@router.patch("/{deal_id}/stage", summary="Move a deal to another pipeline stage.")
def patch_deal_stage(
    deal_id: int,
    payload: DealStageUpdate,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    if not payload.stage_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="stageId is required",
        )

    try:
        deal = update_deal_stage(db, deal_id, payload.stage_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.detail) from exc
    except Exception as exc:
        logger.exception("Error updating deal stage for deal id=%s", deal_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update deal stage",
        ) from exc

    return {"deal": DealResponse.model_validate(deal)}
