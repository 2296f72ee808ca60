from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from sqlalchemy.orm import Session

from crm_backend.clock import now as clock_now
from crm_backend.models import Deal
from crm_backend.services.errors import NotFoundError

logger = logging.getLogger("crm_backend.services.deals")


def create_deal(session: Session, deal_data: dict, now: Optional[datetime] = None) -> Deal:
    """
    Create and persist a deal from dict data.
    """
    try:
        stamp = now or clock_now()
        deal = Deal(**deal_data)
        deal.created_at = stamp
        deal.updated_at = stamp
        session.add(deal)
        session.flush()

        logger.info(
            "Created deal id=%s stage=%s owner=%s value=%s",
            deal.id,
            deal.stage_id,
            deal.owner_id,
            deal.value,
        )
        return deal

    except Exception:
        logger.exception("Failed to create deal from data: %r", deal_data)
        raise


def get_deal(session: Session, deal_id: int) -> Optional[Deal]:
    return session.get(Deal, deal_id)


def update_deal_stage(
    session: Session,
    deal_id: int,
    new_stage_id: int,
    now: Optional[datetime] = None,
) -> Deal:
    """
    Move a deal to another pipeline stage.

    Single unconditional UPDATE keyed by id; the last writer wins. Moving
    a deal to the stage it already sits in is accepted and still bumps
    `updated_at`. `probability` is left alone.
    """
    stamp = now or clock_now()
    updated = (
        session.query(Deal)
        .filter(Deal.id == deal_id)
        .update(
            {Deal.stage_id: new_stage_id, Deal.updated_at: stamp},
            synchronize_session=False,
        )
    )
    if not updated:
        raise NotFoundError("Deal", deal_id)

    deal = session.get(Deal, deal_id, populate_existing=True)
    logger.info("Moved deal id=%s to stage=%s", deal_id, new_stage_id)
    return deal


# ---------------------------------------------------------------------------
# Drag and drop
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StageMovePayload:
    """What a kanban card carries while it is being dragged."""

    deal_id: int
    current_stage_id: int

    @classmethod
    def from_transfer(cls, data: Mapping[str, str]) -> "StageMovePayload":
        """Parse the string-valued drag transfer (dealId, currentStageId)."""
        return cls(
            deal_id=int(data["dealId"]),
            current_stage_id=int(data["currentStageId"]),
        )


def should_send_stage_move(current_stage_id: int, target_stage_id: int) -> bool:
    """Drops onto the card's own column are swallowed without a request."""
    return current_stage_id != target_stage_id


def handle_stage_drop(
    session: Session,
    payload: StageMovePayload,
    target_stage_id: int,
    now: Optional[datetime] = None,
) -> Optional[Deal]:
    """
    Apply a drop. Returns the moved deal, or None when the drop was a no-op.

    Unlike `update_deal_stage`, a same-column drop does not touch the row.
    Callers refetch the pipeline views afterwards; nothing is patched locally.
    """
    if not should_send_stage_move(payload.current_stage_id, target_stage_id):
        logger.debug(
            "Ignoring drop of deal id=%s onto its own stage %s",
            payload.deal_id,
            target_stage_id,
        )
        return None
    return update_deal_stage(session, payload.deal_id, target_stage_id, now=now)
