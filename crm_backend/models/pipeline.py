from __future__ import annotations

import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from crm_backend.clock import now
from crm_backend.db import Base


class StageKind(str, Enum):
    """
    Terminal-ness of a pipeline stage.

    Metrics resolve the won/lost stages through this tag instead of
    relying on fixed stage ids.
    """

    OPEN = "open"
    WON = "won"
    LOST = "lost"


class PipelineStage(Base):
    """Kanban column. `order` is expected to be unique but is not enforced."""

    __tablename__ = "pipeline_stages"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(128), nullable=False)
    order: int = Column(Integer, nullable=False, index=True)
    color: str = Column(String(64), nullable=False)
    kind: str = Column(String(16), nullable=False, default=StageKind.OPEN.value, index=True)
    created_at: datetime.datetime = Column(DateTime, default=now, nullable=False)
    updated_at: datetime.datetime = Column(DateTime, default=now, nullable=False)

    deals = relationship("Deal", back_populates="stage")


class Deal(Base):
    """
    Opportunity in the pipeline.

    A deal always belongs to exactly one stage and one owner. `probability`
    is advisory and is never derived from the stage.
    """

    __tablename__ = "deals"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(255), nullable=False)
    description: Optional[str] = Column(Text, nullable=True)
    value: Decimal = Column(Numeric(15, 2), nullable=False)
    stage_id: int = Column(Integer, ForeignKey("pipeline_stages.id"), nullable=False, index=True)
    contact_id: int = Column(
        Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    expected_close_date: Optional[datetime.datetime] = Column(DateTime, nullable=True)
    probability: int = Column(Integer, default=50)
    created_at: datetime.datetime = Column(DateTime, default=now, nullable=False, index=True)
    updated_at: datetime.datetime = Column(DateTime, default=now, nullable=False, index=True)

    stage = relationship("PipelineStage", back_populates="deals")
    contact = relationship("Contact", back_populates="deals")
    owner = relationship("User")
