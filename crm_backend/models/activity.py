import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from crm_backend.clock import now
from crm_backend.db import Base

ACTIVITY_TYPES = ("call", "email", "meeting", "note", "update")


class Activity(Base):
    """Append-only log entry. Rows are never updated or deleted."""

    __tablename__ = "activities"

    id: int = Column(Integer, primary_key=True, index=True)
    type: str = Column(String(32), nullable=False)
    title: str = Column(String(255), nullable=False)
    description: Optional[str] = Column(Text, nullable=True)
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    related_to_type: Optional[str] = Column(String(32), nullable=True)
    related_to_id: Optional[int] = Column(Integer, nullable=True)
    # "metadata" is reserved on declarative classes
    meta: Dict[str, Any] = Column("metadata", JSON, nullable=True)
    created_at: datetime.datetime = Column(DateTime, default=now, nullable=False, index=True)

    user = relationship("User")

    __table_args__ = (
        Index("ix_activities_related", "related_to_type", "related_to_id"),
    )
