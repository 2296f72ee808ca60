import datetime
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from crm_backend.clock import now
from crm_backend.db import Base

TASK_PRIORITIES = ("high", "medium", "low")


class Task(Base):
    """
    To-do item assigned to a user.

    `time` is a free-text range such as "9:00 AM - 10:00 AM". The related
    entity is a (type, id) pair with no foreign key behind it.
    """

    __tablename__ = "tasks"

    id: int = Column(Integer, primary_key=True, index=True)
    title: str = Column(String(255), nullable=False)
    description: Optional[str] = Column(Text, nullable=True)
    due_date: Optional[datetime.datetime] = Column(DateTime, nullable=True, index=True)
    time: Optional[str] = Column(String(64), nullable=True)
    completed: bool = Column(Boolean, default=False, nullable=False)
    priority: str = Column(String(16), default="medium", nullable=False)
    assigned_to: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    related_to_type: Optional[str] = Column(String(32), nullable=True)
    related_to_id: Optional[int] = Column(Integer, nullable=True)
    created_at: datetime.datetime = Column(DateTime, default=now, nullable=False)
    updated_at: datetime.datetime = Column(DateTime, default=now, nullable=False)

    assigned_user = relationship("User")
