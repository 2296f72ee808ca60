import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from crm_backend.clock import now
from crm_backend.db import Base

CONTACT_STATUSES = ("lead", "customer", "partner", "inactive")


class Contact(Base):
    """Person tracked by the CRM. Email is required but not unique."""

    __tablename__ = "contacts"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(255), nullable=False, index=True)
    email: str = Column(String(255), nullable=False, index=True)
    phone: Optional[str] = Column(String(64), nullable=True)
    title: Optional[str] = Column(String(255), nullable=True)
    company: Optional[str] = Column(String(255), nullable=True)
    source: str = Column(String(64), nullable=False, default="other")
    status: str = Column(String(32), nullable=False, default="lead", index=True)
    avatar_url: Optional[str] = Column(String(1024), nullable=True)
    address: Optional[str] = Column(String(512), nullable=True)
    notes: Optional[str] = Column(Text, nullable=True)
    assigned_to: Optional[int] = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at: datetime.datetime = Column(DateTime, default=now, nullable=False, index=True)
    updated_at: datetime.datetime = Column(DateTime, default=now, nullable=False, index=True)

    assigned_user = relationship("User")
    deals = relationship("Deal", back_populates="contact", passive_deletes=True)
