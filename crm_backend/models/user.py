import datetime
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from crm_backend.clock import now
from crm_backend.db import Base


class User(Base):
    """CRM user. Owns deals, is assigned tasks/contacts, authors activities."""

    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)
    username: str = Column(String(255), unique=True, nullable=False)
    name: str = Column(String(255), nullable=False)
    email: str = Column(String(255), unique=True, nullable=False)
    avatar_url: Optional[str] = Column(String(1024), nullable=True)
    created_at: datetime.datetime = Column(DateTime, default=now, nullable=False)
    updated_at: datetime.datetime = Column(DateTime, default=now, nullable=False)

    teams = relationship("UserTeam", back_populates="user")


class Team(Base):
    __tablename__ = "teams"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String(255), nullable=False)
    color: str = Column(String(64), nullable=False)
    created_at: datetime.datetime = Column(DateTime, default=now, nullable=False)
    updated_at: datetime.datetime = Column(DateTime, default=now, nullable=False)

    members = relationship("UserTeam", back_populates="team")


class UserTeam(Base):
    """Team membership; `is_admin` is per membership, not per user."""

    __tablename__ = "user_teams"

    id: int = Column(Integer, primary_key=True)
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    team_id: int = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    is_admin: bool = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="teams")
    team = relationship("Team", back_populates="members")
