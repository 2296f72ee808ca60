from __future__ import annotations

"""
Models package for the CRM backend.

Imports and exposes ORM models so they are registered with Base.metadata.
"""

from crm_backend.db import Base
from .activity import ACTIVITY_TYPES, Activity  # noqa: F401
from .contact import CONTACT_STATUSES, Contact  # noqa: F401
from .pipeline import Deal, PipelineStage, StageKind  # noqa: F401
from .task import TASK_PRIORITIES, Task  # noqa: F401
from .user import Team, User, UserTeam  # noqa: F401

__all__ = [
    "ACTIVITY_TYPES",
    "Activity",
    "Base",
    "CONTACT_STATUSES",
    "Contact",
    "Deal",
    "PipelineStage",
    "StageKind",
    "TASK_PRIORITIES",
    "Task",
    "Team",
    "User",
    "UserTeam",
]
