from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from sqlalchemy import inspect

from crm_backend.models import Activity, Deal, User


def money(value: Union[Decimal, float, int, None]) -> float:
    if value is None:
        return 0.0
    return float(value)


def iso(moment: Optional[datetime]) -> Optional[str]:
    return moment.isoformat() if moment else None


def row_to_dict(row: Any) -> Dict[str, Any]:
    """Plain column dict for an ORM row, keyed by attribute name."""
    return {
        attr.key: getattr(row, attr.key)
        for attr in inspect(row).mapper.column_attrs
    }


def owner_summary(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "avatarUrl": user.avatar_url}


def deal_card(deal: Deal) -> Dict[str, Any]:
    """Deal as rendered on a kanban card."""
    return {
        "id": deal.id,
        "name": deal.name,
        "value": money(deal.value),
        "description": deal.description or "",
        "updatedAt": iso(deal.updated_at),
        "owner": owner_summary(deal.owner),
    }


def deal_dict(deal: Deal) -> Dict[str, Any]:
    data = row_to_dict(deal)
    data["value"] = money(deal.value)
    return data


def activity_dict(activity: Activity) -> Dict[str, Any]:
    data = row_to_dict(activity)
    data["metadata"] = data.pop("meta")
    return data
