"""
Polymorphic task/activity targets.

Rows store a (related_to_type, related_to_id) pair without a foreign key,
so a reference may point at a row that no longer exists. `resolve_related`
returns None for those.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from crm_backend.models import Contact, Deal

logger = logging.getLogger("crm_backend.services.related")


@dataclass(frozen=True)
class RelatedRef:
    kind: str  # "deal" | "contact"
    id: int

    @classmethod
    def from_columns(cls, kind: Optional[str], ref_id: Optional[int]) -> Optional["RelatedRef"]:
        if not kind or ref_id is None:
            return None
        if kind not in _LOOKUPS:
            raise ValueError(f"Unknown related type {kind!r}")
        return cls(kind=kind, id=int(ref_id))


_LOOKUPS: Dict[str, Callable[[Session, int], Any]] = {
    "deal": lambda session, ref_id: session.get(Deal, ref_id),
    "contact": lambda session, ref_id: session.get(Contact, ref_id),
}


def resolve_related(session: Session, ref: Optional[RelatedRef]) -> Any:
    if ref is None:
        return None
    return _LOOKUPS[ref.kind](session, ref.id)


def related_of(row: Any) -> Optional[RelatedRef]:
    """Read the tagged reference off a Task or Activity row."""
    return RelatedRef.from_columns(row.related_to_type, row.related_to_id)


def related_summary(session: Session, row: Any) -> Optional[Dict[str, Any]]:
    """
    `{type, id, name}` for the row a task or activity points at.

    None when the row has no reference or its target is gone. Unknown
    stored types are logged and also give None.
    """
    try:
        ref = related_of(row)
    except ValueError:
        logger.warning(
            "Skipping unknown related type %r on %s id=%s",
            row.related_to_type,
            type(row).__name__,
            row.id,
        )
        return None
    target = resolve_related(session, ref)
    if target is None:
        return None
    return {"type": ref.kind, "id": ref.id, "name": target.name}
