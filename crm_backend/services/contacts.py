from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from crm_backend.clock import now as clock_now
from crm_backend.models import Activity, Contact, Deal, Task
from crm_backend.services.errors import NotFoundError
from crm_backend.services.view_models import (
    activity_dict,
    deal_dict,
    owner_summary,
    row_to_dict,
)

logger = logging.getLogger("crm_backend.services.contacts")

RECENT_CONTACTS_LIMIT = 4


def list_contacts(session: Session, search: Optional[str] = None) -> List[Contact]:
    """
    Return all contacts ordered by name, optionally filtered by a
    case-insensitive substring of the name.
    """
    query = session.query(Contact)

    if search:
        query = query.filter(Contact.name.ilike(f"%{search}%"))

    contacts: List[Contact] = query.order_by(Contact.name.asc()).all()
    logger.debug("Fetched %d contacts (search=%s)", len(contacts), search)
    return contacts


def get_recent_contacts(session: Session, limit: int = RECENT_CONTACTS_LIMIT) -> List[Contact]:
    return (
        session.query(Contact)
        .order_by(Contact.updated_at.desc())
        .limit(limit)
        .all()
    )


def get_contact(session: Session, contact_id: int) -> Optional[Contact]:
    return session.get(Contact, contact_id)


def get_contact_detail(session: Session, contact_id: int) -> Optional[Dict[str, Any]]:
    """
    Contact plus its deals, activities and tasks.

    Activities and tasks are matched through the polymorphic
    (related_to_type, related_to_id) pair.
    """
    contact = get_contact(session, contact_id)
    if contact is None:
        return None

    deals = (
        session.query(Deal)
        .options(joinedload(Deal.stage), joinedload(Deal.owner))
        .filter(Deal.contact_id == contact_id)
        .order_by(Deal.updated_at.desc())
        .all()
    )
    activities = (
        session.query(Activity)
        .filter(Activity.related_to_type == "contact", Activity.related_to_id == contact_id)
        .order_by(Activity.created_at.desc())
        .all()
    )
    tasks = (
        session.query(Task)
        .filter(Task.related_to_type == "contact", Task.related_to_id == contact_id)
        .order_by(Task.due_date.asc())
        .all()
    )

    detail = row_to_dict(contact)
    detail["deals"] = [
        {
            **deal_dict(deal),
            "stage": row_to_dict(deal.stage) if deal.stage else None,
            "owner": owner_summary(deal.owner),
        }
        for deal in deals
    ]
    detail["activities"] = [activity_dict(a) for a in activities]
    detail["tasks"] = [row_to_dict(t) for t in tasks]
    return detail


def create_contact(session: Session, contact_data: dict) -> Contact:
    """
    Create and persist a contact from dict data.
    """
    try:
        contact = Contact(**contact_data)
        session.add(contact)
        session.flush()  # ensure id is populated before returning

        logger.info("Created contact id=%s email=%s", contact.id, contact.email)
        return contact

    except Exception:
        logger.exception("Failed to create contact from data: %r", contact_data)
        raise


def update_contact(session: Session, contact_id: int, contact_data: dict, now=None) -> Contact:
    contact = get_contact(session, contact_id)
    if contact is None:
        raise NotFoundError("Contact", contact_id)

    for key, value in contact_data.items():
        setattr(contact, key, value)
    contact.updated_at = now or clock_now()
    session.flush()

    logger.info("Updated contact id=%s fields=%s", contact_id, sorted(contact_data))
    return contact


def delete_contact(session: Session, contact_id: int) -> None:
    """Hard delete. The contact's deals go with it (ON DELETE CASCADE)."""
    deleted = (
        session.query(Contact)
        .filter(Contact.id == contact_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("Contact", contact_id)

    logger.info("Deleted contact id=%s", contact_id)
