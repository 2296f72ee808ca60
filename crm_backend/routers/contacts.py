from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from crm_backend.db import get_db
from crm_backend.schemas.contact import (
    ContactCreate,
    ContactDetailResponse,
    ContactResponse,
    ContactUpdate,
)
from crm_backend.services.contacts import (
    create_contact,
    delete_contact,
    get_contact_detail,
    get_recent_contacts,
    list_contacts,
    update_contact,
)
from crm_backend.services.errors import NotFoundError

logger = logging.getLogger("crm_backend.routers.contacts")

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@router.get("/recent")
def recent_contacts(db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        contacts = get_recent_contacts(db)
    except Exception as exc:
        logger.exception("Error fetching recent contacts")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch recent contacts",
        ) from exc
    return {"contacts": [ContactResponse.model_validate(c) for c in contacts]}


@router.get("")
def read_contacts(
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        contacts = list_contacts(db, search)
    except Exception as exc:
        logger.exception("Error fetching contacts")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch contacts",
        ) from exc
    return {"contacts": [ContactResponse.model_validate(c) for c in contacts]}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ContactResponse)
def post_contact(payload: ContactCreate, db: Session = Depends(get_db)) -> ContactResponse:
    try:
        contact = create_contact(db, payload.model_dump())
    except Exception as exc:
        logger.exception("Error creating contact")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create contact",
        ) from exc
    return ContactResponse.model_validate(contact)


@router.get("/{contact_id}", response_model=ContactDetailResponse)
def read_contact(contact_id: int, db: Session = Depends(get_db)) -> ContactDetailResponse:
    try:
        detail = get_contact_detail(db, contact_id)
    except Exception as exc:
        logger.exception("Error getting contact id=%s", contact_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get contact",
        ) from exc

    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return ContactDetailResponse.model_validate(detail)


@router.patch("/{contact_id}", response_model=ContactResponse)
def patch_contact(
    contact_id: int,
    payload: ContactUpdate,
    db: Session = Depends(get_db),
) -> ContactResponse:
    try:
        contact = update_contact(db, contact_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.detail) from exc
    except Exception as exc:
        logger.exception("Error updating contact id=%s", contact_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update contact",
        ) from exc
    return ContactResponse.model_validate(contact)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_contact(contact_id: int, db: Session = Depends(get_db)) -> Response:
    try:
        delete_contact(db, contact_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.detail) from exc
    except Exception as exc:
        logger.exception("Error deleting contact id=%s", contact_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete contact",
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
