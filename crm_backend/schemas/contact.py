import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

ContactStatus = Literal["lead", "customer", "partner", "inactive"]


class ContactCreate(BaseModel):
    """Payload for creating a contact. Accepts camelCase keys from the UI."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    source: str = Field(default="other", description="Lead source, free text.")
    status: ContactStatus = "lead"
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    address: Optional[str] = None
    notes: Optional[str] = None
    assigned_to: Optional[int] = Field(default=None, alias="assignedTo")


class ContactUpdate(BaseModel):
    """Partial update; only keys present in the request are applied."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    source: Optional[str] = None
    status: Optional[ContactStatus] = None
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    address: Optional[str] = None
    notes: Optional[str] = None
    assigned_to: Optional[int] = Field(default=None, alias="assignedTo")

    @field_validator("name", "email", "source", "status")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        # Omit the key to leave a column unchanged; null cannot clear it
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ContactResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    source: str
    status: str
    avatar_url: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    assigned_to: Optional[int] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class ContactDetailResponse(ContactResponse):
    deals: List[Dict[str, Any]] = []
    activities: List[Dict[str, Any]] = []
    tasks: List[Dict[str, Any]] = []
