import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

ActivityType = Literal["call", "email", "meeting", "note", "update"]


class ActivityCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: ActivityType
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    user_id: int = Field(..., alias="userId")
    related_to_type: Optional[Literal["deal", "contact"]] = Field(
        default=None, alias="relatedToType"
    )
    related_to_id: Optional[int] = Field(default=None, alias="relatedToId")
    metadata: Optional[Dict[str, Any]] = None


class ActivityResponse(BaseModel):
    id: int
    type: str
    title: str
    description: Optional[str] = None
    user_id: int
    related_to_type: Optional[str] = None
    related_to_id: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("meta", "metadata")
    )
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
