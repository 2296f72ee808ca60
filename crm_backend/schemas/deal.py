import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DealCreate(BaseModel):
    """
    Payload for creating a deal.

    Range checks on value/probability live here; the service layer
    trusts its caller.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    value: Decimal = Field(..., ge=0)
    stage_id: int = Field(..., alias="stageId")
    contact_id: int = Field(..., alias="contactId")
    owner_id: int = Field(..., alias="ownerId")
    expected_close_date: Optional[datetime.datetime] = Field(
        default=None, alias="expectedCloseDate"
    )
    probability: int = Field(default=50, ge=0, le=100)


class DealStageUpdate(BaseModel):
    """Body of PATCH /deals/{id}/stage. stageId is checked by the router."""

    model_config = ConfigDict(populate_by_name=True)

    stage_id: Optional[int] = Field(default=None, alias="stageId")


class DealResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    value: float
    stage_id: int
    contact_id: int
    owner_id: int
    expected_close_date: Optional[datetime.datetime] = None
    probability: Optional[int] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
