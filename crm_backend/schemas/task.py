import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TaskPriority = Literal["high", "medium", "low"]
RelatedType = Literal["deal", "contact"]


def _merge_assignee(data: Any) -> Any:
    # Forms send either assigned_to or assignedTo
    if isinstance(data, dict) and "assigned_to" not in data and "assignedTo" in data:
        data = dict(data)
        data["assigned_to"] = data.pop("assignedTo")
    return data


class TaskCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=2)
    description: Optional[str] = None
    due_date: Optional[datetime.datetime] = Field(default=None, alias="dueDate")
    time: Optional[str] = Field(
        default=None,
        description='Free-text range, e.g. "9:00 AM - 10:00 AM".',
    )
    priority: TaskPriority = "medium"
    assigned_to: Optional[int] = None
    related_to_type: Optional[RelatedType] = Field(default=None, alias="relatedToType")
    related_to_id: Optional[int] = Field(default=None, alias="relatedToId")

    @model_validator(mode="before")
    @classmethod
    def accept_camel_assignee(cls, data: Any) -> Any:
        return _merge_assignee(data)


class TaskUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=2)
    description: Optional[str] = None
    due_date: Optional[datetime.datetime] = Field(default=None, alias="dueDate")
    time: Optional[str] = None
    priority: Optional[TaskPriority] = None
    completed: Optional[bool] = None
    assigned_to: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def accept_camel_assignee(cls, data: Any) -> Any:
        return _merge_assignee(data)

    @field_validator("title", "priority", "completed", "assigned_to")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime.datetime] = None
    time: Optional[str] = None
    completed: bool
    priority: str
    assigned_to: int
    related_to_type: Optional[str] = None
    related_to_id: Optional[int] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
