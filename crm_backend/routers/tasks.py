from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from crm_backend.db import get_db
from crm_backend.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from crm_backend.services.auth_service import SessionContext, current_context
from crm_backend.services.errors import NotFoundError
from crm_backend.services.related import related_summary
from crm_backend.services.tasks import (
    create_task,
    delete_task,
    get_task,
    get_todays_tasks,
    list_tasks,
    set_task_active_status,
    toggle_task_completion,
    update_task,
)

logger = logging.getLogger("crm_backend.routers.tasks")

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.detail)


def _server_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=message,
    )


@router.get("/today", summary="Caller's tasks due today.")
def todays_tasks(
    ctx: SessionContext = Depends(current_context),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        tasks = [
            {
                **TaskResponse.model_validate(t).model_dump(mode="json"),
                "relatedTo": related_summary(db, t),
            }
            for t in get_todays_tasks(db, ctx)
        ]
    except Exception as exc:
        logger.exception("Error fetching today's tasks")
        raise _server_error("Failed to fetch today's tasks") from exc
    return {"tasks": tasks}


@router.patch("/{task_id}/toggle")
def toggle_task(task_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        task = toggle_task_completion(db, task_id)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    except Exception as exc:
        logger.exception("Error toggling task completion for id=%s", task_id)
        raise _server_error("Failed to toggle task completion") from exc
    return {"task": TaskResponse.model_validate(task)}


def _set_active(db: Session, task_id: int, is_active: bool) -> TaskResponse:
    label = "active" if is_active else "inactive"
    try:
        task = set_task_active_status(db, task_id, is_active)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    except Exception as exc:
        logger.exception("Error marking task id=%s as %s", task_id, label)
        raise _server_error(f"Failed to mark task as {label}") from exc
    return TaskResponse.model_validate(task)


@router.patch("/{task_id}/active", response_model=TaskResponse)
def mark_task_active(task_id: int, db: Session = Depends(get_db)) -> TaskResponse:
    return _set_active(db, task_id, True)


@router.patch("/{task_id}/inactive", response_model=TaskResponse)
def mark_task_inactive(task_id: int, db: Session = Depends(get_db)) -> TaskResponse:
    return _set_active(db, task_id, False)


def _all_or(value: Optional[str]) -> Optional[str]:
    # The UI sends "all" for an unset filter
    if value is None or value == "all":
        return None
    return value


def _parse_assignee(raw: Optional[str]) -> Optional[int]:
    value = _all_or(raw)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="assignedTo must be a user id or 'all'",
        ) from exc


def _parse_active(raw: Optional[str]) -> Optional[bool]:
    value = _all_or(raw)
    if value is None:
        return None
    if value not in ("true", "false"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="isActive must be 'true', 'false' or 'all'",
        )
    return value == "true"


@router.get("")
def read_tasks(
    search: Optional[str] = Query(default=None),
    priority: Optional[str] = Query(default=None),
    assigned_to: Optional[str] = Query(default=None, alias="assignedTo"),
    is_active: Optional[str] = Query(default=None, alias="isActive"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    filters = {
        "search": search,
        "priority": _all_or(priority),
        "assigned_to": _parse_assignee(assigned_to),
        "is_active": _parse_active(is_active),
    }

    try:
        tasks = list_tasks(db, **filters)
    except Exception as exc:
        logger.exception("Error fetching tasks with filters=%s", filters)
        raise _server_error("Failed to fetch tasks") from exc
    return {"tasks": [TaskResponse.model_validate(t) for t in tasks]}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TaskResponse)
def post_task(
    payload: TaskCreate,
    ctx: SessionContext = Depends(current_context),
    db: Session = Depends(get_db),
) -> TaskResponse:
    task_data = payload.model_dump()
    if task_data.get("assigned_to") is None:
        task_data["assigned_to"] = ctx.user_id

    try:
        task = create_task(db, task_data)
    except Exception as exc:
        logger.exception("Error creating task")
        raise _server_error("Failed to create task") from exc
    return TaskResponse.model_validate(task)


@router.get("/{task_id}", response_model=TaskResponse)
def read_task(task_id: int, db: Session = Depends(get_db)) -> TaskResponse:
    try:
        task = get_task(db, task_id)
    except Exception as exc:
        logger.exception("Error fetching task id=%s", task_id)
        raise _server_error("Failed to fetch task") from exc

    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return TaskResponse.model_validate(task)


@router.patch("/{task_id}", response_model=TaskResponse)
def patch_task(
    task_id: int,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
) -> TaskResponse:
    try:
        task = update_task(db, task_id, payload.model_dump(exclude_unset=True))
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    except Exception as exc:
        logger.exception("Error updating task id=%s", task_id)
        raise _server_error("Failed to update task") from exc
    return TaskResponse.model_validate(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_task(task_id: int, db: Session = Depends(get_db)) -> Response:
    try:
        delete_task(db, task_id)
    except NotFoundError as exc:
        raise _not_found(exc) from exc
    except Exception as exc:
        logger.exception("Error deleting task id=%s", task_id)
        raise _server_error("Failed to delete task") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
