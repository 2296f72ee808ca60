from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from crm_backend.clock import now as clock_now
from crm_backend.models import Task
from crm_backend.services.auth_service import SessionContext
from crm_backend.services.errors import NotFoundError
from crm_backend.services.periods import day_window

logger = logging.getLogger("crm_backend.services.tasks")


def list_tasks(
    session: Session,
    search: Optional[str] = None,
    priority: Optional[str] = None,
    assigned_to: Optional[int] = None,
    is_active: Optional[bool] = None,
) -> List[Task]:
    """
    Task list with optional filters, soonest due first.

    `search` matches title or description. `is_active` maps onto
    `completed`: active tasks are the ones not yet completed. Undated
    tasks come last.
    """
    query = session.query(Task)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
    if priority:
        query = query.filter(Task.priority == priority)
    if assigned_to is not None:
        query = query.filter(Task.assigned_to == assigned_to)
    if is_active is not None:
        query = query.filter(Task.completed == (not is_active))

    tasks: List[Task] = query.order_by(
        Task.due_date.is_(None),
        Task.due_date.asc(),
        Task.id.asc(),
    ).all()
    logger.debug(
        "Fetched %d tasks (search=%s priority=%s assigned_to=%s active=%s)",
        len(tasks),
        search,
        priority,
        assigned_to,
        is_active,
    )
    return tasks


def get_task(session: Session, task_id: int) -> Optional[Task]:
    return session.get(Task, task_id)


def get_todays_tasks(
    session: Session,
    ctx: SessionContext,
    now: Optional[datetime] = None,
) -> List[Task]:
    """
    Tasks assigned to the caller that are due today.

    Ordered by the free-text `time` column, then creation time. The sort is
    lexical, so "10:00 AM" lands before "9:00 AM".
    """
    window = day_window(now or clock_now())
    tasks: List[Task] = (
        session.query(Task)
        .filter(
            Task.assigned_to == ctx.user_id,
            Task.due_date >= window.start,
            Task.due_date <= window.end,
        )
        .order_by(Task.time.asc(), Task.created_at.asc())
        .all()
    )
    logger.debug("Fetched %d tasks due today for user=%s", len(tasks), ctx.user_id)
    return tasks


def create_task(session: Session, task_data: dict) -> Task:
    try:
        task = Task(**task_data)
        session.add(task)
        session.flush()

        logger.info("Created task id=%s assigned_to=%s", task.id, task.assigned_to)
        return task

    except Exception:
        logger.exception("Failed to create task from data: %r", task_data)
        raise


def update_task(
    session: Session,
    task_id: int,
    task_data: dict,
    now: Optional[datetime] = None,
) -> Task:
    task = get_task(session, task_id)
    if task is None:
        raise NotFoundError("Task", task_id)

    for key, value in task_data.items():
        setattr(task, key, value)
    task.updated_at = now or clock_now()
    session.flush()

    logger.info("Updated task id=%s fields=%s", task_id, sorted(task_data))
    return task


def toggle_task_completion(
    session: Session,
    task_id: int,
    now: Optional[datetime] = None,
) -> Task:
    task = get_task(session, task_id)
    if task is None:
        raise NotFoundError("Task", task_id)

    task.completed = not task.completed
    task.updated_at = now or clock_now()
    session.flush()

    logger.info("Toggled task id=%s completed=%s", task_id, task.completed)
    return task


def set_task_active_status(
    session: Session,
    task_id: int,
    is_active: bool,
    now: Optional[datetime] = None,
) -> Task:
    """Reopen (`is_active=True`) or close a task. Idempotent, unlike toggle."""
    task = get_task(session, task_id)
    if task is None:
        raise NotFoundError("Task", task_id)

    task.completed = not is_active
    task.updated_at = now or clock_now()
    session.flush()

    logger.info("Set task id=%s active=%s", task_id, is_active)
    return task


def delete_task(session: Session, task_id: int) -> None:
    deleted = (
        session.query(Task)
        .filter(Task.id == task_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("Task", task_id)

    logger.info("Deleted task id=%s", task_id)
