"""Task mutation engine.

Creates and updates a task together with its assignee and link rows in one
unit of work. Validation always completes before the transaction opens, in
this order: required fields, enum values, folder ownership, caller
permission, assignee membership (all offenders reported together), link
URLs (first offender reported).
"""
from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from taskhub.database import transaction
from taskhub.models.base import as_utc
from taskhub.models.enums import Priority, TaskStatus, TaskType
from taskhub.models.project import Folder, Project
from taskhub.models.task import Task, TaskAssignee, TaskLink
from taskhub.schemas.task import LinkInput, TaskCreate, TaskUpdate
from taskhub.services import notification_service
from taskhub.services.authorization import (
    can_create_task,
    can_delete_task,
    can_mutate_project,
    can_mutate_task,
    has_task_access,
    is_project_member,
    require,
)
from taskhub.services.project_service import get_project, get_project_for_user
from taskhub.utils.errors import NotFoundError, ValidationError
from taskhub.utils.validation import check_enum, check_links

logger = logging.getLogger(__name__)


def get_task(db: Session, task_id: str) -> Task:
    task = db.get(Task, task_id)
    if not task:
        raise NotFoundError(f"Task {task_id} not found")
    return task


def get_task_for_user(db: Session, user_id: str, task_id: str) -> Task:
    task = get_task(db, task_id)
    require(has_task_access(task, user_id), "You don't have access to this task.")
    return task


def list_project_tasks(db: Session, user_id: str, project_id: str) -> list[Task]:
    get_project_for_user(db, user_id, project_id)
    stmt = (
        select(Task)
        .where(Task.project_id == project_id)
        .order_by(Task.position.asc(), Task.created_at.desc())
    )
    return list(db.scalars(stmt).all())


def diff_assignees(current: Iterable[str], requested: Iterable[str]) -> tuple[list[str], list[str]]:
    """Return ``(to_remove, to_add)`` turning *current* into *requested*, order preserved."""
    current_ids = list(dict.fromkeys(current))
    requested_ids = list(dict.fromkeys(requested))
    to_remove = [user_id for user_id in current_ids if user_id not in requested_ids]
    to_add = [user_id for user_id in requested_ids if user_id not in current_ids]
    return to_remove, to_add


def _check_enums(type_: str | None, status: str | None, priority: str | None) -> None:
    check_enum(type_, TaskType, "task type")
    check_enum(status, TaskStatus, "task status")
    check_enum(priority, Priority, "priority")


def _check_folder(db: Session, folder_id: str, project_id: str) -> Folder:
    folder = db.get(Folder, folder_id)
    if folder is None or folder.project_id != project_id:
        raise ValidationError("Folder does not belong to this project.")
    return folder


def _check_assignees(project: Project, assignee_ids: list[str]) -> None:
    invalid = [user_id for user_id in assignee_ids if not is_project_member(project, user_id)]
    if invalid:
        raise ValidationError(f"Some assignees are not project members: {', '.join(invalid)}")


def _link_rows(task_id: str, user_id: str, links: list[LinkInput]) -> list[TaskLink]:
    return [TaskLink(task_id=task_id, user_id=user_id, url=link.url, title=link.title or None) for link in links]


def _next_position(db: Session, project_id: str, folder_id: str | None) -> int:
    stmt = select(func.max(Task.position)).where(Task.project_id == project_id)
    if folder_id is None:
        stmt = stmt.where(Task.folder_id.is_(None))
    else:
        stmt = stmt.where(Task.folder_id == folder_id)
    current = db.scalar(stmt)
    return 0 if current is None else current + 1


def create_task(db: Session, user_id: str, data: TaskCreate, origin: str | None = None) -> Task:
    if not data.project_id or not data.title or not data.title.strip():
        raise ValidationError("Project ID and title are required.")
    _check_enums(data.type, data.status, data.priority)

    project = get_project(db, data.project_id)
    if data.folder_id is not None:
        _check_folder(db, data.folder_id, project.id)
    require(can_create_task(project, user_id), "You don't have permission to create tasks in this project.")

    assignee_ids = list(dict.fromkeys(data.assignees))
    _check_assignees(project, assignee_ids)
    check_links(link.url for link in data.links)

    position = data.position if data.position is not None else _next_position(db, project.id, data.folder_id)
    with transaction(db):
        task = Task(
            project_id=project.id,
            folder_id=data.folder_id,
            title=data.title.strip(),
            description=data.description,
            type=data.type or TaskType.GENERAL_TASK.value,
            status=data.status or TaskStatus.TODO.value,
            priority=data.priority or Priority.MEDIUM.value,
            due_date=as_utc(data.due_date),
            position=position,
        )
        db.add(task)
        db.flush()
        db.add_all(TaskAssignee(task_id=task.id, user_id=assignee_id) for assignee_id in assignee_ids)
        db.add_all(_link_rows(task.id, user_id, data.links))
        notification_service.enqueue_events(
            db, notification_service.assignment_events(task.id, assignee_ids, origin)
        )

    logger.info(
        "Task %s created with %d assignees and %d links", task.id, len(assignee_ids), len(data.links)
    )
    return get_task(db, task.id)


def update_task(db: Session, user_id: str, task_id: str, data: TaskUpdate, origin: str | None = None) -> Task:
    """Apply a partial update; only keys present in the request are touched.

    Assignees are diffed against the current set; links, when sent at all,
    replace the existing set wholesale.
    """
    fields = data.model_fields_set
    task = get_task(db, task_id)

    if "title" in fields and (data.title is None or not data.title.strip()):
        raise ValidationError("Task title cannot be empty.")
    _check_enums(data.type, data.status, data.priority)
    if "folder_id" in fields and data.folder_id is not None:
        _check_folder(db, data.folder_id, task.project_id)
    require(can_mutate_task(task, user_id), "You don't have permission to update this task.")

    replace_assignees = "assignees" in fields and data.assignees is not None
    replace_links = "links" in fields and data.links is not None
    if replace_assignees:
        _check_assignees(task.project, list(dict.fromkeys(data.assignees)))
    if replace_links:
        check_links(link.url for link in data.links)

    to_remove: list[str] = []
    to_add: list[str] = []
    if replace_assignees:
        to_remove, to_add = diff_assignees(task.assignee_ids, data.assignees)

    old_status = task.status
    old_due = as_utc(task.due_date)
    events = notification_service.status_change_events(
        task.id, old_status, data.status if "status" in fields else None, user_id, origin
    )
    events += notification_service.assignment_events(task.id, to_add, origin)

    with transaction(db):
        if "title" in fields:
            task.title = data.title.strip()
        if "description" in fields:
            task.description = data.description
        for field in ("type", "status", "priority", "position"):
            value = getattr(data, field)
            if field in fields and value is not None:
                setattr(task, field, value)
        if "folder_id" in fields:
            task.folder_id = data.folder_id
        if "due_date" in fields:
            task.due_date = as_utc(data.due_date)

        if replace_links:
            db.execute(delete(TaskLink).where(TaskLink.task_id == task.id))
            db.add_all(_link_rows(task.id, user_id, data.links))

        if to_remove:
            db.execute(
                delete(TaskAssignee).where(TaskAssignee.task_id == task.id, TaskAssignee.user_id.in_(to_remove))
            )
        if to_add:
            db.add_all(TaskAssignee(task_id=task.id, user_id=assignee_id) for assignee_id in to_add)

        notification_service.enqueue_events(db, events)

        new_due = as_utc(task.due_date)
        kept_assignees = set(task.assignee_ids) - set(to_remove) | set(to_add)
        if new_due != old_due and kept_assignees:
            notification_service.schedule_reminder(db, task, origin)

    db.expire_all()
    logger.info(
        "Task %s updated: -%d/+%d assignees, links %s",
        task_id,
        len(to_remove),
        len(to_add),
        "replaced" if replace_links else "kept",
    )
    return get_task(db, task_id)


def delete_task(db: Session, user_id: str, task_id: str) -> None:
    task = get_task(db, task_id)
    require(can_delete_task(task, user_id), "You don't have permission to delete this task.")
    project_id = task.project_id
    with transaction(db):
        db.delete(task)
    logger.info("Deleted task %s from project %s", task_id, project_id)


def delete_tasks(db: Session, user_id: str, task_ids: list[str]) -> tuple[str, int]:
    """Delete several tasks of one project; mixed projects are rejected before anything is deleted."""
    ids = list(dict.fromkeys(task_ids))
    if not ids:
        raise ValidationError("task_ids array is required.")

    tasks = list(db.scalars(select(Task).where(Task.id.in_(ids))).all())
    if not tasks:
        raise NotFoundError("No tasks found.")
    if len({task.project_id for task in tasks}) > 1:
        raise ValidationError("All tasks must belong to the same project.")

    project = tasks[0].project
    require(
        can_mutate_project(project, user_id),
        "You don't have permission to delete tasks from this project.",
    )
    project_id = project.id
    with transaction(db):
        for task in tasks:
            db.delete(task)
    logger.info("Deleted %d tasks from project %s", len(tasks), project_id)
    return project_id, len(tasks)
