"""Per-member views of a workspace: assigned tasks, status counts and team load."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskhub.models.base import as_utc, utcnow
from taskhub.models.enums import TERMINAL_TASK_STATUSES, TaskStatus, WorkspaceRole
from taskhub.models.project import Project
from taskhub.models.task import Task, TaskAssignee
from taskhub.models.workspace import Workspace, WorkspaceMember
from taskhub.services.workspace_service import get_workspace_for_member
from taskhub.utils.errors import NotFoundError

logger = logging.getLogger(__name__)


def _team_member(workspace: Workspace, member_user_id: str) -> WorkspaceMember:
    for member in workspace.members:
        if member.user_id == member_user_id:
            return member
    raise NotFoundError("Team member not found in this workspace.")


def _assigned_tasks(db: Session, workspace_id: str, member_user_id: str) -> list[Task]:
    stmt = (
        select(Task)
        .join(TaskAssignee, TaskAssignee.task_id == Task.id)
        .join(Project, Project.id == Task.project_id)
        .where(Project.workspace_id == workspace_id, TaskAssignee.user_id == member_user_id)
        .order_by(Task.project_id, Task.folder_id, Task.position, Task.created_at.desc())
    )
    return list(db.scalars(stmt).all())


def list_member_tasks(db: Session, user_id: str, workspace_id: str, member_user_id: str) -> dict[str, Any]:
    """Tasks assigned to one member across every project of the workspace."""
    workspace = get_workspace_for_member(db, user_id, workspace_id)
    member = _team_member(workspace, member_user_id)
    return {
        "member": {
            "id": member.user.id,
            "name": member.user.name,
            "email": member.user.email,
            "image": member.user.image,
            "role": member.role,
        },
        "tasks": _assigned_tasks(db, workspace.id, member_user_id),
    }


def get_member_stats(db: Session, user_id: str, workspace_id: str, member_user_id: str) -> dict[str, int]:
    workspace = get_workspace_for_member(db, user_id, workspace_id)
    _team_member(workspace, member_user_id)
    tasks = _assigned_tasks(db, workspace.id, member_user_id)
    by_status = Counter(task.status for task in tasks)
    now = utcnow()

    def _overdue(task: Task) -> bool:
        due = as_utc(task.due_date)
        return due is not None and due < now and task.status not in TERMINAL_TASK_STATUSES

    return {
        "total_tasks": len(tasks),
        "todo": by_status[TaskStatus.TODO.value],
        "in_progress": by_status[TaskStatus.IN_PROGRESS.value],
        "in_review": by_status[TaskStatus.INTERNAL_REVIEW.value],
        "done": by_status[TaskStatus.DONE.value],
        "cancelled": by_status[TaskStatus.CANCELLED.value],
        "overdue": sum(1 for task in tasks if _overdue(task)),
    }


def list_team_members(db: Session, user_id: str, workspace_id: str) -> list[dict[str, Any]]:
    """Every member with their task count and completion rate, admins first then by name."""
    workspace = get_workspace_for_member(db, user_id, workspace_id)

    stmt = (
        select(TaskAssignee.user_id, Task.status)
        .join(Task, Task.id == TaskAssignee.task_id)
        .join(Project, Project.id == Task.project_id)
        .where(Project.workspace_id == workspace.id)
    )
    totals: Counter[str] = Counter()
    completed: Counter[str] = Counter()
    for assignee_id, task_status in db.execute(stmt).all():
        totals[assignee_id] += 1
        if task_status == TaskStatus.DONE.value:
            completed[assignee_id] += 1

    members = sorted(
        workspace.members,
        key=lambda m: (m.role != WorkspaceRole.ADMIN.value, (m.user.name or "").lower()),
    )
    summaries = []
    for member in members:
        total = totals[member.user_id]
        done = completed[member.user_id]
        summaries.append(
            {
                "id": member.id,
                "user_id": member.user_id,
                "role": member.role,
                "user": member.user,
                "task_count": total,
                "completed_tasks": done,
                "completion_rate": round(done / total * 100) if total else 0,
            }
        )
    logger.debug("Listed %d team members for workspace %s", len(summaries), workspace.id)
    return summaries
