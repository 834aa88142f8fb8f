"""Project lifecycle: creation with team-lead resolution and membership seeding, updates, membership."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from taskhub.database import transaction
from taskhub.models.base import as_utc, utcnow
from taskhub.models.enums import Priority, ProjectStatus, TaskStatus
from taskhub.models.project import Project, ProjectMember
from taskhub.models.task import Task, TaskAssignee
from taskhub.schemas.project import ProjectCreate, ProjectMemberAdd, ProjectUpdate
from taskhub.schemas.user import UserByEmail, UserById
from taskhub.services.authorization import (
    can_mutate_project,
    has_project_access,
    is_workspace_admin_or_owner,
    is_workspace_member,
    require,
)
from taskhub.services.user_service import get_user_by_email, resolve_user_ref
from taskhub.services.workspace_service import get_workspace, get_workspace_for_member
from taskhub.utils.errors import ConflictError, NotFoundError, ValidationError
from taskhub.utils.validation import check_enum

logger = logging.getLogger(__name__)


def get_project(db: Session, project_id: str) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise NotFoundError(f"Project {project_id} not found")
    return project


def get_project_for_user(db: Session, user_id: str, project_id: str) -> Project:
    project = get_project(db, project_id)
    require(has_project_access(project, user_id), "You don't have access to this project.")
    return project


def list_projects(db: Session, user_id: str, workspace_id: str) -> list[Project]:
    get_workspace_for_member(db, user_id, workspace_id)
    stmt = select(Project).where(Project.workspace_id == workspace_id).order_by(Project.created_at.desc())
    return list(db.scalars(stmt).all())


def _check_project_fields(name: str | None, status: str | None, priority: str | None, progress: int | None) -> None:
    if name is not None and not name.strip():
        raise ValidationError("Project name is required.")
    check_enum(status, ProjectStatus, "project status")
    check_enum(priority, Priority, "priority")
    if progress is not None and not 0 <= progress <= 100:
        raise ValidationError("Progress must be between 0 and 100.")


def _resolve_team_lead(db: Session, ref: UserById | UserByEmail) -> str:
    lead_id = resolve_user_ref(db, ref)
    if lead_id is None:
        raise NotFoundError("Team lead user not found.")
    return lead_id


def create_project(db: Session, user_id: str, data: ProjectCreate) -> Project:
    """Create a project; the team lead defaults to the creator and is always a member.

    ``team_members`` entries that do not resolve to an existing workspace
    member are dropped without error.
    """
    if not data.name or not data.name.strip():
        raise ValidationError("Project name is required.")
    _check_project_fields(data.name, data.status, data.priority, data.progress)

    workspace = get_workspace(db, data.workspace_id)
    require(
        is_workspace_admin_or_owner(workspace, user_id),
        "You don't have permission to create projects in this workspace.",
    )

    lead_id = _resolve_team_lead(db, data.team_lead) if data.team_lead else user_id
    if not is_workspace_member(workspace, lead_id):
        raise ValidationError("Team lead must be a member of the workspace.")

    member_ids = [lead_id]
    for ref in data.team_members:
        member_id = resolve_user_ref(db, ref)
        if member_id and member_id not in member_ids and is_workspace_member(workspace, member_id):
            member_ids.append(member_id)

    with transaction(db):
        project = Project(
            workspace_id=workspace.id,
            name=data.name.strip(),
            description=data.description,
            status=data.status or ProjectStatus.ACTIVE.value,
            priority=data.priority or Priority.MEDIUM.value,
            progress=data.progress,
            team_lead=lead_id,
            start_date=as_utc(data.start_date),
            end_date=as_utc(data.end_date),
        )
        project.members = [ProjectMember(user_id=member_id) for member_id in member_ids]
        db.add(project)
    db.refresh(project)
    logger.info("Project %s created in workspace %s with %d members", project.id, workspace.id, len(member_ids))
    return project


def update_project(db: Session, user_id: str, project_id: str, data: ProjectUpdate) -> Project:
    fields = data.model_fields_set
    _check_project_fields(
        data.name if "name" in fields else None,
        data.status,
        data.priority,
        data.progress,
    )
    project = get_project(db, project_id)
    require(can_mutate_project(project, user_id), "You don't have permission to update this project.")

    lead_id = None
    if "team_lead" in fields and data.team_lead is not None:
        lead_id = _resolve_team_lead(db, data.team_lead)
        if not is_workspace_member(project.workspace, lead_id):
            raise ValidationError("New team lead must be a member of the workspace.")

    changes: dict[str, Any] = {}
    for field in ("name", "description", "status", "priority", "progress"):
        if field in fields:
            value = getattr(data, field)
            if value is None and field != "description":
                continue
            changes[field] = value
    for field in ("start_date", "end_date"):
        if field in fields:
            changes[field] = as_utc(getattr(data, field))

    with transaction(db):
        for field, value in changes.items():
            setattr(project, field, value)
        if lead_id is not None:
            project.team_lead = lead_id
            if not any(m.user_id == lead_id for m in project.members):
                project.members.append(ProjectMember(user_id=lead_id))
    db.refresh(project)
    return project


def delete_project(db: Session, user_id: str, project_id: str) -> None:
    project = get_project(db, project_id)
    require(can_mutate_project(project, user_id), "You don't have permission to delete this project.")
    with transaction(db):
        db.delete(project)
    logger.info("Project %s deleted by %s", project_id, user_id)


def add_project_member(db: Session, user_id: str, project_id: str, data: ProjectMemberAdd) -> ProjectMember:
    project = get_project(db, project_id)
    require(
        can_mutate_project(project, user_id),
        "Only the project lead or workspace admin can add members.",
    )
    target = get_user_by_email(db, data.email)
    if not target:
        raise NotFoundError("User not found.")
    if not is_workspace_member(project.workspace, target.id):
        raise ValidationError("User must be a member of the workspace first.")
    if any(m.user_id == target.id for m in project.members):
        raise ConflictError("User is already a project member.")

    with transaction(db):
        member = ProjectMember(project_id=project.id, user_id=target.id)
        db.add(member)
    db.refresh(member)
    return member


def remove_project_member(db: Session, user_id: str, project_id: str, member_user_id: str) -> None:
    """Remove a member and their task assignments within this project."""
    project = get_project(db, project_id)
    require(
        can_mutate_project(project, user_id),
        "Only the project lead or workspace admin can remove members.",
    )
    if member_user_id == project.team_lead:
        raise ValidationError("Cannot remove project lead from project.")
    member = next((m for m in project.members if m.user_id == member_user_id), None)
    if member is None:
        raise NotFoundError("Member not found in project.")

    task_ids = select(Task.id).where(Task.project_id == project.id)
    with transaction(db):
        db.execute(
            delete(TaskAssignee)
            .where(TaskAssignee.user_id == member_user_id, TaskAssignee.task_id.in_(task_ids))
            .execution_options(synchronize_session=False)
        )
        db.delete(member)
    db.expire_all()


def get_project_stats(db: Session, user_id: str, project_id: str) -> dict[str, Any]:
    project = get_project_for_user(db, user_id, project_id)
    now = utcnow()
    tasks = project.tasks

    def _overdue(task: Task) -> bool:
        due: datetime | None = as_utc(task.due_date)
        return due is not None and due < now and task.status != TaskStatus.DONE.value

    return {
        "project_id": project.id,
        "total_tasks": len(tasks),
        "completed_tasks": sum(1 for t in tasks if t.status == TaskStatus.DONE.value),
        "in_progress_tasks": sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS.value),
        "todo_tasks": sum(1 for t in tasks if t.status == TaskStatus.TODO.value),
        "overdue_tasks": sum(1 for t in tasks if _overdue(t)),
        "total_members": len(project.members),
        "progress": project.progress,
    }
