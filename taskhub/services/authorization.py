"""Access decisions computed from pre-loaded membership rows.

"Workspace admin" throughout means a member row with the ADMIN role or the
workspace owner, whether or not the owner also has a member row.
"""
from __future__ import annotations

from taskhub.models.comment import Comment
from taskhub.models.enums import WorkspaceRole
from taskhub.models.project import Project
from taskhub.models.task import Task
from taskhub.models.workspace import Workspace
from taskhub.utils.errors import AccessDenied


def require(allowed: bool, message: str) -> None:
    if not allowed:
        raise AccessDenied(message)


def is_workspace_admin_or_owner(workspace: Workspace, user_id: str) -> bool:
    if workspace.owner_id == user_id:
        return True
    return any(
        m.user_id == user_id and m.role == WorkspaceRole.ADMIN.value for m in workspace.members
    )


def is_workspace_member(workspace: Workspace, user_id: str) -> bool:
    if workspace.owner_id == user_id:
        return True
    return any(m.user_id == user_id for m in workspace.members)


def is_project_member(project: Project, user_id: str) -> bool:
    return any(m.user_id == user_id for m in project.members)


def has_project_access(project: Project, user_id: str) -> bool:
    # Workspace membership alone grants read access to every project in it.
    return is_project_member(project, user_id) or is_workspace_member(project.workspace, user_id)


def can_mutate_project(project: Project, user_id: str) -> bool:
    return is_workspace_admin_or_owner(project.workspace, user_id) or project.team_lead == user_id


def can_create_task(project: Project, user_id: str) -> bool:
    return can_mutate_project(project, user_id) or is_project_member(project, user_id)


def has_task_access(task: Task, user_id: str) -> bool:
    return has_project_access(task.project, user_id) or user_id in task.assignee_ids


def can_mutate_task(task: Task, user_id: str) -> bool:
    return can_mutate_project(task.project, user_id) or user_id in task.assignee_ids


def can_delete_task(task: Task, user_id: str) -> bool:
    # Assignees may edit but never delete.
    return can_mutate_project(task.project, user_id)


def can_edit_comment(comment: Comment, user_id: str) -> bool:
    return comment.user_id == user_id or is_workspace_admin_or_owner(comment.task.project.workspace, user_id)


def can_delete_comment(comment: Comment, user_id: str) -> bool:
    project = comment.task.project
    return (
        comment.user_id == user_id
        or project.team_lead == user_id
        or is_workspace_admin_or_owner(project.workspace, user_id)
    )
