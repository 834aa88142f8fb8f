from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.middleware.auth import get_current_user_id
from taskhub.schemas.project import ProjectResponse
from taskhub.schemas.workspace import (
    WorkspaceCreate,
    WorkspaceMemberAdd,
    WorkspaceMemberResponse,
    WorkspaceMemberRoleUpdate,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from taskhub.schemas.team import MemberStats, MemberTasks, TeamMemberSummary
from taskhub.services.project_service import list_projects
from taskhub.services.team_service import get_member_stats, list_member_tasks, list_team_members
from taskhub.services.workspace_service import (
    add_workspace_member,
    create_workspace,
    delete_workspace,
    get_workspace_for_member,
    list_user_workspaces,
    remove_workspace_member,
    update_member_role,
    update_workspace,
)
from taskhub.utils.errors import ServiceError, as_http_exception

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.post("", response_model=WorkspaceResponse, status_code=201)
def create_workspace_endpoint(
    data: WorkspaceCreate, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> WorkspaceResponse:
    try:
        return create_workspace(db, user_id, data)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.get("", response_model=list[WorkspaceResponse])
def list_workspaces_endpoint(
    db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> list[WorkspaceResponse]:
    return list_user_workspaces(db, user_id)


@router.get("/{workspace_id}", response_model=WorkspaceResponse)
def get_workspace_endpoint(
    workspace_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> WorkspaceResponse:
    try:
        return get_workspace_for_member(db, user_id, workspace_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.patch("/{workspace_id}", response_model=WorkspaceResponse)
def update_workspace_endpoint(
    workspace_id: str,
    data: WorkspaceUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> WorkspaceResponse:
    try:
        return update_workspace(db, user_id, workspace_id, data)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.delete("/{workspace_id}", status_code=204)
def delete_workspace_endpoint(
    workspace_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> Response:
    try:
        delete_workspace(db, user_id, workspace_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{workspace_id}/projects", response_model=list[ProjectResponse])
def list_workspace_projects_endpoint(
    workspace_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> list[ProjectResponse]:
    try:
        return list_projects(db, user_id, workspace_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.post("/{workspace_id}/members", response_model=WorkspaceMemberResponse, status_code=201)
def add_workspace_member_endpoint(
    workspace_id: str,
    data: WorkspaceMemberAdd,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> WorkspaceMemberResponse:
    try:
        return add_workspace_member(db, user_id, workspace_id, data)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.patch("/{workspace_id}/members/{member_user_id}", response_model=WorkspaceMemberResponse)
def update_member_role_endpoint(
    workspace_id: str,
    member_user_id: str,
    data: WorkspaceMemberRoleUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> WorkspaceMemberResponse:
    try:
        return update_member_role(db, user_id, workspace_id, member_user_id, data.role)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.delete("/{workspace_id}/members/{member_user_id}", status_code=204)
def remove_workspace_member_endpoint(
    workspace_id: str,
    member_user_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> Response:
    try:
        remove_workspace_member(db, user_id, workspace_id, member_user_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{workspace_id}/team-members", response_model=list[TeamMemberSummary])
def list_team_members_endpoint(
    workspace_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> list[TeamMemberSummary]:
    try:
        return list_team_members(db, user_id, workspace_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.get("/{workspace_id}/members/{member_user_id}/tasks", response_model=MemberTasks)
def list_member_tasks_endpoint(
    workspace_id: str,
    member_user_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> MemberTasks:
    try:
        return list_member_tasks(db, user_id, workspace_id, member_user_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.get("/{workspace_id}/members/{member_user_id}/stats", response_model=MemberStats)
def get_member_stats_endpoint(
    workspace_id: str,
    member_user_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> MemberStats:
    try:
        return get_member_stats(db, user_id, workspace_id, member_user_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
