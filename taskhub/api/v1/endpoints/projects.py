from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.middleware.auth import get_current_user_id
from taskhub.schemas.project import (
    FolderCreate,
    FolderResponse,
    ProjectCreate,
    ProjectMemberAdd,
    ProjectMemberResponse,
    ProjectResponse,
    ProjectStats,
    ProjectUpdate,
)
from taskhub.schemas.comment import CommentResponse
from taskhub.schemas.task import TaskResponse
from taskhub.services.comment_service import list_project_comments
from taskhub.services.folder_service import create_folder, list_folders
from taskhub.services.project_service import (
    add_project_member,
    create_project,
    delete_project,
    get_project_for_user,
    get_project_stats,
    remove_project_member,
    update_project,
)
from taskhub.services.task_service import list_project_tasks
from taskhub.utils.errors import ServiceError, as_http_exception

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project_endpoint(
    data: ProjectCreate, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> ProjectResponse:
    try:
        return create_project(db, user_id, data)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project_endpoint(
    project_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> ProjectResponse:
    try:
        return get_project_for_user(db, user_id, project_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project_endpoint(
    project_id: str,
    data: ProjectUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> ProjectResponse:
    try:
        return update_project(db, user_id, project_id, data)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.delete("/{project_id}", status_code=204)
def delete_project_endpoint(
    project_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> Response:
    try:
        delete_project(db, user_id, project_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/stats", response_model=ProjectStats)
def get_project_stats_endpoint(
    project_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> ProjectStats:
    try:
        return get_project_stats(db, user_id, project_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.post("/{project_id}/members", response_model=ProjectMemberResponse, status_code=201)
def add_project_member_endpoint(
    project_id: str,
    data: ProjectMemberAdd,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> ProjectMemberResponse:
    try:
        return add_project_member(db, user_id, project_id, data)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.delete("/{project_id}/members/{member_user_id}", status_code=204)
def remove_project_member_endpoint(
    project_id: str,
    member_user_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> Response:
    try:
        remove_project_member(db, user_id, project_id, member_user_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/tasks", response_model=list[TaskResponse])
def list_project_tasks_endpoint(
    project_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> list[TaskResponse]:
    try:
        return list_project_tasks(db, user_id, project_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.get("/{project_id}/comments", response_model=list[CommentResponse])
def list_project_comments_endpoint(
    project_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> list[CommentResponse]:
    try:
        return list_project_comments(db, user_id, project_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.post("/{project_id}/folders", response_model=FolderResponse, status_code=201)
def create_folder_endpoint(
    project_id: str,
    data: FolderCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> FolderResponse:
    try:
        return create_folder(db, user_id, project_id, data)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.get("/{project_id}/folders", response_model=list[FolderResponse])
def list_folders_endpoint(
    project_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> list[FolderResponse]:
    try:
        return list_folders(db, user_id, project_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
