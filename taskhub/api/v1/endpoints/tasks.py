from typing import Callable

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from taskhub.api.v1.dependencies import get_notification_dispatcher
from taskhub.database import get_db
from taskhub.middleware.auth import get_current_user_id
from taskhub.middleware.origin_context import get_request_origin
from taskhub.schemas.comment import CommentResponse
from taskhub.schemas.task import TaskBulkDelete, TaskBulkDeleteResponse, TaskCreate, TaskResponse, TaskUpdate
from taskhub.services.comment_service import list_task_comments
from taskhub.services.task_service import (
    create_task,
    delete_task,
    delete_tasks,
    get_task_for_user,
    update_task,
)
from taskhub.utils.errors import ServiceError, as_http_exception

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskResponse, status_code=201)
def create_task_endpoint(
    data: TaskCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    origin: str | None = Depends(get_request_origin),
    dispatch: Callable[[], None] = Depends(get_notification_dispatcher),
) -> TaskResponse:
    try:
        task = create_task(db, user_id, data, origin)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    dispatch()
    return task


@router.post("/bulk-delete", response_model=TaskBulkDeleteResponse)
def bulk_delete_tasks_endpoint(
    data: TaskBulkDelete, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> TaskBulkDeleteResponse:
    try:
        project_id, deleted = delete_tasks(db, user_id, data.task_ids)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return TaskBulkDeleteResponse(project_id=project_id, deleted_count=deleted)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task_endpoint(
    task_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> TaskResponse:
    try:
        return get_task_for_user(db, user_id, task_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task_endpoint(
    task_id: str,
    data: TaskUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    origin: str | None = Depends(get_request_origin),
    dispatch: Callable[[], None] = Depends(get_notification_dispatcher),
) -> TaskResponse:
    try:
        task = update_task(db, user_id, task_id, data, origin)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    dispatch()
    return task


@router.delete("/{task_id}", status_code=204)
def delete_task_endpoint(
    task_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> Response:
    try:
        delete_task(db, user_id, task_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{task_id}/comments", response_model=list[CommentResponse])
def list_task_comments_endpoint(
    task_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> list[CommentResponse]:
    try:
        return list_task_comments(db, user_id, task_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
