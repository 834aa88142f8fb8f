from typing import Callable

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from taskhub.api.v1.dependencies import get_notification_dispatcher
from taskhub.database import get_db
from taskhub.middleware.auth import get_current_user_id
from taskhub.middleware.origin_context import get_request_origin
from taskhub.schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from taskhub.services.comment_service import add_comment, delete_comment, get_comment_for_user, update_comment
from taskhub.utils.errors import ServiceError, as_http_exception

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post("", response_model=CommentResponse, status_code=201)
def add_comment_endpoint(
    data: CommentCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    origin: str | None = Depends(get_request_origin),
    dispatch: Callable[[], None] = Depends(get_notification_dispatcher),
) -> CommentResponse:
    try:
        comment = add_comment(db, user_id, data, origin)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    dispatch()
    return comment


@router.get("/{comment_id}", response_model=CommentResponse)
def get_comment_endpoint(
    comment_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> CommentResponse:
    try:
        return get_comment_for_user(db, user_id, comment_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.patch("/{comment_id}", response_model=CommentResponse)
def update_comment_endpoint(
    comment_id: str,
    data: CommentUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> CommentResponse:
    try:
        return update_comment(db, user_id, comment_id, data)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.delete("/{comment_id}", status_code=204)
def delete_comment_endpoint(
    comment_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> Response:
    try:
        delete_comment(db, user_id, comment_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
