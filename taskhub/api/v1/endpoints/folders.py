from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.middleware.auth import get_current_user_id
from taskhub.schemas.comment import CommentResponse
from taskhub.services.comment_service import list_folder_comments
from taskhub.services.folder_service import delete_folder
from taskhub.utils.errors import ServiceError, as_http_exception

router = APIRouter(prefix="/folders", tags=["folders"])


@router.delete("/{folder_id}", status_code=204)
def delete_folder_endpoint(
    folder_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> Response:
    """Delete a folder; its tasks stay in the project with no folder."""
    try:
        delete_folder(db, user_id, folder_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{folder_id}/comments", response_model=list[CommentResponse])
def list_folder_comments_endpoint(
    folder_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> list[CommentResponse]:
    try:
        return list_folder_comments(db, user_id, folder_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
