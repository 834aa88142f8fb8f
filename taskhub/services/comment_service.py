import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from taskhub.database import transaction
from taskhub.models.comment import Comment, CommentLink
from taskhub.models.task import Task
from taskhub.schemas.comment import CommentCreate, CommentLinkInput, CommentUpdate
from taskhub.services import notification_service
from taskhub.services.authorization import (
    can_delete_comment,
    can_edit_comment,
    has_project_access,
    has_task_access,
    require,
)
from taskhub.services.folder_service import get_folder
from taskhub.services.project_service import get_project_for_user
from taskhub.services.task_service import get_task, get_task_for_user
from taskhub.utils.errors import NotFoundError, ValidationError
from taskhub.utils.validation import check_links

logger = logging.getLogger(__name__)


def get_comment(db: Session, comment_id: str) -> Comment:
    comment = db.get(Comment, comment_id)
    if not comment:
        raise NotFoundError(f"Comment {comment_id} not found")
    return comment


def list_task_comments(db: Session, user_id: str, task_id: str) -> list[Comment]:
    get_task_for_user(db, user_id, task_id)
    stmt = select(Comment).where(Comment.task_id == task_id).order_by(Comment.created_at.asc())
    return list(db.scalars(stmt).all())


def get_comment_for_user(db: Session, user_id: str, comment_id: str) -> Comment:
    comment = get_comment(db, comment_id)
    require(has_task_access(comment.task, user_id), "You don't have access to view this comment.")
    return comment


def list_project_comments(db: Session, user_id: str, project_id: str) -> list[Comment]:
    """Comments on every task of the project, newest first."""
    get_project_for_user(db, user_id, project_id)
    stmt = (
        select(Comment)
        .join(Task, Task.id == Comment.task_id)
        .where(Task.project_id == project_id)
        .order_by(Comment.created_at.desc())
    )
    return list(db.scalars(stmt).all())


def list_folder_comments(db: Session, user_id: str, folder_id: str) -> list[Comment]:
    folder = get_folder(db, folder_id)
    require(
        has_project_access(folder.project, user_id),
        "You don't have access to view comments for this folder.",
    )
    stmt = (
        select(Comment)
        .join(Task, Task.id == Comment.task_id)
        .where(Task.folder_id == folder.id)
        .order_by(Comment.created_at.desc())
    )
    return list(db.scalars(stmt).all())


def _link_rows(comment_id: str, user_id: str, links: list[CommentLinkInput]) -> list[CommentLink]:
    return [CommentLink(comment_id=comment_id, user_id=user_id, url=link.url) for link in links]


def add_comment(db: Session, user_id: str, data: CommentCreate, origin: str | None = None) -> Comment:
    """Create a comment with its links and queue one ``task.comment.added`` event."""
    if not data.content or not data.content.strip():
        raise ValidationError("Comment content is required.")
    check_links(link.url for link in data.links)

    task = get_task(db, data.task_id)
    require(has_task_access(task, user_id), "You don't have access to this task.")

    with transaction(db):
        comment = Comment(task_id=task.id, user_id=user_id, content=data.content.strip())
        db.add(comment)
        db.flush()
        db.add_all(_link_rows(comment.id, user_id, data.links))
        db.flush()
        notification_service.enqueue_events(db, notification_service.comment_events(comment, origin))

    logger.info("Comment %s added to task %s", comment.id, task.id)
    return get_comment(db, comment.id)


def update_comment(db: Session, user_id: str, comment_id: str, data: CommentUpdate) -> Comment:
    fields = data.model_fields_set
    if "content" in fields and (data.content is None or not data.content.strip()):
        raise ValidationError("Comment content is required.")
    replace_links = "links" in fields and data.links is not None
    if replace_links:
        check_links(link.url for link in data.links)

    comment = get_comment(db, comment_id)
    require(can_edit_comment(comment, user_id), "You can only edit your own comments.")

    with transaction(db):
        if "content" in fields:
            comment.content = data.content.strip()
        if replace_links:
            db.execute(delete(CommentLink).where(CommentLink.comment_id == comment.id))
            db.add_all(_link_rows(comment.id, user_id, data.links))

    db.expire_all()
    return get_comment(db, comment_id)


def delete_comment(db: Session, user_id: str, comment_id: str) -> None:
    comment = get_comment(db, comment_id)
    require(can_delete_comment(comment, user_id), "You don't have permission to delete this comment.")
    with transaction(db):
        db.delete(comment)
    logger.info("Deleted comment %s", comment_id)
