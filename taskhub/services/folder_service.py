from sqlalchemy import select
from sqlalchemy.orm import Session

from taskhub.database import transaction
from taskhub.models.project import Folder
from taskhub.schemas.project import FolderCreate
from taskhub.services.authorization import can_mutate_project, require
from taskhub.services.project_service import get_project, get_project_for_user
from taskhub.utils.errors import NotFoundError, ValidationError


def get_folder(db: Session, folder_id: str) -> Folder:
    folder = db.get(Folder, folder_id)
    if not folder:
        raise NotFoundError(f"Folder {folder_id} not found")
    return folder


def create_folder(db: Session, user_id: str, project_id: str, data: FolderCreate) -> Folder:
    if not data.name.strip():
        raise ValidationError("Folder name is required.")
    project = get_project(db, project_id)
    require(can_mutate_project(project, user_id), "You don't have permission to create folders in this project.")
    with transaction(db):
        folder = Folder(project_id=project.id, name=data.name.strip(), description=data.description)
        db.add(folder)
    db.refresh(folder)
    return folder


def list_folders(db: Session, user_id: str, project_id: str) -> list[Folder]:
    get_project_for_user(db, user_id, project_id)
    stmt = select(Folder).where(Folder.project_id == project_id).order_by(Folder.created_at.asc())
    return list(db.scalars(stmt).all())


def delete_folder(db: Session, user_id: str, folder_id: str) -> None:
    """Delete a folder; its tasks move to the project root."""
    folder = get_folder(db, folder_id)
    require(can_mutate_project(folder.project, user_id), "You don't have permission to delete this folder.")
    with transaction(db):
        for task in list(folder.tasks):
            task.folder_id = None
        db.delete(folder)
