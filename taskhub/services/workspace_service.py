import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskhub.config import settings
from taskhub.database import transaction
from taskhub.models.enums import WorkspaceRole
from taskhub.models.project import Project, ProjectMember
from taskhub.models.task import Task, TaskAssignee
from taskhub.models.workspace import Workspace, WorkspaceMember
from taskhub.schemas.workspace import (
    WorkspaceCreate,
    WorkspaceDescriptor,
    WorkspaceMemberAdd,
    WorkspaceUpdate,
)
from taskhub.services.authorization import is_workspace_admin_or_owner, is_workspace_member, require
from taskhub.services.user_service import get_user, get_user_by_email
from taskhub.utils.errors import ConflictError, NotFoundError, TransactionFailure, ValidationError

logger = logging.getLogger(__name__)


def get_workspace(db: Session, workspace_id: str) -> Workspace:
    workspace = db.get(Workspace, workspace_id)
    if not workspace:
        raise NotFoundError(f"Workspace {workspace_id} not found")
    return workspace


def get_workspace_for_member(db: Session, user_id: str, workspace_id: str) -> Workspace:
    workspace = get_workspace(db, workspace_id)
    require(is_workspace_member(workspace, user_id), "You don't have access to this workspace.")
    return workspace


def get_workspace_by_slug(db: Session, slug: str) -> Workspace | None:
    return db.scalars(select(Workspace).where(Workspace.slug == slug)).first()


def list_user_workspaces(db: Session, user_id: str) -> list[Workspace]:
    stmt = (
        select(Workspace)
        .outerjoin(WorkspaceMember)
        .where((WorkspaceMember.user_id == user_id) | (Workspace.owner_id == user_id))
        .distinct()
        .order_by(Workspace.created_at.asc())
    )
    return list(db.scalars(stmt).all())


def create_workspace(db: Session, user_id: str, data: WorkspaceCreate) -> Workspace:
    get_user(db, user_id)
    if get_workspace_by_slug(db, data.slug):
        raise ConflictError(f"Workspace with slug '{data.slug}' already exists")

    with transaction(db):
        workspace = Workspace(
            name=data.name,
            slug=data.slug,
            owner_id=user_id,
            description=data.description,
            settings=data.settings,
        )
        workspace.members.append(WorkspaceMember(user_id=user_id, role=WorkspaceRole.ADMIN.value))
        db.add(workspace)
    db.refresh(workspace)
    logger.info("Workspace %s created by %s", workspace.id, user_id)
    return workspace


def update_workspace(db: Session, user_id: str, workspace_id: str, data: WorkspaceUpdate) -> Workspace:
    workspace = get_workspace(db, workspace_id)
    require(
        is_workspace_admin_or_owner(workspace, user_id),
        "You don't have permission to update this workspace.",
    )
    with transaction(db):
        for field in ("name", "description", "settings"):
            value = getattr(data, field)
            if value is not None:
                setattr(workspace, field, value)
    db.refresh(workspace)
    logger.info("Workspace %s updated by %s", workspace.id, user_id)
    return workspace


def delete_workspace(db: Session, user_id: str, workspace_id: str) -> None:
    """Delete a workspace; its projects and memberships cascade with it."""
    workspace = get_workspace(db, workspace_id)
    require(
        is_workspace_admin_or_owner(workspace, user_id),
        "You don't have permission to delete this workspace.",
    )
    with transaction(db):
        db.delete(workspace)
    logger.info("Workspace %s deleted by %s", workspace_id, user_id)


def default_workspace_descriptor() -> WorkspaceDescriptor:
    return WorkspaceDescriptor(name=settings.DEFAULT_WORKSPACE_NAME, slug=settings.DEFAULT_WORKSPACE_SLUG)


def ensure_workspace(db: Session, descriptor: WorkspaceDescriptor, user_id: str) -> Workspace:
    """Idempotently make sure the workspace keyed by ``descriptor.slug`` exists and *user_id* belongs to it.

    The first caller becomes owner and ADMIN; later callers join as MEMBER.
    Safe to run repeatedly and concurrently: unique-constraint collisions from
    a parallel caller are absorbed by re-reading the winning rows.
    """
    get_user(db, user_id)

    workspace = get_workspace_by_slug(db, descriptor.slug)
    if workspace is None:
        workspace = Workspace(
            name=descriptor.name,
            slug=descriptor.slug,
            owner_id=user_id,
            description=descriptor.description,
        )
        workspace.members.append(
            WorkspaceMember(user_id=user_id, role=WorkspaceRole.ADMIN.value, message="Created default workspace")
        )
        db.add(workspace)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("Workspace %s was created concurrently, reusing it", descriptor.slug)
            workspace = get_workspace_by_slug(db, descriptor.slug)
            if workspace is None:
                raise TransactionFailure(f"Could not provision workspace '{descriptor.slug}'")
        else:
            logger.info("Provisioned workspace %s owned by %s", descriptor.slug, user_id)
            return workspace

    existing = db.scalars(
        select(WorkspaceMember).where(
            WorkspaceMember.workspace_id == workspace.id, WorkspaceMember.user_id == user_id
        )
    ).first()
    if existing:
        return workspace

    db.add(
        WorkspaceMember(
            workspace_id=workspace.id,
            user_id=user_id,
            role=WorkspaceRole.MEMBER.value,
            message="Auto-joined default workspace",
        )
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("User %s already joined workspace %s", user_id, descriptor.slug)
    else:
        logger.info("User %s joined workspace %s", user_id, descriptor.slug)
    db.refresh(workspace)
    return workspace


def ensure_default_workspace(db: Session, user_id: str) -> Workspace:
    return ensure_workspace(db, default_workspace_descriptor(), user_id)


def add_workspace_member(db: Session, user_id: str, workspace_id: str, data: WorkspaceMemberAdd) -> WorkspaceMember:
    workspace = get_workspace(db, workspace_id)
    require(
        is_workspace_admin_or_owner(workspace, user_id),
        "You don't have permission to add members to this workspace.",
    )
    target = get_user_by_email(db, data.email)
    if not target:
        raise NotFoundError("User not found. They must sign up before being added to a workspace.")
    if any(m.user_id == target.id for m in workspace.members):
        raise ConflictError("User is already a member of this workspace.")

    with transaction(db):
        member = WorkspaceMember(
            workspace_id=workspace.id,
            user_id=target.id,
            role=data.role.value,
            message=data.message,
        )
        db.add(member)
    db.refresh(member)
    logger.info("User %s added to workspace %s as %s", target.id, workspace.id, member.role)
    return member


def _find_member(workspace: Workspace, member_user_id: str) -> WorkspaceMember:
    for member in workspace.members:
        if member.user_id == member_user_id:
            return member
    raise NotFoundError("User is not a member of this workspace.")


def update_member_role(
    db: Session, user_id: str, workspace_id: str, member_user_id: str, role: WorkspaceRole
) -> WorkspaceMember:
    workspace = get_workspace(db, workspace_id)
    require(
        is_workspace_admin_or_owner(workspace, user_id),
        "Only workspace admins or owners can change member roles.",
    )
    member = _find_member(workspace, member_user_id)
    if member_user_id == workspace.owner_id and role != WorkspaceRole.ADMIN:
        raise ValidationError("The workspace owner must keep the ADMIN role.")

    with transaction(db):
        member.role = role.value
    db.refresh(member)
    return member


def remove_workspace_member(db: Session, user_id: str, workspace_id: str, member_user_id: str) -> None:
    """Remove a member along with their project memberships and task assignments in the workspace."""
    workspace = get_workspace(db, workspace_id)
    require(
        is_workspace_admin_or_owner(workspace, user_id),
        "Only workspace admins or owners can remove members.",
    )
    if member_user_id == workspace.owner_id:
        raise ValidationError("Cannot remove workspace owner.")
    if member_user_id == user_id:
        raise ValidationError("Cannot remove yourself from workspace.")
    member = _find_member(workspace, member_user_id)

    project_ids = select(Project.id).where(Project.workspace_id == workspace.id)
    task_ids = select(Task.id).where(Task.project_id.in_(project_ids))
    with transaction(db):
        db.execute(
            delete(TaskAssignee)
            .where(TaskAssignee.user_id == member_user_id, TaskAssignee.task_id.in_(task_ids))
            .execution_options(synchronize_session=False)
        )
        db.execute(
            delete(ProjectMember)
            .where(ProjectMember.user_id == member_user_id, ProjectMember.project_id.in_(project_ids))
            .execution_options(synchronize_session=False)
        )
        db.delete(member)
    db.expire_all()
    logger.info("User %s removed from workspace %s", member_user_id, workspace.id)
