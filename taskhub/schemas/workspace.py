from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, EmailStr, StringConstraints

from taskhub.models.enums import WorkspaceRole
from taskhub.schemas.user import UserSummary

WorkspaceName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]
WorkspaceSlug = Annotated[
    str,
    StringConstraints(strip_whitespace=True, to_lower=True, pattern=r"^[A-Za-z0-9]+(?:-[A-Za-z0-9]+)*$"),
]


class WorkspaceCreate(BaseModel):
    name: WorkspaceName
    slug: WorkspaceSlug
    description: str | None = None
    settings: dict[str, Any] | None = None


class WorkspaceUpdate(BaseModel):
    name: WorkspaceName | None = None
    description: str | None = None
    settings: dict[str, Any] | None = None


class WorkspaceDescriptor(BaseModel):
    """Identifies a tenant that is provisioned on demand, keyed by slug."""

    name: WorkspaceName
    slug: WorkspaceSlug
    description: str | None = None


class WorkspaceMemberAdd(BaseModel):
    email: EmailStr
    role: WorkspaceRole = WorkspaceRole.MEMBER
    message: str | None = None


class WorkspaceMemberRoleUpdate(BaseModel):
    role: WorkspaceRole


class WorkspaceMemberResponse(BaseModel):
    id: str
    user_id: str
    workspace_id: str
    role: str
    user: UserSummary

    model_config = {"from_attributes": True}


class WorkspaceResponse(BaseModel):
    id: str
    name: str
    slug: str
    owner_id: str
    description: str | None
    settings: dict[str, Any] | None
    members: list[WorkspaceMemberResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
