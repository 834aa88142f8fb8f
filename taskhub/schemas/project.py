from datetime import datetime

from pydantic import BaseModel, EmailStr

from taskhub.schemas.user import UserRef, UserSummary


class ProjectCreate(BaseModel):
    workspace_id: str
    name: str
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    progress: int = 0
    start_date: datetime | None = None
    end_date: datetime | None = None
    team_lead: UserRef | None = None
    team_members: list[UserRef] = []


class ProjectUpdate(BaseModel):
    # Only fields present in the request body are applied.
    name: str | None = None
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    progress: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    team_lead: UserRef | None = None


class ProjectMemberAdd(BaseModel):
    email: EmailStr


class ProjectMemberResponse(BaseModel):
    id: str
    user_id: str
    project_id: str
    user: UserSummary

    model_config = {"from_attributes": True}


class ProjectResponse(BaseModel):
    id: str
    workspace_id: str
    name: str
    description: str | None
    status: str
    priority: str
    progress: int
    team_lead: str
    start_date: datetime | None
    end_date: datetime | None
    members: list[ProjectMemberResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FolderCreate(BaseModel):
    name: str
    description: str | None = None


class FolderSummary(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class FolderResponse(FolderSummary):
    project_id: str
    description: str | None
    created_at: datetime
    updated_at: datetime


class ProjectStats(BaseModel):
    project_id: str
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    todo_tasks: int
    overdue_tasks: int
    total_members: int
    progress: int
