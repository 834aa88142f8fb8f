from datetime import datetime

from pydantic import BaseModel

from taskhub.schemas.project import FolderSummary
from taskhub.schemas.user import UserSummary


class LinkInput(BaseModel):
    url: str
    title: str | None = None


class TaskCreate(BaseModel):
    project_id: str
    title: str
    description: str | None = None
    type: str | None = None
    status: str | None = None
    priority: str | None = None
    due_date: datetime | None = None
    folder_id: str | None = None
    position: int | None = None
    assignees: list[str] = []
    links: list[LinkInput] = []


class TaskUpdate(BaseModel):
    """Partial update; see ``model_fields_set`` for which keys the caller sent.

    ``folder_id: null`` moves the task to the project root, ``due_date: null``
    clears the due date and ``links`` always replaces the whole link set.
    """

    title: str | None = None
    description: str | None = None
    type: str | None = None
    status: str | None = None
    priority: str | None = None
    due_date: datetime | None = None
    folder_id: str | None = None
    position: int | None = None
    assignees: list[str] | None = None
    links: list[LinkInput] | None = None


class TaskBulkDelete(BaseModel):
    task_ids: list[str]


class TaskBulkDeleteResponse(BaseModel):
    project_id: str
    deleted_count: int


class TaskAssigneeResponse(BaseModel):
    user_id: str
    user: UserSummary

    model_config = {"from_attributes": True}


class TaskLinkResponse(BaseModel):
    id: str
    url: str
    title: str | None
    user_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TaskResponse(BaseModel):
    id: str
    project_id: str
    folder_id: str | None
    title: str
    description: str | None
    type: str
    status: str
    priority: str
    due_date: datetime | None
    position: int
    assignees: list[TaskAssigneeResponse]
    links: list[TaskLinkResponse]
    folder: FolderSummary | None
    comment_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
