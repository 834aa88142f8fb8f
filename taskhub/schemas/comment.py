from datetime import datetime

from pydantic import BaseModel

from taskhub.schemas.user import UserSummary


class CommentLinkInput(BaseModel):
    url: str


class CommentCreate(BaseModel):
    task_id: str
    content: str
    links: list[CommentLinkInput] = []


class CommentUpdate(BaseModel):
    content: str | None = None
    links: list[CommentLinkInput] | None = None


class CommentLinkResponse(BaseModel):
    id: str
    url: str
    user_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CommentResponse(BaseModel):
    id: str
    task_id: str
    user_id: str
    content: str
    user: UserSummary
    links: list[CommentLinkResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
