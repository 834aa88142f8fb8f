from pydantic import BaseModel

from taskhub.schemas.task import TaskResponse
from taskhub.schemas.user import UserSummary


class TeamMember(UserSummary):
    role: str


class MemberTasks(BaseModel):
    member: TeamMember
    tasks: list[TaskResponse]


class MemberStats(BaseModel):
    total_tasks: int
    todo: int
    in_progress: int
    in_review: int
    done: int
    cancelled: int
    overdue: int


class TeamMemberSummary(BaseModel):
    """A workspace member with their task load across the workspace."""

    id: str
    user_id: str
    role: str
    user: UserSummary
    task_count: int
    completed_tasks: int
    completion_rate: int
