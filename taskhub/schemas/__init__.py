from taskhub.schemas.user import UserSync, UserProfileUpdate, UserResponse, UserSummary, UserRef, UserById, UserByEmail
from taskhub.schemas.workspace import WorkspaceCreate, WorkspaceUpdate, WorkspaceResponse, WorkspaceMemberAdd
from taskhub.schemas.team import MemberStats, MemberTasks, TeamMemberSummary
from taskhub.schemas.project import ProjectCreate, ProjectUpdate, ProjectResponse, FolderCreate, FolderResponse, ProjectStats
from taskhub.schemas.task import TaskCreate, TaskUpdate, TaskResponse, TaskBulkDelete, LinkInput
from taskhub.schemas.comment import CommentCreate, CommentUpdate, CommentResponse
from taskhub.schemas.notification import DeliveryReport, ReminderSweepReport

__all__ = [
    "UserSync",
    "UserProfileUpdate",
    "UserResponse",
    "UserSummary",
    "UserRef",
    "UserById",
    "UserByEmail",
    "WorkspaceCreate",
    "WorkspaceUpdate",
    "WorkspaceResponse",
    "WorkspaceMemberAdd",
    "MemberStats",
    "MemberTasks",
    "TeamMemberSummary",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectResponse",
    "FolderCreate",
    "FolderResponse",
    "ProjectStats",
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "TaskBulkDelete",
    "LinkInput",
    "CommentCreate",
    "CommentUpdate",
    "CommentResponse",
    "DeliveryReport",
    "ReminderSweepReport",
]
