from taskhub.models.base import Base
from taskhub.models.user import User
from taskhub.models.workspace import Workspace, WorkspaceMember
from taskhub.models.project import Project, ProjectMember, Folder
from taskhub.models.task import Task, TaskAssignee, TaskLink
from taskhub.models.comment import Comment, CommentLink
from taskhub.models.notification import NotificationEvent, TaskReminder

__all__ = [
    "Base",
    "User",
    "Workspace",
    "WorkspaceMember",
    "Project",
    "ProjectMember",
    "Folder",
    "Task",
    "TaskAssignee",
    "TaskLink",
    "Comment",
    "CommentLink",
    "NotificationEvent",
    "TaskReminder",
]
