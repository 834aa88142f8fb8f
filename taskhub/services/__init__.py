from taskhub.services.user_service import get_user, sync_user, update_profile
from taskhub.services.workspace_service import (
    create_workspace,
    delete_workspace,
    ensure_default_workspace,
    get_workspace,
    update_workspace,
)
from taskhub.services.team_service import get_member_stats, list_member_tasks, list_team_members
from taskhub.services.project_service import create_project, get_project
from taskhub.services.task_service import create_task, update_task, delete_task, delete_tasks
from taskhub.services.comment_service import add_comment, update_comment, delete_comment
from taskhub.services.notification_service import deliver_pending, sweep_reminders

__all__ = [
    "get_user",
    "sync_user",
    "update_profile",
    "create_workspace",
    "ensure_default_workspace",
    "get_workspace",
    "update_workspace",
    "delete_workspace",
    "list_team_members",
    "list_member_tasks",
    "get_member_stats",
    "create_project",
    "get_project",
    "create_task",
    "update_task",
    "delete_task",
    "delete_tasks",
    "add_comment",
    "update_comment",
    "delete_comment",
    "deliver_pending",
    "sweep_reminders",
]
