from enum import Enum


class WorkspaceRole(str, Enum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class ProjectStatus(str, Enum):
    PLANNING = "PLANNING"
    ACTIVE = "ACTIVE"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class TaskType(str, Enum):
    GENERAL_TASK = "GENERAL_TASK"
    WEEKLY_EMAILS = "WEEKLY_EMAILS"
    CALENDARS = "CALENDARS"
    CLIENT = "CLIENT"
    SOCIAL = "SOCIAL"
    OTHER = "OTHER"


class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    INTERNAL_REVIEW = "INTERNAL_REVIEW"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


TERMINAL_TASK_STATUSES = frozenset({TaskStatus.DONE.value, TaskStatus.CANCELLED.value})


class EventStatus(str, Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


class ReminderStatus(str, Enum):
    SCHEDULED = "scheduled"
    SENT = "sent"
    SUPPRESSED = "suppressed"
    FAILED = "failed"
