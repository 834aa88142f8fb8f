from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base import Base, TimestampMixin, new_id
from taskhub.models.enums import Priority, TaskStatus, TaskType


class Task(Base, TimestampMixin):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    folder_id: Mapped[str] = mapped_column(
        String, ForeignKey("folders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(32), default=TaskType.GENERAL_TASK.value, nullable=False)
    status: Mapped[str] = mapped_column(String(32), default=TaskStatus.TODO.value, nullable=False)
    priority: Mapped[str] = mapped_column(String(16), default=Priority.MEDIUM.value, nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    project: Mapped["Project"] = relationship("Project", back_populates="tasks")
    folder: Mapped["Folder"] = relationship("Folder", back_populates="tasks")
    assignees: Mapped[list["TaskAssignee"]] = relationship(
        "TaskAssignee", back_populates="task", cascade="all, delete-orphan"
    )
    links: Mapped[list["TaskLink"]] = relationship(
        "TaskLink", back_populates="task", cascade="all, delete-orphan", order_by="TaskLink.created_at"
    )
    comments: Mapped[list["Comment"]] = relationship(
        "Comment", back_populates="task", cascade="all, delete-orphan"
    )
    reminders: Mapped[list["TaskReminder"]] = relationship(
        "TaskReminder", back_populates="task", cascade="all, delete-orphan"
    )

    @property
    def assignee_ids(self) -> list[str]:
        return [assignee.user_id for assignee in self.assignees]

    @property
    def comment_count(self) -> int:
        return len(self.comments)


class TaskAssignee(Base):
    __tablename__ = "task_assignees"
    __table_args__ = (UniqueConstraint("task_id", "user_id", name="uq_task_assignee"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    task_id: Mapped[str] = mapped_column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    task: Mapped["Task"] = relationship("Task", back_populates="assignees")
    user: Mapped["User"] = relationship("User", back_populates="task_assignments")


class TaskLink(Base):
    __tablename__ = "task_links"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    task_id: Mapped[str] = mapped_column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    task: Mapped["Task"] = relationship("Task", back_populates="links")
    user: Mapped["User"] = relationship("User")
