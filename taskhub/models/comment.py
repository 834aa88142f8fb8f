from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base import Base, TimestampMixin, new_id


class Comment(Base, TimestampMixin):
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    task_id: Mapped[str] = mapped_column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    task: Mapped["Task"] = relationship("Task", back_populates="comments")
    user: Mapped["User"] = relationship("User")
    links: Mapped[list["CommentLink"]] = relationship(
        "CommentLink", back_populates="comment", cascade="all, delete-orphan", order_by="CommentLink.created_at"
    )


class CommentLink(Base):
    __tablename__ = "comment_links"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    comment_id: Mapped[str] = mapped_column(
        String, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    comment: Mapped["Comment"] = relationship("Comment", back_populates="links")
    user: Mapped["User"] = relationship("User")
