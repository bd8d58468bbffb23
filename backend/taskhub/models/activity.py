"""Notification and task audit log models."""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.db.base import BaseModel

if TYPE_CHECKING:
    from taskhub.models.user import UserProfile


class Notification(BaseModel):
    """In-app notification. Created only as a side effect of domain events."""

    __tablename__ = "notifications"

    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    notification_type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )  # e.g. PROJECT_COLLABORATION_ADDED
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    task_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tasks.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    user: Mapped["UserProfile"] = relationship("UserProfile")

    def __repr__(self) -> str:
        return f"<Notification {self.notification_type} user={self.user_id}>"


class TaskLog(BaseModel):
    """Audit trail entry for a task mutation."""

    __tablename__ = "task_logs"

    # Kept after the task is hard-deleted
    task_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("tasks.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    action: Mapped[str] = mapped_column(
        String(50), nullable=False
    )  # CREATED, UPDATED, ARCHIVED, UNARCHIVED, DELETED, RECURRING_TASK_GENERATED
    field: Mapped[str] = mapped_column(String(100), nullable=False)
    changes: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    extra_data: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<TaskLog {self.action} {self.field} task={self.task_id}>"
