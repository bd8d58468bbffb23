"""Notification emission for domain events."""

from typing import Protocol
from uuid import UUID

import structlog

from taskhub.domain.records import (
    NotificationCreate,
    NotificationType,
    ProjectRecord,
    TaskRecord,
)
from taskhub.repositories.base import TrackerRepository

logger = structlog.get_logger()


class NotificationSink(Protocol):
    """Destination for notification records."""

    async def emit(self, notification: NotificationCreate) -> None: ...


class RepositoryNotificationSink:
    """Stores notifications as in-app notification rows."""

    def __init__(self, repository: TrackerRepository):
        self.repository = repository

    async def emit(self, notification: NotificationCreate) -> None:
        await self.repository.create_notification(notification)


class DiscardingNotificationSink:
    """Drops every notification. Used when notifications are disabled."""

    async def emit(self, notification: NotificationCreate) -> None:
        logger.debug(
            "notification_discarded",
            user_id=str(notification.user_id),
            notification_type=notification.type.value,
        )


class NotificationService:
    """Builds notification messages and hands them to a sink.

    Emission is best-effort: a failing sink is logged and never propagates
    into the operation that triggered it.
    """

    def __init__(self, sink: NotificationSink):
        self.sink = sink

    async def notify(
        self,
        user_id: UUID,
        notification_type: NotificationType,
        title: str,
        message: str,
        task_id: UUID | None = None,
    ) -> bool:
        """
        Emit a notification, swallowing and logging sink failures.

        Returns:
            True if the sink accepted the notification
        """
        try:
            await self.sink.emit(
                NotificationCreate(
                    user_id=user_id,
                    type=notification_type,
                    title=title,
                    message=message,
                    task_id=task_id,
                )
            )
        except Exception:
            logger.exception(
                "notification_failed",
                user_id=str(user_id),
                notification_type=notification_type.value,
                task_id=str(task_id) if task_id else None,
            )
            return False

        logger.info(
            "notification_created",
            user_id=str(user_id),
            notification_type=notification_type.value,
        )
        return True

    async def notify_project_collaboration(
        self,
        project: ProjectRecord,
        user_id: UUID,
        task_id: UUID | None = None,
    ) -> bool:
        """Tell a user they were added as a collaborator on ``project``."""
        return await self.notify(
            user_id=user_id,
            notification_type=NotificationType.PROJECT_COLLABORATION_ADDED,
            title="Added to Project",
            message=f'You\'ve been added as a collaborator on project "{project.name}"',
            task_id=task_id,
        )

    async def notify_comment(
        self,
        task: TaskRecord,
        author_name: str,
        recipient_ids: list[UUID],
        *,
        edited: bool = False,
    ) -> int:
        """Tell the other assignees about a new or edited comment.

        Returns:
            Number of notifications the sink accepted
        """
        if edited:
            title = "Comment Edited"
            message = f'{author_name} edited a comment on "{task.title}"'
        else:
            title = "New Comment"
            message = f'{author_name} commented on "{task.title}"'

        accepted = 0
        for user_id in recipient_ids:
            if await self.notify(
                user_id=user_id,
                notification_type=NotificationType.COMMENT_ADDED,
                title=title,
                message=message,
                task_id=task.id,
            ):
                accepted += 1
        return accepted
