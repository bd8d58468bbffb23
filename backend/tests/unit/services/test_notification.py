"""Unit tests for NotificationService and the notification sinks."""

from __future__ import annotations

from uuid import uuid4

import pytest

from taskhub.domain.records import NotificationType
from taskhub.services.notification import (
    DiscardingNotificationSink,
    NotificationService,
    RepositoryNotificationSink,
)
from tests.fakes import InMemoryRepository, RecordingNotificationSink, add_project


class TestNotificationService:
    @pytest.mark.asyncio
    async def test_collaboration_message(
        self, repo: InMemoryRepository, sink: RecordingNotificationSink
    ) -> None:
        project = add_project(repo, name="Website Redesign")
        user_id = repo.user["alice"].id
        task_id = uuid4()

        delivered = await NotificationService(sink).notify_project_collaboration(
            project, user_id, task_id
        )

        assert delivered is True
        [notification] = sink.emitted
        assert notification.type is NotificationType.PROJECT_COLLABORATION_ADDED
        assert notification.title == "Added to Project"
        assert notification.message == (
            "You've been added as a collaborator on project \"Website Redesign\""
        )
        assert notification.task_id == task_id

    @pytest.mark.asyncio
    async def test_sink_failure_is_swallowed(
        self, repo: InMemoryRepository, sink: RecordingNotificationSink
    ) -> None:
        sink.fail = True
        project = add_project(repo)

        delivered = await NotificationService(sink).notify_project_collaboration(
            project, repo.user["alice"].id
        )

        assert delivered is False
        assert sink.emitted == []


class TestSinks:
    @pytest.mark.asyncio
    async def test_repository_sink_stores_notification(self, repo: InMemoryRepository) -> None:
        service = NotificationService(RepositoryNotificationSink(repo))

        await service.notify(
            repo.user["bob"].id,
            NotificationType.TASK_ASSIGNED,
            "Assigned",
            "You have a new task",
        )

        assert len(repo.notifications) == 1
        assert repo.notifications[0].user_id == repo.user["bob"].id

    @pytest.mark.asyncio
    async def test_discarding_sink_accepts_silently(self, repo: InMemoryRepository) -> None:
        service = NotificationService(DiscardingNotificationSink())

        assert await service.notify(
            repo.user["bob"].id, NotificationType.TASK_UPDATED, "Updated", "Changed"
        )
        assert repo.notifications == []
