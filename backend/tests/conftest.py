"""
Shared fixtures for TaskHub tests.

Services run against ``InMemoryRepository`` seeded with two department
trees (Engineering > Platform, and Sales) and a handful of users:

- hannah: HR admin (Engineering)
- morgan: manager of Engineering; sam: manager of Sales
- alice, bob, carol, dave, erin, frank: Engineering staff
- pat: Platform staff; sally: Sales staff; ivan: inactive
"""

from __future__ import annotations

import pytest

from taskhub.services.access_control import AccessResolver
from taskhub.services.collaborator import CollaboratorSync
from taskhub.services.notification import NotificationService
from taskhub.services.project import ProjectService
from taskhub.services.task import TaskService
from tests.fakes import InMemoryRepository, RecordingNotificationSink, seed_repository


@pytest.fixture
def repo() -> InMemoryRepository:
    return seed_repository()


@pytest.fixture
def sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def access(repo: InMemoryRepository) -> AccessResolver:
    return AccessResolver(repo)


@pytest.fixture
def task_service(
    repo: InMemoryRepository,
    access: AccessResolver,
    sink: RecordingNotificationSink,
) -> TaskService:
    return TaskService(
        repository=repo,
        access=access,
        collaborators=CollaboratorSync(repo),
        notifications=NotificationService(sink),
    )


@pytest.fixture
def project_service(
    repo: InMemoryRepository,
    access: AccessResolver,
    task_service: TaskService,
) -> ProjectService:
    return ProjectService(repository=repo, task_service=task_service, access=access)
