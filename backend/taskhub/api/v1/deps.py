"""Service wiring for request handlers."""

from typing import Annotated

from fastapi import Depends

from taskhub.config import Settings, get_settings
from taskhub.db.session import DBSession
from taskhub.repositories.base import TrackerRepository
from taskhub.repositories.sql import SqlAlchemyRepository
from taskhub.services.access_control import AccessResolver
from taskhub.services.collaborator import CollaboratorSync
from taskhub.services.notification import (
    DiscardingNotificationSink,
    NotificationService,
    NotificationSink,
    RepositoryNotificationSink,
)
from taskhub.services.project import ProjectService
from taskhub.services.task import TaskService


async def get_repository(db: DBSession) -> TrackerRepository:
    return SqlAlchemyRepository(db)


Repository = Annotated[TrackerRepository, Depends(get_repository)]


def get_access_resolver(repository: Repository) -> AccessResolver:
    return AccessResolver(repository)


def get_notification_sink(
    repository: Repository,
    settings: Annotated[Settings, Depends(get_settings)],
) -> NotificationSink:
    if not settings.notifications_enabled:
        return DiscardingNotificationSink()
    return RepositoryNotificationSink(repository)


def get_task_service(
    repository: Repository,
    access: Annotated[AccessResolver, Depends(get_access_resolver)],
    sink: Annotated[NotificationSink, Depends(get_notification_sink)],
) -> TaskService:
    return TaskService(
        repository=repository,
        access=access,
        collaborators=CollaboratorSync(repository),
        notifications=NotificationService(sink),
    )


def get_project_service(
    repository: Repository,
    access: Annotated[AccessResolver, Depends(get_access_resolver)],
    task_service: Annotated[TaskService, Depends(get_task_service)],
) -> ProjectService:
    return ProjectService(repository=repository, task_service=task_service, access=access)


TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
