"""Services package."""

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

__all__ = [
    "AccessResolver",
    "CollaboratorSync",
    "DiscardingNotificationSink",
    "NotificationService",
    "NotificationSink",
    "ProjectService",
    "RepositoryNotificationSink",
    "TaskService",
]
