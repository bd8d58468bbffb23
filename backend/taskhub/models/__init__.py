"""SQLAlchemy models package."""

from taskhub.models.organization import Department
from taskhub.models.user import UserProfile
from taskhub.models.project import (
    Project,
    ProjectCollaborator,
    Task,
    TaskAssignment,
    TaskComment,
)
from taskhub.models.activity import Notification, TaskLog

__all__ = [
    "Department",
    "UserProfile",
    "Project",
    "ProjectCollaborator",
    "Task",
    "TaskAssignment",
    "TaskComment",
    "Notification",
    "TaskLog",
]
