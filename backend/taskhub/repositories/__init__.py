"""Persistence layer for tasks, projects and their side records."""

from taskhub.repositories.base import TrackerRepository
from taskhub.repositories.sql import SqlAlchemyRepository

__all__ = ["SqlAlchemyRepository", "TrackerRepository"]
