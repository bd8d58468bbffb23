"""Persistence interface consumed by the task and project services."""

from typing import Any, Protocol
from uuid import UUID

from taskhub.domain.records import (
    AssigneeValidation,
    CommentRecord,
    DepartmentRecord,
    NewProject,
    NewTask,
    NotificationCreate,
    ProjectRecord,
    TaskLogEntry,
    TaskLogRecord,
    TaskRecord,
    UserProfileRecord,
)


class TrackerRepository(Protocol):
    """Reads and writes for tasks, assignments, projects and their side records.

    Implementations do not commit; the caller owns the transaction.
    """

    # Users and departments
    async def get_user_profile(self, user_id: UUID) -> UserProfileRecord | None: ...

    async def validate_assignees(self, user_ids: list[UUID]) -> AssigneeValidation: ...

    async def get_department(self, department_id: UUID) -> DepartmentRecord | None: ...

    async def get_department_hierarchy(self, department_id: UUID) -> set[UUID]:
        """Return ``department_id`` plus every transitively subordinate department."""
        ...

    # Tasks
    async def get_task_by_id_full(
        self, task_id: UUID, *, for_update: bool = False
    ) -> TaskRecord | None: ...

    async def create_task(self, data: NewTask) -> TaskRecord: ...

    async def update_task(self, task_id: UUID, **fields: Any) -> None: ...

    async def delete_task(self, task_id: UUID) -> None: ...

    async def get_subtasks(self, parent_task_id: UUID) -> list[TaskRecord]: ...

    async def add_task_assignment(
        self, task_id: UUID, user_id: UUID, assigned_by_id: UUID
    ) -> None: ...

    async def remove_task_assignment(self, task_id: UUID, user_id: UUID) -> None: ...

    async def log_task_action(self, entry: TaskLogEntry) -> None: ...

    async def get_task_logs(self, task_id: UUID) -> list[TaskLogRecord]:
        """Audit entries for a task, oldest first."""
        ...

    async def get_owner_tasks(
        self, owner_id: UUID, include_archived: bool = False
    ) -> list[TaskRecord]: ...

    async def get_department_tasks(
        self, department_id: UUID, include_archived: bool = False
    ) -> list[TaskRecord]: ...

    # Comments
    async def create_comment(
        self, task_id: UUID, author_id: UUID, content: str
    ) -> CommentRecord: ...

    async def get_comment(self, comment_id: UUID) -> CommentRecord | None: ...

    async def update_comment(self, comment_id: UUID, content: str) -> CommentRecord: ...

    async def get_task_comments(self, task_id: UUID) -> list[CommentRecord]:
        """Comments on a task, oldest first."""
        ...

    # Projects
    async def get_project_by_id(self, project_id: UUID) -> ProjectRecord | None: ...

    async def validate_project_exists(self, project_id: UUID) -> bool: ...

    async def create_project(self, data: NewProject) -> ProjectRecord: ...

    async def update_project(self, project_id: UUID, **fields: Any) -> None: ...

    async def is_project_name_taken(
        self, name: str, exclude_project_id: UUID | None = None
    ) -> bool:
        """Case-insensitive match against non-archived projects."""
        ...

    async def get_project_tasks(
        self, project_id: UUID, include_archived: bool = False
    ) -> list[TaskRecord]: ...

    async def get_project_tasks_for_assignee(
        self, project_id: UUID, user_id: UUID, *, for_update: bool = False
    ) -> list[TaskRecord]: ...

    # Collaborators
    async def is_user_project_collaborator(self, project_id: UUID, user_id: UUID) -> bool: ...

    async def create_project_collaborator(
        self, project_id: UUID, user_id: UUID, department_id: UUID
    ) -> bool:
        """Idempotent upsert of the collaborator row.

        Returns True only when this call inserted the row.
        """
        ...

    async def remove_project_collaborator_if_no_tasks(
        self, project_id: UUID, user_id: UUID
    ) -> bool:
        """Delete the collaborator row when no assignment in the project remains."""
        ...

    async def list_project_collaborators(self, project_id: UUID) -> list[UserProfileRecord]:
        """Distinct users holding at least one assignment on a task of the project."""
        ...

    # Notifications
    async def create_notification(self, data: NotificationCreate) -> None: ...
