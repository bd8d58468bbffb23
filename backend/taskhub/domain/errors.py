"""Domain exceptions.

Every rule violation raised by the task and project services is a
``TaskHubError`` carrying a human-readable message and a stable ``code``
that the HTTP layer maps to a status code.
"""

from uuid import UUID


class TaskHubError(Exception):
    """Base exception for domain errors."""

    def __init__(self, message: str, code: str = "TASKHUB_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(TaskHubError):
    """A field failed validation (empty title, priority out of range, ...)."""

    def __init__(self, message: str, field: str | None = None, code: str = "VALIDATION_ERROR"):
        self.field = field
        super().__init__(message=message, code=code)


class MaxAssigneesError(ValidationError):
    """Assignee count is outside 1..5."""

    def __init__(self, message: str = "Maximum of 5 assignees allowed per task"):
        super().__init__(message=message, field="assignee_ids", code="MAX_ASSIGNEES")


class InvalidStatusTransitionError(ValidationError):
    """Requested status is not reachable from the current one."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            message=f"Cannot change task status from {current} to {requested}",
            field="status",
            code="INVALID_STATUS_TRANSITION",
        )


class InvalidRecurrenceError(ValidationError):
    """Recurring task without a positive interval."""

    def __init__(self):
        super().__init__(
            message="Recurrence days must be greater than 0 when recurring is enabled",
            field="recurring_interval",
            code="INVALID_RECURRENCE",
        )


class InvalidSubtaskDeadlineError(ValidationError):
    """Subtask due date is later than its parent's."""

    def __init__(self):
        super().__init__(
            message="Subtask deadline cannot be after parent task deadline",
            field="due_date",
            code="INVALID_SUBTASK_DEADLINE",
        )


class SubtaskHasChildrenError(ValidationError):
    """Hard delete attempted on a task that still has subtasks."""

    def __init__(self, task_id: UUID):
        self.task_id = task_id
        super().__init__(
            message="Cannot delete task with subtasks. Archive it instead.",
            code="TASK_HAS_SUBTASKS",
        )


class SubtaskDepthExceededError(TaskHubError):
    """Parent task is itself a subtask (TGO026)."""

    def __init__(self, parent_task_id: UUID):
        self.parent_task_id = parent_task_id
        super().__init__(
            message="Maximum subtask depth is 2 levels (TGO026)",
            code="TGO026",
        )


class OwnerNotFoundError(TaskHubError):
    """Task owner does not exist or is inactive."""

    def __init__(self, owner_id: UUID):
        self.owner_id = owner_id
        super().__init__(
            message=f"Owner '{owner_id}' not found or inactive",
            code="OWNER_NOT_FOUND",
        )


class DepartmentNotFoundError(TaskHubError):
    """Department does not exist or is inactive."""

    def __init__(self, department_id: UUID):
        self.department_id = department_id
        super().__init__(
            message=f"Department '{department_id}' not found or inactive",
            code="DEPARTMENT_NOT_FOUND",
        )


class AssigneesNotFoundError(TaskHubError):
    """One or more assignees do not exist or are inactive."""

    def __init__(self, user_ids: list[UUID], message: str | None = None):
        self.user_ids = list(user_ids)
        super().__init__(
            message=message or "One or more assignees not found or inactive",
            code="ASSIGNEES_NOT_FOUND",
        )


class AssigneeNotFoundError(AssigneesNotFoundError):
    """A single user is unknown, inactive, or not assigned to the task."""

    def __init__(self, user_id: UUID, message: str | None = None):
        self.user_id = user_id
        super().__init__([user_id], message=message or f"Assignee '{user_id}' not found or inactive")
        self.code = "ASSIGNEE_NOT_FOUND"


class ProjectNotFoundError(TaskHubError):
    """Project does not exist, or is archived where that is not allowed."""

    def __init__(self, project_id: UUID):
        self.project_id = project_id
        super().__init__(
            message=f"Project '{project_id}' not found",
            code="PROJECT_NOT_FOUND",
        )


class TaskNotFoundError(TaskHubError):
    """Task does not exist."""

    def __init__(self, task_id: UUID, message: str | None = None):
        self.task_id = task_id
        super().__init__(
            message=message or f"Task '{task_id}' not found",
            code="TASK_NOT_FOUND",
        )


class LastAssigneeError(TaskHubError):
    """Removal would leave a task with no assignees (TM016)."""

    def __init__(self, task_id: UUID, user_id: UUID):
        self.task_id = task_id
        self.user_id = user_id
        super().__init__(
            message="Task must have at least 1 assignee (TM016)",
            code="LAST_ASSIGNEE",
        )


class UnauthorizedError(TaskHubError):
    """Actor is not allowed to perform the action."""

    def __init__(self, message: str = "User is not authorized to perform this action"):
        super().__init__(message=message, code="UNAUTHORIZED")


class DuplicateProjectNameError(TaskHubError):
    """An active project already uses this name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            message=f'A project named "{name}" already exists. Please choose a different name.',
            code="DUPLICATE_PROJECT_NAME",
        )


class CommentNotFoundError(TaskHubError):
    """Comment does not exist on the given task."""

    def __init__(self, comment_id: UUID):
        self.comment_id = comment_id
        super().__init__(
            message=f"Comment '{comment_id}' not found",
            code="COMMENT_NOT_FOUND",
        )
