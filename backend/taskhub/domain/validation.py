"""Pure validation rules for tasks and projects.

Each check raises a ``ValidationError`` (or a more specific domain error)
on violation and returns the normalised value otherwise. Existence checks
that need the repository live in the services, not here.
"""

from datetime import datetime
from typing import Iterable
from uuid import UUID

from taskhub.domain.errors import (
    InvalidRecurrenceError,
    InvalidStatusTransitionError,
    InvalidSubtaskDeadlineError,
    MaxAssigneesError,
    SubtaskDepthExceededError,
    ValidationError,
)
from taskhub.domain.records import TaskRecord, TaskStatus

MIN_PRIORITY = 1
MAX_PRIORITY = 10
DEFAULT_PRIORITY = 5
MIN_ASSIGNEES = 1
MAX_ASSIGNEES = 5
MAX_TITLE_LENGTH = 255
MAX_PROJECT_NAME_LENGTH = 100

# Root tasks and one level of subtasks
MAX_SUBTASK_DEPTH = 2

STATUS_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.TO_DO: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.BLOCKED, TaskStatus.COMPLETED}),
    TaskStatus.BLOCKED: frozenset({TaskStatus.IN_PROGRESS}),
    # Reopening a completed task is an explicit, allowed transition
    TaskStatus.COMPLETED: frozenset({TaskStatus.TO_DO, TaskStatus.IN_PROGRESS}),
}


def validate_title(title: str | None) -> str:
    """Trim and check a task title (1..255 chars)."""
    trimmed = (title or "").strip()
    if not trimmed:
        raise ValidationError("Task title is required", field="title")
    if len(trimmed) > MAX_TITLE_LENGTH:
        raise ValidationError(
            f"Task title must be between 1 and {MAX_TITLE_LENGTH} characters",
            field="title",
        )
    return trimmed


def validate_description(description: str | None) -> str:
    if description is None or not description.strip():
        raise ValidationError("Task description is required", field="description")
    return description


def validate_priority(priority: int | None) -> int:
    """Check priority is an integer in [1, 10]; ``None`` means the default."""
    if priority is None:
        return DEFAULT_PRIORITY
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise ValidationError("Priority must be an integer", field="priority")
    if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
        raise ValidationError(
            f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}",
            field="priority",
        )
    return priority


def validate_assignee_count(assignee_ids: Iterable[UUID]) -> list[UUID]:
    """De-duplicate assignee ids (order preserved) and check 1..5 entries."""
    unique_ids = list(dict.fromkeys(assignee_ids))
    if len(unique_ids) < MIN_ASSIGNEES:
        raise ValidationError("Task must have at least 1 assignee", field="assignee_ids")
    if len(unique_ids) > MAX_ASSIGNEES:
        raise MaxAssigneesError()
    return unique_ids


def validate_parent_depth(parent: TaskRecord) -> None:
    """A parent task may not itself have a parent (TGO026)."""
    if parent.parent_task_id is not None:
        raise SubtaskDepthExceededError(parent.id)


def validate_subtask_deadline(due_date: datetime, parent_due_date: datetime | None) -> None:
    if parent_due_date is not None and due_date > parent_due_date:
        raise InvalidSubtaskDeadlineError()


def validate_recurrence(enabled: bool, interval: int | None) -> int | None:
    """Return the interval to store: a positive day count, or None when disabled."""
    if not enabled:
        return None
    if interval is None or isinstance(interval, bool) or interval <= 0:
        raise InvalidRecurrenceError()
    return interval


def validate_status_transition(current: TaskStatus, requested: TaskStatus) -> None:
    if requested == current:
        return
    if requested not in STATUS_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(current.value, requested.value)


def validate_tag(tag: str | None) -> str:
    trimmed = (tag or "").strip()
    if not trimmed:
        raise ValidationError("Tag cannot be empty", field="tag")
    return trimmed


def validate_comment(content: str | None) -> str:
    trimmed = (content or "").strip()
    if not trimmed:
        raise ValidationError("Comment cannot be empty", field="content")
    return trimmed


def validate_project_name(name: str | None) -> str:
    """Trim a project name and check it is 1..100 characters."""
    if name is None:
        raise ValidationError("Project name is required", field="name")
    trimmed = name.strip()
    if not trimmed:
        raise ValidationError("Project name cannot be empty or whitespace", field="name")
    if len(trimmed) > MAX_PROJECT_NAME_LENGTH:
        raise ValidationError(
            f"Project name must not exceed {MAX_PROJECT_NAME_LENGTH} characters",
            field="name",
        )
    return trimmed


def normalize_project_description(description: str | None) -> str | None:
    if description and description.strip():
        return description.strip()
    return None
