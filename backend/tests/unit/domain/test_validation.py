"""Unit tests for the pure validation rules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from taskhub.domain.errors import (
    InvalidRecurrenceError,
    InvalidStatusTransitionError,
    InvalidSubtaskDeadlineError,
    MaxAssigneesError,
    SubtaskDepthExceededError,
    ValidationError,
)
from taskhub.domain.records import TaskRecord, TaskStatus
from taskhub.domain.validation import (
    normalize_project_description,
    validate_assignee_count,
    validate_description,
    validate_parent_depth,
    validate_priority,
    validate_project_name,
    validate_recurrence,
    validate_status_transition,
    validate_subtask_deadline,
    validate_tag,
    validate_title,
)

NOW = datetime(2026, 10, 1, tzinfo=timezone.utc)


def make_task(parent_task_id=None) -> TaskRecord:
    return TaskRecord(
        id=uuid4(),
        title="Parent",
        description="Parent task",
        priority=5,
        due_date=NOW,
        owner_id=uuid4(),
        department_id=uuid4(),
        parent_task_id=parent_task_id,
        created_at=NOW,
        updated_at=NOW,
    )


class TestTitleAndDescription:
    def test_title_is_trimmed(self) -> None:
        assert validate_title("  Ship it  ") == "Ship it"

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_empty_title_rejected(self, title) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_title(title)
        assert exc_info.value.field == "title"

    def test_title_length_limit(self) -> None:
        assert validate_title("x" * 255) == "x" * 255
        with pytest.raises(ValidationError):
            validate_title("x" * 256)

    def test_blank_description_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_description("  ")
        assert exc_info.value.field == "description"


class TestPriority:
    def test_defaults_to_five(self) -> None:
        assert validate_priority(None) == 5

    @pytest.mark.parametrize("priority", [1, 5, 10])
    def test_accepts_range(self, priority: int) -> None:
        assert validate_priority(priority) == priority

    @pytest.mark.parametrize("priority", [0, 11, -3])
    def test_rejects_out_of_range(self, priority: int) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_priority(priority)
        assert exc_info.value.field == "priority"

    @pytest.mark.parametrize("priority", [True, 5.5, "5"])
    def test_rejects_non_integers(self, priority) -> None:
        with pytest.raises(ValidationError):
            validate_priority(priority)


class TestAssigneeCount:
    def test_duplicates_are_collapsed(self) -> None:
        user = uuid4()
        other = uuid4()
        assert validate_assignee_count([user, other, user]) == [user, other]

    def test_at_least_one(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_assignee_count([])
        assert exc_info.value.field == "assignee_ids"

    def test_at_most_five(self) -> None:
        assert len(validate_assignee_count([uuid4() for _ in range(5)])) == 5
        with pytest.raises(MaxAssigneesError):
            validate_assignee_count([uuid4() for _ in range(6)])


class TestSubtaskRules:
    def test_root_parent_is_allowed(self) -> None:
        validate_parent_depth(make_task())

    def test_subtask_parent_is_rejected_with_tgo026(self) -> None:
        parent = make_task(parent_task_id=uuid4())
        with pytest.raises(SubtaskDepthExceededError) as exc_info:
            validate_parent_depth(parent)
        assert "TGO026" in exc_info.value.message
        assert exc_info.value.parent_task_id == parent.id

    def test_deadline_after_parent_rejected(self) -> None:
        with pytest.raises(InvalidSubtaskDeadlineError):
            validate_subtask_deadline(NOW + timedelta(days=1), NOW)

    def test_deadline_equal_to_parent_allowed(self) -> None:
        validate_subtask_deadline(NOW, NOW)


class TestRecurrence:
    def test_disabled_clears_interval(self) -> None:
        assert validate_recurrence(False, 7) is None

    def test_enabled_requires_positive_interval(self) -> None:
        assert validate_recurrence(True, 7) == 7
        for interval in (None, 0, -1):
            with pytest.raises(InvalidRecurrenceError):
                validate_recurrence(True, interval)


class TestStatusTransitions:
    @pytest.mark.parametrize(
        ("current", "requested"),
        [
            (TaskStatus.TO_DO, TaskStatus.IN_PROGRESS),
            (TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED),
            (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED),
            (TaskStatus.BLOCKED, TaskStatus.IN_PROGRESS),
            (TaskStatus.COMPLETED, TaskStatus.TO_DO),
            (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS),
            (TaskStatus.BLOCKED, TaskStatus.BLOCKED),
        ],
    )
    def test_allowed(self, current: TaskStatus, requested: TaskStatus) -> None:
        validate_status_transition(current, requested)

    @pytest.mark.parametrize(
        ("current", "requested"),
        [
            (TaskStatus.TO_DO, TaskStatus.COMPLETED),
            (TaskStatus.TO_DO, TaskStatus.BLOCKED),
            (TaskStatus.BLOCKED, TaskStatus.COMPLETED),
        ],
    )
    def test_rejected(self, current: TaskStatus, requested: TaskStatus) -> None:
        with pytest.raises(InvalidStatusTransitionError):
            validate_status_transition(current, requested)


class TestProjectFields:
    def test_name_trimmed(self) -> None:
        assert validate_project_name("  Website Redesign ") == "Website Redesign"

    @pytest.mark.parametrize("name", [None, "", "   \t"])
    def test_empty_name_rejected(self, name) -> None:
        with pytest.raises(ValidationError):
            validate_project_name(name)

    def test_name_length_limit(self) -> None:
        assert validate_project_name("n" * 100) == "n" * 100
        with pytest.raises(ValidationError):
            validate_project_name("n" * 101)

    def test_description_normalised(self) -> None:
        assert normalize_project_description("  notes ") == "notes"
        assert normalize_project_description("   ") is None
        assert normalize_project_description(None) is None

    def test_tag_trimmed(self) -> None:
        assert validate_tag(" urgent ") == "urgent"
        with pytest.raises(ValidationError):
            validate_tag(" ")
