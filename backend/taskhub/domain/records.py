"""Domain enums and record types exchanged between services and repositories."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    STAFF = "STAFF"
    MANAGER = "MANAGER"
    HR_ADMIN = "HR_ADMIN"


class TaskStatus(str, Enum):
    TO_DO = "TO_DO"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    COMPLETED = "COMPLETED"


class ProjectStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"
    CANCELLED = "CANCELLED"


class NotificationType(str, Enum):
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_UPDATED = "TASK_UPDATED"
    COMMENT_ADDED = "COMMENT_ADDED"
    DEADLINE_REMINDER = "DEADLINE_REMINDER"
    TASK_OVERDUE = "TASK_OVERDUE"
    TASK_DELETED = "TASK_DELETED"
    TASK_REASSIGNED = "TASK_REASSIGNED"
    PROJECT_COLLABORATION_ADDED = "PROJECT_COLLABORATION_ADDED"


class LogAction(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    ARCHIVED = "ARCHIVED"
    UNARCHIVED = "UNARCHIVED"
    DELETED = "DELETED"
    RECURRING_TASK_GENERATED = "RECURRING_TASK_GENERATED"


# =========================================================================
# Stored records
# =========================================================================


class DepartmentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    parent_id: UUID | None = None
    is_active: bool = True


class UserProfileRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: Role
    department_id: UUID
    is_hr_admin: bool = False
    is_active: bool = True


class TaskRecord(BaseModel):
    """A task together with its current assignment set."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    priority: int
    due_date: datetime
    start_date: datetime | None = None
    status: TaskStatus = TaskStatus.TO_DO
    owner_id: UUID
    department_id: UUID
    project_id: UUID | None = None
    parent_task_id: UUID | None = None
    recurring_interval: int | None = None
    is_archived: bool = False
    tags: list[str] = Field(default_factory=list)
    assignee_ids: list[UUID] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @property
    def is_recurring(self) -> bool:
        return self.recurring_interval is not None

    @property
    def is_subtask(self) -> bool:
        return self.parent_task_id is not None


class ProjectRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    priority: int = 5
    status: ProjectStatus = ProjectStatus.ACTIVE
    department_id: UUID
    creator_id: UUID
    is_archived: bool = False
    created_at: datetime
    updated_at: datetime


class AssigneeValidation(BaseModel):
    """Result of checking a batch of user ids against user profiles."""

    all_exist: bool
    all_active: bool
    missing_ids: list[UUID] = Field(default_factory=list)
    inactive_ids: list[UUID] = Field(default_factory=list)


class CommentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    author_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime


class TaskLogRecord(BaseModel):
    """A stored audit entry. ``metadata`` is kept as ``extra_data`` in SQL."""

    id: UUID
    task_id: UUID | None = None
    user_id: UUID
    action: LogAction
    field: str
    changes: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class TaskHierarchy(BaseModel):
    """Parent chain (root first, at most one entry) and direct subtasks."""

    parent_chain: list[TaskRecord] = Field(default_factory=list)
    task: TaskRecord
    subtasks: list[TaskRecord] = Field(default_factory=list)


# =========================================================================
# Write payloads
# =========================================================================


class NewTask(BaseModel):
    """Fully validated task ready to be persisted with its assignments."""

    title: str
    description: str
    priority: int
    due_date: datetime
    start_date: datetime | None = None
    status: TaskStatus = TaskStatus.TO_DO
    owner_id: UUID
    department_id: UUID
    project_id: UUID | None = None
    parent_task_id: UUID | None = None
    recurring_interval: int | None = None
    tags: list[str] = Field(default_factory=list)
    assignee_ids: list[UUID]
    assigned_by_id: UUID


class NewProject(BaseModel):
    name: str
    description: str | None = None
    priority: int = 5
    status: ProjectStatus = ProjectStatus.ACTIVE
    department_id: UUID
    creator_id: UUID


class NotificationCreate(BaseModel):
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    task_id: UUID | None = None


class TaskLogEntry(BaseModel):
    task_id: UUID
    user_id: UUID
    action: LogAction
    field: str
    changes: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


# =========================================================================
# Service inputs
# =========================================================================


class TaskCreate(BaseModel):
    """Input for creating a task. Business rules are enforced by the service."""

    title: str
    description: str
    priority: int | None = None
    due_date: datetime
    start_date: datetime | None = None
    assignee_ids: list[UUID]
    owner_id: UUID | None = None
    department_id: UUID | None = None
    project_id: UUID | None = None
    allow_archived_project: bool = False
    parent_task_id: UUID | None = None
    recurring_interval: int | None = None
    tags: list[str] = Field(default_factory=list)


class ProjectCreate(BaseModel):
    name: str
    description: str | None = None
    priority: int | None = None
    status: ProjectStatus | None = None
    department_id: UUID | None = None


class ProjectUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    priority: int | None = None
    status: ProjectStatus | None = None
