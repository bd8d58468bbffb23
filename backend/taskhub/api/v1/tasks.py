"""Tasks API endpoints."""

from datetime import datetime
from uuid import UUID

import structlog
from fastapi import APIRouter, status
from pydantic import BaseModel

from taskhub.api.v1.auth import CurrentActor
from taskhub.api.v1.deps import TaskServiceDep
from taskhub.domain.records import (
    CommentRecord,
    TaskCreate,
    TaskHierarchy,
    TaskLogRecord,
    TaskRecord,
    TaskStatus,
)

router = APIRouter()
logger = structlog.get_logger()


class AssigneeAdd(BaseModel):
    user_id: UUID


class TitleUpdate(BaseModel):
    title: str


class DescriptionUpdate(BaseModel):
    description: str


class PriorityUpdate(BaseModel):
    priority: int


class DeadlineUpdate(BaseModel):
    due_date: datetime


class StatusUpdate(BaseModel):
    status: TaskStatus


class RecurringUpdate(BaseModel):
    enabled: bool
    recurring_interval: int | None = None


class TagAdd(BaseModel):
    tag: str


class ProjectLink(BaseModel):
    project_id: UUID | None = None


class CommentBody(BaseModel):
    content: str


@router.post("/", response_model=TaskRecord, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    """Create a task with its assignees."""
    return await service.create_task(data, current_actor)


@router.get("/owner/{owner_id}", response_model=list[TaskRecord])
async def list_owner_tasks(
    owner_id: UUID,
    current_actor: CurrentActor,
    service: TaskServiceDep,
    include_archived: bool = False,
) -> list[TaskRecord]:
    """List the tasks a user owns, limited to those the caller can read."""
    return await service.get_owner_tasks(owner_id, current_actor, include_archived)


@router.get("/department/{department_id}", response_model=list[TaskRecord])
async def list_department_tasks(
    department_id: UUID,
    current_actor: CurrentActor,
    service: TaskServiceDep,
    include_archived: bool = False,
) -> list[TaskRecord]:
    return await service.get_department_tasks(department_id, current_actor, include_archived)


@router.get("/{task_id}", response_model=TaskRecord)
async def get_task(
    task_id: UUID, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.get_task(task_id, current_actor)


@router.get("/{task_id}/hierarchy", response_model=TaskHierarchy)
async def get_task_hierarchy(
    task_id: UUID, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskHierarchy:
    """Get a task with its parent and direct subtasks."""
    return await service.get_task_hierarchy(task_id, current_actor)


@router.get("/{task_id}/logs", response_model=list[TaskLogRecord])
async def get_task_logs(
    task_id: UUID, current_actor: CurrentActor, service: TaskServiceDep
) -> list[TaskLogRecord]:
    """Audit trail of a task, oldest first."""
    return await service.get_task_logs(task_id, current_actor)


@router.get("/{task_id}/comments", response_model=list[CommentRecord])
async def list_comments(
    task_id: UUID, current_actor: CurrentActor, service: TaskServiceDep
) -> list[CommentRecord]:
    return await service.get_task_comments(task_id, current_actor)


@router.post(
    "/{task_id}/comments", response_model=CommentRecord, status_code=status.HTTP_201_CREATED
)
async def add_comment(
    task_id: UUID, data: CommentBody, current_actor: CurrentActor, service: TaskServiceDep
) -> CommentRecord:
    return await service.add_comment_to_task(task_id, data.content, current_actor)


@router.patch("/{task_id}/comments/{comment_id}", response_model=CommentRecord)
async def update_comment(
    task_id: UUID,
    comment_id: UUID,
    data: CommentBody,
    current_actor: CurrentActor,
    service: TaskServiceDep,
) -> CommentRecord:
    """Edit a comment. Only its author may do so."""
    return await service.update_comment(task_id, comment_id, data.content, current_actor)


@router.post("/{task_id}/assignees", response_model=TaskRecord)
async def add_assignee(
    task_id: UUID, data: AssigneeAdd, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.add_assignee_to_task(task_id, data.user_id, current_actor)


@router.delete("/{task_id}/assignees/{user_id}", response_model=TaskRecord)
async def remove_assignee(
    task_id: UUID, user_id: UUID, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.remove_assignee_from_task(task_id, user_id, current_actor)


@router.patch("/{task_id}/title", response_model=TaskRecord)
async def update_title(
    task_id: UUID, data: TitleUpdate, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.update_task_title(task_id, data.title, current_actor)


@router.patch("/{task_id}/description", response_model=TaskRecord)
async def update_description(
    task_id: UUID, data: DescriptionUpdate, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.update_task_description(task_id, data.description, current_actor)


@router.patch("/{task_id}/priority", response_model=TaskRecord)
async def update_priority(
    task_id: UUID, data: PriorityUpdate, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.update_task_priority(task_id, data.priority, current_actor)


@router.patch("/{task_id}/deadline", response_model=TaskRecord)
async def update_deadline(
    task_id: UUID, data: DeadlineUpdate, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.update_task_deadline(task_id, data.due_date, current_actor)


@router.patch("/{task_id}/status", response_model=TaskRecord)
async def update_status(
    task_id: UUID, data: StatusUpdate, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.update_task_status(task_id, data.status, current_actor)


@router.patch("/{task_id}/recurring", response_model=TaskRecord)
async def update_recurring(
    task_id: UUID, data: RecurringUpdate, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.update_task_recurring(
        task_id, data.enabled, data.recurring_interval, current_actor
    )


@router.post("/{task_id}/tags", response_model=TaskRecord)
async def add_tag(
    task_id: UUID, data: TagAdd, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.add_tag_to_task(task_id, data.tag, current_actor)


@router.delete("/{task_id}/tags/{tag}", response_model=TaskRecord)
async def remove_tag(
    task_id: UUID, tag: str, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.remove_tag_from_task(task_id, tag, current_actor)


@router.put("/{task_id}/project", response_model=TaskRecord)
async def assign_to_project(
    task_id: UUID, data: ProjectLink, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    """Link a task to a project, or unlink it with a null project id."""
    return await service.assign_task_to_project(task_id, data.project_id, current_actor)


@router.post("/{task_id}/archive", response_model=TaskRecord)
async def archive_task(
    task_id: UUID, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    """Archive a task and its subtasks."""
    return await service.archive_task(task_id, current_actor)


@router.post("/{task_id}/unarchive", response_model=TaskRecord)
async def unarchive_task(
    task_id: UUID, current_actor: CurrentActor, service: TaskServiceDep
) -> TaskRecord:
    return await service.unarchive_task(task_id, current_actor)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID, current_actor: CurrentActor, service: TaskServiceDep
) -> None:
    """Permanently delete a task."""
    await service.delete_task(task_id, current_actor)
    logger.info("task_delete_requested", task_id=str(task_id), user_id=str(current_actor.user_id))
