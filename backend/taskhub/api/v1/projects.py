"""Projects API endpoints."""

from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel

from taskhub.api.v1.auth import CurrentActor
from taskhub.api.v1.deps import ProjectServiceDep
from taskhub.domain.records import (
    ProjectCreate,
    ProjectRecord,
    ProjectUpdate,
    TaskRecord,
    UserProfileRecord,
)

router = APIRouter()


class CollaboratorRemovalResponse(BaseModel):
    project_id: UUID
    user_id: UUID
    assignments_removed: int


@router.post("/", response_model=ProjectRecord, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate, current_actor: CurrentActor, service: ProjectServiceDep
) -> ProjectRecord:
    """Create a new project."""
    return await service.create_project(data, current_actor)


@router.get("/{project_id}", response_model=ProjectRecord)
async def get_project(
    project_id: UUID, current_actor: CurrentActor, service: ProjectServiceDep
) -> ProjectRecord:
    return await service.get_project(project_id, current_actor)


@router.patch("/{project_id}", response_model=ProjectRecord)
async def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    current_actor: CurrentActor,
    service: ProjectServiceDep,
) -> ProjectRecord:
    return await service.update_project(project_id, data, current_actor)


@router.post("/{project_id}/archive", response_model=ProjectRecord)
async def archive_project(
    project_id: UUID, current_actor: CurrentActor, service: ProjectServiceDep
) -> ProjectRecord:
    """Archive a project, freeing its name for reuse."""
    return await service.archive_project(project_id, current_actor)


@router.post("/{project_id}/unarchive", response_model=ProjectRecord)
async def unarchive_project(
    project_id: UUID, current_actor: CurrentActor, service: ProjectServiceDep
) -> ProjectRecord:
    return await service.unarchive_project(project_id, current_actor)


@router.get("/{project_id}/tasks", response_model=list[TaskRecord])
async def list_project_tasks(
    project_id: UUID,
    current_actor: CurrentActor,
    service: ProjectServiceDep,
    include_archived: bool = False,
) -> list[TaskRecord]:
    return await service.get_project_tasks(project_id, current_actor, include_archived)


@router.get("/{project_id}/collaborators", response_model=list[UserProfileRecord])
async def list_collaborators(
    project_id: UUID, current_actor: CurrentActor, service: ProjectServiceDep
) -> list[UserProfileRecord]:
    """List users assigned to at least one task of the project."""
    return await service.get_project_collaborators(project_id, current_actor)


@router.delete(
    "/{project_id}/collaborators/{user_id}", response_model=CollaboratorRemovalResponse
)
async def remove_collaborator(
    project_id: UUID,
    user_id: UUID,
    current_actor: CurrentActor,
    service: ProjectServiceDep,
) -> CollaboratorRemovalResponse:
    """Remove a user from every task of the project."""
    removed = await service.remove_project_collaborator(project_id, user_id, current_actor)
    return CollaboratorRemovalResponse(
        project_id=project_id, user_id=user_id, assignments_removed=removed
    )
