"""Project domain service."""

from uuid import UUID

import structlog

from taskhub.domain.authorization import Action, Actor, ResourceKind, ResourceRef
from taskhub.domain.errors import (
    DepartmentNotFoundError,
    DuplicateProjectNameError,
    ProjectNotFoundError,
)
from taskhub.domain.records import (
    NewProject,
    ProjectCreate,
    ProjectRecord,
    ProjectStatus,
    ProjectUpdate,
    TaskRecord,
    UserProfileRecord,
)
from taskhub.domain.validation import (
    normalize_project_description,
    validate_priority,
    validate_project_name,
)
from taskhub.repositories.base import TrackerRepository
from taskhub.services.access_control import AccessResolver
from taskhub.services.task import TaskService

logger = structlog.get_logger()


class ProjectService:
    """Service for project CRUD and collaborator management.

    Project names are unique case-insensitively among non-archived projects
    across all departments. Archiving a project frees its name.
    """

    def __init__(
        self,
        repository: TrackerRepository,
        task_service: TaskService,
        access: AccessResolver,
    ):
        self.repository = repository
        self.task_service = task_service
        self.access = access

    async def create_project(self, data: ProjectCreate, actor: Actor) -> ProjectRecord:
        name = validate_project_name(data.name)
        priority = validate_priority(data.priority)
        description = normalize_project_description(data.description)

        department_id = data.department_id or actor.department_id
        if department_id != actor.department_id:
            department = await self.repository.get_department(department_id)
            if department is None or not department.is_active:
                raise DepartmentNotFoundError(department_id)
        self.access.require(
            actor,
            ResourceRef(kind=ResourceKind.PROJECT, department_id=department_id),
            Action.CREATE,
            "You cannot create projects in this department",
        )

        if await self.repository.is_project_name_taken(name):
            raise DuplicateProjectNameError(name)

        project = await self.repository.create_project(
            NewProject(
                name=name,
                description=description,
                priority=priority,
                status=data.status or ProjectStatus.ACTIVE,
                department_id=department_id,
                creator_id=actor.user_id,
            )
        )
        logger.info(
            "project_created",
            project_id=str(project.id),
            department_id=str(department_id),
            creator_id=str(actor.user_id),
        )
        return project

    async def get_project(self, project_id: UUID, actor: Actor) -> ProjectRecord:
        project = await self._load(project_id)
        self.access.require(actor, await self.access.project_ref(project), Action.READ)
        return project

    async def update_project(
        self, project_id: UUID, data: ProjectUpdate, actor: Actor
    ) -> ProjectRecord:
        project = await self._load(project_id)
        self.access.require(actor, await self.access.project_ref(project), Action.WRITE)

        fields: dict = {}
        if data.name is not None:
            name = validate_project_name(data.name)
            if name != project.name:
                if await self.repository.is_project_name_taken(
                    name, exclude_project_id=project_id
                ):
                    raise DuplicateProjectNameError(name)
                fields["name"] = name
        if data.description is not None:
            fields["description"] = normalize_project_description(data.description)
        if data.priority is not None:
            fields["priority"] = validate_priority(data.priority)
        if data.status is not None:
            fields["status"] = data.status

        if not fields:
            return project

        await self.repository.update_project(project_id, **fields)
        logger.info("project_updated", project_id=str(project_id), fields=sorted(fields))
        return await self._load(project_id)

    async def archive_project(self, project_id: UUID, actor: Actor) -> ProjectRecord:
        """Archive a project. Tasks and collaborators are left untouched."""
        project = await self._load(project_id)
        self.access.require(
            actor,
            await self.access.project_ref(project),
            Action.ARCHIVE,
            "Only managers can archive projects",
        )
        if project.is_archived:
            return project

        await self.repository.update_project(project_id, is_archived=True)
        logger.info("project_archived", project_id=str(project_id))
        return await self._load(project_id)

    async def unarchive_project(self, project_id: UUID, actor: Actor) -> ProjectRecord:
        """Restore a project, provided its name has not been reused meanwhile."""
        project = await self._load(project_id)
        self.access.require(
            actor,
            await self.access.project_ref(project),
            Action.ARCHIVE,
            "Only managers can unarchive projects",
        )
        if not project.is_archived:
            return project

        if await self.repository.is_project_name_taken(
            project.name, exclude_project_id=project_id
        ):
            raise DuplicateProjectNameError(project.name)

        await self.repository.update_project(project_id, is_archived=False)
        logger.info("project_unarchived", project_id=str(project_id))
        return await self._load(project_id)

    async def get_project_tasks(
        self, project_id: UUID, actor: Actor, include_archived: bool = False
    ) -> list[TaskRecord]:
        project = await self._load(project_id)
        self.access.require(actor, await self.access.project_ref(project), Action.READ)
        return await self.repository.get_project_tasks(project_id, include_archived)

    async def get_project_collaborators(
        self, project_id: UUID, actor: Actor
    ) -> list[UserProfileRecord]:
        """Users holding at least one assignment on a task of the project."""
        project = await self._load(project_id)
        collaborators = await self.repository.list_project_collaborators(project_id)
        resource = ResourceRef(
            kind=ResourceKind.PROJECT,
            department_id=project.department_id,
            owner_id=project.creator_id,
            collaborator_ids=frozenset(user.id for user in collaborators),
        )
        self.access.require(actor, resource, Action.READ)
        return collaborators

    async def remove_project_collaborator(
        self, project_id: UUID, user_id: UUID, actor: Actor
    ) -> int:
        """
        Remove a user from every task of the project.

        Fails as a whole with ``LastAssigneeError`` if any of those tasks
        would be left without assignees.

        Returns:
            Number of task assignments removed
        """
        project = await self._load(project_id)
        self.access.require(
            actor,
            await self.access.project_ref(project),
            Action.REMOVE_COLLABORATOR,
            "Only managers can remove project collaborators",
        )

        removed = await self.task_service.remove_user_from_project_tasks(
            project_id, user_id, actor
        )
        logger.info(
            "project_collaborator_removal_completed",
            project_id=str(project_id),
            user_id=str(user_id),
            assignments_removed=removed,
        )
        return removed

    async def _load(self, project_id: UUID) -> ProjectRecord:
        project = await self.repository.get_project_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project
