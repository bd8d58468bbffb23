"""Access resolution for task and project operations.

Builds the ``Actor`` and ``ResourceRef`` inputs for the pure predicate in
``taskhub.domain.authorization`` and raises ``UnauthorizedError`` on denial.
"""

import structlog

from taskhub.domain.authorization import Action, Actor, ResourceKind, ResourceRef, can_act
from taskhub.domain.errors import UnauthorizedError
from taskhub.domain.records import ProjectRecord, TaskRecord, UserProfileRecord
from taskhub.repositories.base import TrackerRepository

logger = structlog.get_logger()


class AccessResolver:
    """Resolves actors and resources, then checks the capability table."""

    def __init__(self, repository: TrackerRepository):
        self.repository = repository

    async def resolve_actor(self, profile: UserProfileRecord) -> Actor:
        """Build an actor with its department hierarchy pre-resolved."""
        managed = await self.repository.get_department_hierarchy(profile.department_id)
        return Actor(
            user_id=profile.id,
            department_id=profile.department_id,
            role=profile.role,
            is_hr_admin=profile.is_hr_admin,
            managed_department_ids=frozenset(managed | {profile.department_id}),
        )

    @staticmethod
    def task_ref(task: TaskRecord) -> ResourceRef:
        return ResourceRef(
            kind=ResourceKind.TASK,
            department_id=task.department_id,
            owner_id=task.owner_id,
            assignee_ids=frozenset(task.assignee_ids),
        )

    async def project_ref(self, project: ProjectRecord) -> ResourceRef:
        collaborators = await self.repository.list_project_collaborators(project.id)
        return ResourceRef(
            kind=ResourceKind.PROJECT,
            department_id=project.department_id,
            owner_id=project.creator_id,
            collaborator_ids=frozenset(user.id for user in collaborators),
        )

    def permits(self, actor: Actor, resource: ResourceRef, action: Action) -> bool:
        return can_act(actor, resource, action)

    def require(
        self,
        actor: Actor,
        resource: ResourceRef,
        action: Action,
        message: str | None = None,
    ) -> None:
        if self.permits(actor, resource, action):
            return
        logger.warning(
            "access_denied",
            user_id=str(actor.user_id),
            role=actor.effective_role.value,
            resource=resource.kind.value,
            department_id=str(resource.department_id),
            action=action.value,
        )
        if message:
            raise UnauthorizedError(message)
        raise UnauthorizedError()
