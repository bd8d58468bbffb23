"""Project collaborator derivation.

A user is a collaborator on a project exactly while they hold at least one
assignment on a task of that project. These hooks run at every assignment
mutation point and reconcile the collaborator row for one user.
"""

from uuid import UUID

import structlog

from taskhub.repositories.base import TrackerRepository

logger = structlog.get_logger()


class CollaboratorSync:
    """Keeps project collaborator rows in step with task assignments."""

    def __init__(self, repository: TrackerRepository):
        self.repository = repository

    async def on_assignee_added(
        self,
        project_id: UUID | None,
        user_id: UUID,
        user_department_id: UUID,
    ) -> bool:
        """Grant collaboration after an assignment write.

        Returns True when the user became a new collaborator, which is the
        only case that should produce a notification.
        """
        if project_id is None:
            return False

        if await self.repository.is_user_project_collaborator(project_id, user_id):
            return False

        # The collaborator row records the assignee's department, not the project's
        inserted = await self.repository.create_project_collaborator(
            project_id, user_id, user_department_id
        )
        if not inserted:
            logger.debug(
                "project_collaborator_exists",
                project_id=str(project_id),
                user_id=str(user_id),
            )
            return False
        logger.info(
            "project_collaborator_added",
            project_id=str(project_id),
            user_id=str(user_id),
            department_id=str(user_department_id),
        )
        return True

    async def on_assignee_removed(self, project_id: UUID | None, user_id: UUID) -> bool:
        """Revoke collaboration once the user's last assignment in the project is gone.

        Must be called after the assignment row has been removed.
        """
        if project_id is None:
            return False

        removed = await self.repository.remove_project_collaborator_if_no_tasks(
            project_id, user_id
        )
        if removed:
            logger.info(
                "project_collaborator_removed",
                project_id=str(project_id),
                user_id=str(user_id),
            )
        return removed
