"""Task domain service.

Every operation authorizes, validates and reads current state before the
first write. Assignment writes are followed by collaborator derivation for
the affected user, and new collaborators are notified. Derivation and
notification run after the primary write and are best-effort.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable
from uuid import UUID

import structlog

from taskhub.domain.authorization import Action, Actor, ResourceKind, ResourceRef
from taskhub.domain.errors import (
    AssigneeNotFoundError,
    AssigneesNotFoundError,
    CommentNotFoundError,
    DepartmentNotFoundError,
    LastAssigneeError,
    MaxAssigneesError,
    OwnerNotFoundError,
    ProjectNotFoundError,
    SubtaskHasChildrenError,
    TaskNotFoundError,
    UnauthorizedError,
)
from taskhub.domain.records import (
    CommentRecord,
    LogAction,
    NewTask,
    ProjectRecord,
    TaskCreate,
    TaskHierarchy,
    TaskLogEntry,
    TaskLogRecord,
    TaskRecord,
    TaskStatus,
)
from taskhub.domain.validation import (
    MAX_ASSIGNEES,
    MIN_ASSIGNEES,
    validate_assignee_count,
    validate_comment,
    validate_description,
    validate_parent_depth,
    validate_priority,
    validate_recurrence,
    validate_status_transition,
    validate_subtask_deadline,
    validate_tag,
    validate_title,
)
from taskhub.repositories.base import TrackerRepository
from taskhub.services.access_control import AccessResolver
from taskhub.services.collaborator import CollaboratorSync
from taskhub.services.notification import NotificationService

logger = structlog.get_logger()


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class TaskService:
    """Service for creating and mutating tasks and their assignment sets."""

    def __init__(
        self,
        repository: TrackerRepository,
        access: AccessResolver,
        collaborators: CollaboratorSync,
        notifications: NotificationService,
    ):
        self.repository = repository
        self.access = access
        self.collaborators = collaborators
        self.notifications = notifications

    # =========================================================================
    # Creation
    # =========================================================================

    async def create_task(self, data: TaskCreate, actor: Actor) -> TaskRecord:
        """
        Create a task with its assignments.

        All checks run before the task row is written, so a failure leaves
        no trace. For each assignee of a project task, collaborator
        derivation runs once and new collaborators get one notification.

        Raises:
            ValidationError, SubtaskDepthExceededError, OwnerNotFoundError,
            DepartmentNotFoundError, AssigneesNotFoundError,
            ProjectNotFoundError, TaskNotFoundError (parent), UnauthorizedError
        """
        title = validate_title(data.title)
        description = validate_description(data.description)
        priority = validate_priority(data.priority)
        assignee_ids = validate_assignee_count(data.assignee_ids)
        recurring_interval = validate_recurrence(
            data.recurring_interval is not None, data.recurring_interval
        )
        tags = list(dict.fromkeys(validate_tag(tag) for tag in data.tags))

        owner_id = data.owner_id or actor.user_id
        owner = await self.repository.get_user_profile(owner_id)
        if owner is None or not owner.is_active:
            raise OwnerNotFoundError(owner_id)

        department_id = data.department_id or actor.department_id
        department = await self.repository.get_department(department_id)
        if department is None or not department.is_active:
            raise DepartmentNotFoundError(department_id)

        self.access.require(
            actor,
            ResourceRef(kind=ResourceKind.TASK, department_id=department_id),
            Action.CREATE,
            "You cannot create tasks in this department",
        )

        validation = await self.repository.validate_assignees(assignee_ids)
        if not validation.all_exist or not validation.all_active:
            raise AssigneesNotFoundError(validation.missing_ids + validation.inactive_ids)

        project: ProjectRecord | None = None
        if data.project_id is not None:
            project = await self.repository.get_project_by_id(data.project_id)
            # Archived projects only take new tasks from managers who ask for it
            allow_archived = data.allow_archived_project and actor.is_manager_or_above
            if project is None or (project.is_archived and not allow_archived):
                raise ProjectNotFoundError(data.project_id)

        if data.parent_task_id is not None:
            parent = await self.repository.get_task_by_id_full(data.parent_task_id)
            if parent is None:
                raise TaskNotFoundError(data.parent_task_id, message="Parent task not found")
            validate_parent_depth(parent)
            validate_subtask_deadline(data.due_date, parent.due_date)

        task = await self.repository.create_task(
            NewTask(
                title=title,
                description=description,
                priority=priority,
                due_date=data.due_date,
                start_date=data.start_date,
                owner_id=owner_id,
                department_id=department_id,
                project_id=data.project_id,
                parent_task_id=data.parent_task_id,
                recurring_interval=recurring_interval,
                tags=tags,
                assignee_ids=assignee_ids,
                assigned_by_id=actor.user_id,
            )
        )
        await self._log(
            task.id,
            actor,
            LogAction.CREATED,
            "Task",
            {"title": task.title},
            metadata={"assignee_ids": [str(uid) for uid in assignee_ids]},
        )
        logger.info(
            "task_created",
            task_id=str(task.id),
            project_id=str(task.project_id) if task.project_id else None,
            parent_task_id=str(task.parent_task_id) if task.parent_task_id else None,
            assignee_count=len(assignee_ids),
        )

        await self._derive_collaborators(task, assignee_ids, project)
        return task

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_task(self, task_id: UUID, actor: Actor) -> TaskRecord:
        task = await self._load(task_id)
        self.access.require(actor, self.access.task_ref(task), Action.READ)
        return task

    async def get_task_hierarchy(self, task_id: UUID, actor: Actor) -> TaskHierarchy:
        """Return the parent chain (at most one ancestor) and direct subtasks."""
        task = await self.get_task(task_id, actor)

        parent_chain: list[TaskRecord] = []
        if task.parent_task_id is not None:
            parent = await self.repository.get_task_by_id_full(task.parent_task_id)
            if parent is not None:
                parent_chain.append(parent)

        subtasks = await self.repository.get_subtasks(task.id)
        return TaskHierarchy(parent_chain=parent_chain, task=task, subtasks=subtasks)

    async def get_task_logs(self, task_id: UUID, actor: Actor) -> list[TaskLogRecord]:
        await self.get_task(task_id, actor)
        return await self.repository.get_task_logs(task_id)

    async def get_owner_tasks(
        self, owner_id: UUID, actor: Actor, include_archived: bool = False
    ) -> list[TaskRecord]:
        """Tasks owned by ``owner_id`` that the actor is allowed to read."""
        tasks = await self.repository.get_owner_tasks(owner_id, include_archived)
        return [
            task
            for task in tasks
            if self.access.permits(actor, self.access.task_ref(task), Action.READ)
        ]

    async def get_department_tasks(
        self, department_id: UUID, actor: Actor, include_archived: bool = False
    ) -> list[TaskRecord]:
        """Every task of a department. MANAGER over the department, or HR_ADMIN."""
        department = await self.repository.get_department(department_id)
        if department is None:
            raise DepartmentNotFoundError(department_id)
        self.access.require(
            actor,
            ResourceRef(kind=ResourceKind.TASK, department_id=department_id),
            Action.READ,
            "Only managers and HR admins can view all department tasks",
        )
        return await self.repository.get_department_tasks(department_id, include_archived)

    # =========================================================================
    # Comments
    # =========================================================================

    async def get_task_comments(self, task_id: UUID, actor: Actor) -> list[CommentRecord]:
        await self.get_task(task_id, actor)
        return await self.repository.get_task_comments(task_id)

    async def add_comment_to_task(
        self, task_id: UUID, content: str, actor: Actor
    ) -> CommentRecord:
        """Comment on a task. Needs the same access as editing the task."""
        task = await self._load_for_write(task_id, actor)
        content = validate_comment(content)

        comment = await self.repository.create_comment(task_id, actor.user_id, content)
        await self._log(
            task_id,
            actor,
            LogAction.CREATED,
            "Comment",
            {"said": content},
            metadata={"comment_id": str(comment.id)},
        )
        logger.info("comment_added", task_id=str(task_id), comment_id=str(comment.id))

        await self._notify_comment(task, actor)
        return comment

    async def update_comment(
        self, task_id: UUID, comment_id: UUID, content: str, actor: Actor
    ) -> CommentRecord:
        """Edit a comment. Only its author may do so."""
        task = await self._load(task_id, for_update=True)
        self.access.require(actor, self.access.task_ref(task), Action.READ)

        comment = await self.repository.get_comment(comment_id)
        if comment is None or comment.task_id != task_id:
            raise CommentNotFoundError(comment_id)
        if comment.author_id != actor.user_id:
            logger.warning(
                "comment_edit_denied",
                comment_id=str(comment_id),
                user_id=str(actor.user_id),
            )
            raise UnauthorizedError("You can only edit your own comments")

        content = validate_comment(content)
        if content == comment.content:
            return comment

        updated = await self.repository.update_comment(comment_id, content)
        await self._log(
            task_id,
            actor,
            LogAction.UPDATED,
            "Comment",
            {"from": comment.content, "to": content},
            metadata={"comment_id": str(comment_id)},
        )
        logger.info("comment_updated", task_id=str(task_id), comment_id=str(comment_id))

        await self._notify_comment(task, actor, edited=True)
        return updated

    # =========================================================================
    # Assignees
    # =========================================================================

    async def add_assignee_to_task(
        self, task_id: UUID, user_id: UUID, actor: Actor
    ) -> TaskRecord:
        task = await self._load(task_id, for_update=True)
        self.access.require(actor, self.access.task_ref(task), Action.WRITE)

        profile = await self.repository.get_user_profile(user_id)
        if profile is None or not profile.is_active:
            raise AssigneeNotFoundError(user_id)

        if user_id in task.assignee_ids:
            logger.debug("assignee_already_present", task_id=str(task_id), user_id=str(user_id))
            return task
        if len(task.assignee_ids) >= MAX_ASSIGNEES:
            raise MaxAssigneesError()

        await self.repository.add_task_assignment(task_id, user_id, actor.user_id)
        await self._log(task_id, actor, LogAction.UPDATED, "Assignees", {"added": str(user_id)})
        logger.info("assignee_added", task_id=str(task_id), user_id=str(user_id))

        await self._derive_collaborators(task, [user_id])
        return await self._load(task_id)

    async def remove_assignee_from_task(
        self, task_id: UUID, user_id: UUID, actor: Actor
    ) -> TaskRecord:
        """Remove one assignment. Removing someone else requires MANAGER or above."""
        task = await self._load(task_id, for_update=True)
        action = Action.WRITE if user_id == actor.user_id else Action.REMOVE_ASSIGNEE
        self.access.require(
            actor,
            self.access.task_ref(task),
            action,
            "Only managers can remove other users from a task",
        )

        await self._remove_assignment(task, user_id, actor)
        return await self._load(task_id)

    async def remove_user_from_project_tasks(
        self, project_id: UUID, user_id: UUID, actor: Actor
    ) -> int:
        """
        Remove ``user_id`` from every task of the project.

        Every affected task is locked and checked before the first removal;
        if any task would lose its last assignee nothing is removed.
        Authorization is the caller's concern.

        Returns:
            Number of assignments removed
        """
        tasks = await self.repository.get_project_tasks_for_assignee(
            project_id, user_id, for_update=True
        )
        for task in tasks:
            if len(task.assignee_ids) <= MIN_ASSIGNEES:
                raise LastAssigneeError(task.id, user_id)

        for task in tasks:
            await self._remove_assignment(task, user_id, actor)

        logger.info(
            "user_removed_from_project_tasks",
            project_id=str(project_id),
            user_id=str(user_id),
            task_count=len(tasks),
        )
        return len(tasks)

    async def _remove_assignment(self, task: TaskRecord, user_id: UUID, actor: Actor) -> None:
        if user_id not in task.assignee_ids:
            raise AssigneeNotFoundError(user_id, message="User is not assigned to this task")
        if len(task.assignee_ids) <= MIN_ASSIGNEES:
            raise LastAssigneeError(task.id, user_id)

        await self.repository.remove_task_assignment(task.id, user_id)
        await self._log(task.id, actor, LogAction.UPDATED, "Assignees", {"removed": str(user_id)})
        logger.info("assignee_removed", task_id=str(task.id), user_id=str(user_id))

        await self._release_collaborator(task.project_id, user_id)

    # =========================================================================
    # Field updates
    # =========================================================================

    async def update_task_title(self, task_id: UUID, title: str, actor: Actor) -> TaskRecord:
        task = await self._load_for_write(task_id, actor)
        new_title = validate_title(title)
        return await self._update_field(task, actor, "Title", "title", task.title, new_title)

    async def update_task_description(
        self, task_id: UUID, description: str, actor: Actor
    ) -> TaskRecord:
        task = await self._load_for_write(task_id, actor)
        new_description = validate_description(description)
        return await self._update_field(
            task, actor, "Description", "description", task.description, new_description
        )

    async def update_task_priority(self, task_id: UUID, priority: int, actor: Actor) -> TaskRecord:
        task = await self._load_for_write(task_id, actor)
        new_priority = validate_priority(priority)
        return await self._update_field(
            task, actor, "Priority", "priority", task.priority, new_priority
        )

    async def update_task_deadline(
        self, task_id: UUID, due_date: datetime, actor: Actor
    ) -> TaskRecord:
        task = await self._load_for_write(task_id, actor)
        if task.parent_task_id is not None:
            parent = await self.repository.get_task_by_id_full(task.parent_task_id)
            validate_subtask_deadline(due_date, parent.due_date if parent else None)

        if due_date == task.due_date:
            return task
        await self.repository.update_task(task_id, due_date=due_date)
        await self._log(
            task_id,
            actor,
            LogAction.UPDATED,
            "Deadline",
            {"from": _iso(task.due_date), "to": _iso(due_date)},
        )
        return await self._load(task_id)

    async def update_task_status(
        self, task_id: UUID, status: TaskStatus, actor: Actor
    ) -> TaskRecord:
        """
        Move a task through its status workflow.

        The first move to IN_PROGRESS stamps ``start_date``. Completing a
        recurring task generates its next instance.
        """
        task = await self._load_for_write(task_id, actor)
        validate_status_transition(task.status, status)
        if status == task.status:
            return task

        fields: dict[str, Any] = {"status": status}
        if status is TaskStatus.IN_PROGRESS and task.start_date is None:
            fields["start_date"] = datetime.now(timezone.utc)

        await self.repository.update_task(task_id, **fields)
        await self._log(
            task_id,
            actor,
            LogAction.UPDATED,
            "Status",
            {"from": task.status.value, "to": status.value},
        )
        if "start_date" in fields:
            await self._log(
                task_id,
                actor,
                LogAction.UPDATED,
                "startDate",
                {"from": None, "to": _iso(fields["start_date"])},
                metadata={"source": "automatic", "reason": "First transition to IN_PROGRESS"},
            )
        logger.info(
            "task_status_changed",
            task_id=str(task_id),
            from_status=task.status.value,
            to_status=status.value,
        )

        if status is TaskStatus.COMPLETED and task.is_recurring:
            await self._generate_next_instance(task, actor)

        return await self._load(task_id)

    async def update_task_recurring(
        self,
        task_id: UUID,
        enabled: bool,
        recurring_interval: int | None,
        actor: Actor,
    ) -> TaskRecord:
        task = await self._load_for_write(task_id, actor)
        new_interval = validate_recurrence(enabled, recurring_interval)
        return await self._update_field(
            task, actor, "Recurring", "recurring_interval", task.recurring_interval, new_interval
        )

    async def add_tag_to_task(self, task_id: UUID, tag: str, actor: Actor) -> TaskRecord:
        task = await self._load_for_write(task_id, actor)
        tag = validate_tag(tag)
        if tag in task.tags:
            return task

        await self.repository.update_task(task_id, tags=[*task.tags, tag])
        await self._log(task_id, actor, LogAction.UPDATED, "Tags", {"added": tag})
        return await self._load(task_id)

    async def remove_tag_from_task(self, task_id: UUID, tag: str, actor: Actor) -> TaskRecord:
        task = await self._load_for_write(task_id, actor)
        tag = validate_tag(tag)
        if tag not in task.tags:
            return task

        await self.repository.update_task(task_id, tags=[t for t in task.tags if t != tag])
        await self._log(task_id, actor, LogAction.UPDATED, "Tags", {"removed": tag})
        return await self._load(task_id)

    async def assign_task_to_project(
        self, task_id: UUID, project_id: UUID | None, actor: Actor
    ) -> TaskRecord:
        """
        Link a task to a project, or unlink it with ``project_id=None``.

        Linking derives collaborators for the task's assignees. The old
        project keeps collaborators that still hold assignments there.
        """
        task = await self._load_for_write(task_id, actor)
        if project_id == task.project_id:
            return task

        project: ProjectRecord | None = None
        if project_id is not None:
            if not await self.repository.validate_project_exists(project_id):
                raise ProjectNotFoundError(project_id)
            project = await self.repository.get_project_by_id(project_id)
            if project is None or project.is_archived:
                raise ProjectNotFoundError(project_id)

        await self.repository.update_task(task_id, project_id=project_id)
        await self._log(
            task_id,
            actor,
            LogAction.UPDATED,
            "Project",
            {
                "from": str(task.project_id) if task.project_id else None,
                "to": str(project_id) if project_id else None,
            },
        )

        if task.project_id is not None:
            for user_id in task.assignee_ids:
                await self._release_collaborator(task.project_id, user_id)

        updated = await self._load(task_id)
        await self._derive_collaborators(updated, updated.assignee_ids, project)
        return updated

    # =========================================================================
    # Archive and delete
    # =========================================================================

    async def archive_task(self, task_id: UUID, actor: Actor) -> TaskRecord:
        """Archive a task and its subtasks. Requires MANAGER or above."""
        task = await self._load(task_id, for_update=True)
        self.access.require(
            actor,
            self.access.task_ref(task),
            Action.ARCHIVE,
            "Only managers can archive tasks",
        )
        if task.is_archived:
            return task

        await self.repository.update_task(task_id, is_archived=True)
        await self._log(
            task_id,
            actor,
            LogAction.ARCHIVED,
            "Task",
            {"from": False, "to": True},
            metadata={"task_title": task.title},
        )

        for subtask in await self.repository.get_subtasks(task_id):
            if subtask.is_archived:
                continue
            await self.repository.update_task(subtask.id, is_archived=True)
            await self._log(
                subtask.id,
                actor,
                LogAction.ARCHIVED,
                "Task",
                {"from": False, "to": True},
                metadata={"cascade_from_parent": True, "parent_task_id": str(task_id)},
            )

        logger.info("task_archived", task_id=str(task_id))
        return await self._load(task_id)

    async def unarchive_task(self, task_id: UUID, actor: Actor) -> TaskRecord:
        task = await self._load_for_write(task_id, actor)
        if not task.is_archived:
            return task

        await self.repository.update_task(task_id, is_archived=False)
        await self._log(task_id, actor, LogAction.UNARCHIVED, "Task", {"from": True, "to": False})
        logger.info("task_unarchived", task_id=str(task_id))
        return await self._load(task_id)

    async def delete_task(self, task_id: UUID, actor: Actor) -> None:
        """Hard delete. HR_ADMIN only, and only for tasks without subtasks."""
        task = await self._load(task_id, for_update=True)
        self.access.require(
            actor,
            self.access.task_ref(task),
            Action.DELETE,
            "Only HR administrators can delete tasks",
        )
        if await self.repository.get_subtasks(task_id):
            raise SubtaskHasChildrenError(task_id)

        await self._log(
            task_id,
            actor,
            LogAction.DELETED,
            "Task",
            {"removed": task.title},
            metadata={"task_title": task.title},
        )
        await self.repository.delete_task(task_id)
        logger.info("task_deleted", task_id=str(task_id))

        for user_id in task.assignee_ids:
            await self._release_collaborator(task.project_id, user_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _load(self, task_id: UUID, *, for_update: bool = False) -> TaskRecord:
        task = await self.repository.get_task_by_id_full(task_id, for_update=for_update)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def _load_for_write(self, task_id: UUID, actor: Actor) -> TaskRecord:
        task = await self._load(task_id, for_update=True)
        self.access.require(actor, self.access.task_ref(task), Action.WRITE)
        return task

    async def _update_field(
        self,
        task: TaskRecord,
        actor: Actor,
        label: str,
        column: str,
        old: Any,
        new: Any,
    ) -> TaskRecord:
        if old == new:
            return task
        await self.repository.update_task(task.id, **{column: new})
        await self._log(task.id, actor, LogAction.UPDATED, label, {"from": old, "to": new})
        return await self._load(task.id)

    async def _log(
        self,
        task_id: UUID,
        actor: Actor,
        action: LogAction,
        field: str,
        changes: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> None:
        await self.repository.log_task_action(
            TaskLogEntry(
                task_id=task_id,
                user_id=actor.user_id,
                action=action,
                field=field,
                changes=changes,
                metadata=metadata or {},
            )
        )

    async def _generate_next_instance(self, task: TaskRecord, actor: Actor) -> TaskRecord:
        interval = timedelta(days=task.recurring_interval or 0)
        next_task = await self.repository.create_task(
            NewTask(
                title=task.title,
                description=task.description,
                priority=task.priority,
                due_date=task.due_date + interval,
                start_date=task.start_date + interval if task.start_date else None,
                owner_id=task.owner_id,
                department_id=task.department_id,
                project_id=task.project_id,
                parent_task_id=task.parent_task_id,
                recurring_interval=task.recurring_interval,
                tags=task.tags,
                assignee_ids=task.assignee_ids,
                assigned_by_id=actor.user_id,
            )
        )
        await self._log(
            next_task.id,
            actor,
            LogAction.RECURRING_TASK_GENERATED,
            "Task",
            {"from": str(task.id), "to": str(next_task.id)},
            metadata={
                "source_task_id": str(task.id),
                "due_date": _iso(next_task.due_date),
            },
        )
        logger.info(
            "recurring_task_generated",
            source_task_id=str(task.id),
            task_id=str(next_task.id),
            interval_days=task.recurring_interval,
        )

        await self._derive_collaborators(next_task, next_task.assignee_ids)
        return next_task

    async def _derive_collaborators(
        self,
        task: TaskRecord,
        user_ids: Iterable[UUID],
        project: ProjectRecord | None = None,
    ) -> list[UUID]:
        """Grant collaboration to each user and notify the new collaborators."""
        if task.project_id is None:
            return []
        if project is None:
            project = await self.repository.get_project_by_id(task.project_id)

        new_collaborators: list[UUID] = []
        for user_id in user_ids:
            try:
                profile = await self.repository.get_user_profile(user_id)
                if profile is None:
                    continue
                is_new = await self.collaborators.on_assignee_added(
                    task.project_id, user_id, profile.department_id
                )
            except Exception:
                logger.exception(
                    "collaborator_sync_failed",
                    task_id=str(task.id),
                    project_id=str(task.project_id),
                    user_id=str(user_id),
                )
                continue

            if not is_new:
                continue
            new_collaborators.append(user_id)
            if project is not None:
                await self.notifications.notify_project_collaboration(project, user_id, task.id)

        return new_collaborators

    async def _notify_comment(
        self, task: TaskRecord, actor: Actor, *, edited: bool = False
    ) -> None:
        recipients = [uid for uid in task.assignee_ids if uid != actor.user_id]
        if not recipients:
            return
        author = await self.repository.get_user_profile(actor.user_id)
        await self.notifications.notify_comment(
            task,
            author.name if author else "Someone",
            recipients,
            edited=edited,
        )

    async def _release_collaborator(self, project_id: UUID | None, user_id: UUID) -> None:
        try:
            await self.collaborators.on_assignee_removed(project_id, user_id)
        except Exception:
            logger.exception(
                "collaborator_sync_failed",
                project_id=str(project_id) if project_id else None,
                user_id=str(user_id),
            )
