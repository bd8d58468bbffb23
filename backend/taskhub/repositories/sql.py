"""SQLAlchemy implementation of the tracker repository."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.domain.errors import CommentNotFoundError, TaskNotFoundError
from taskhub.domain.records import (
    AssigneeValidation,
    CommentRecord,
    DepartmentRecord,
    NewProject,
    NewTask,
    NotificationCreate,
    ProjectRecord,
    TaskLogEntry,
    TaskLogRecord,
    TaskRecord,
    UserProfileRecord,
)
from taskhub.models.activity import Notification, TaskLog
from taskhub.models.organization import Department
from taskhub.models.project import (
    Project,
    ProjectCollaborator,
    Task,
    TaskAssignment,
    TaskComment,
)
from taskhub.models.user import UserProfile

logger = structlog.get_logger()


class SqlAlchemyRepository:
    """Tracker repository over an ``AsyncSession``.

    Methods flush but never commit; the request-scoped session commits once.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Users and departments
    # =========================================================================

    async def get_user_profile(self, user_id: UUID) -> UserProfileRecord | None:
        user = await self.db.get(UserProfile, user_id)
        return UserProfileRecord.model_validate(user) if user else None

    async def validate_assignees(self, user_ids: list[UUID]) -> AssigneeValidation:
        result = await self.db.execute(
            select(UserProfile.id, UserProfile.is_active).where(UserProfile.id.in_(user_ids))
        )
        found = {row.id: row.is_active for row in result.all()}
        missing = [uid for uid in user_ids if uid not in found]
        inactive = [uid for uid in user_ids if uid in found and not found[uid]]
        return AssigneeValidation(
            all_exist=not missing,
            all_active=not inactive,
            missing_ids=missing,
            inactive_ids=inactive,
        )

    async def get_department(self, department_id: UUID) -> DepartmentRecord | None:
        department = await self.db.get(Department, department_id)
        return DepartmentRecord.model_validate(department) if department else None

    async def get_department_hierarchy(self, department_id: UUID) -> set[UUID]:
        """Walk down the department tree with a recursive CTE."""
        tree = (
            select(Department.id)
            .where(Department.id == department_id)
            .cte(name="department_tree", recursive=True)
        )
        tree = tree.union_all(
            select(Department.id).where(Department.parent_id == tree.c.id)
        )
        result = await self.db.execute(select(tree.c.id))
        return set(result.scalars().all())

    # =========================================================================
    # Tasks
    # =========================================================================

    def _task_query(self):
        return select(Task).options(selectinload(Task.assignments))

    async def get_task_by_id_full(
        self, task_id: UUID, *, for_update: bool = False
    ) -> TaskRecord | None:
        query = self._task_query().where(Task.id == task_id)
        if for_update:
            # Serialises concurrent mutations of the same task
            query = query.with_for_update(of=Task)
        result = await self.db.execute(query.execution_options(populate_existing=True))
        task = result.scalar_one_or_none()
        return TaskRecord.model_validate(task) if task else None

    async def create_task(self, data: NewTask) -> TaskRecord:
        task = Task(
            title=data.title,
            description=data.description,
            priority=data.priority,
            status=data.status.value,
            due_date=data.due_date,
            start_date=data.start_date,
            owner_id=data.owner_id,
            department_id=data.department_id,
            project_id=data.project_id,
            parent_task_id=data.parent_task_id,
            recurring_interval=data.recurring_interval,
            is_archived=False,
            tags=list(data.tags),
        )
        self.db.add(task)
        await self.db.flush()

        for user_id in data.assignee_ids:
            self.db.add(
                TaskAssignment(
                    task_id=task.id,
                    user_id=user_id,
                    assigned_by_id=data.assigned_by_id,
                )
            )
        await self.db.flush()

        logger.info(
            "task_row_created",
            task_id=str(task.id),
            assignee_count=len(data.assignee_ids),
        )

        created = await self.get_task_by_id_full(task.id)
        if created is None:
            raise TaskNotFoundError(task.id, message="Task not found after creation")
        return created

    async def update_task(self, task_id: UUID, **fields: Any) -> None:
        values = {
            key: value.value if hasattr(value, "value") else value
            for key, value in fields.items()
        }
        await self.db.execute(update(Task).where(Task.id == task_id).values(**values))
        await self.db.flush()

    async def delete_task(self, task_id: UUID) -> None:
        # Assignments cascade with the task row
        await self.db.execute(delete(Task).where(Task.id == task_id))
        await self.db.flush()

    async def get_subtasks(self, parent_task_id: UUID) -> list[TaskRecord]:
        result = await self.db.execute(
            self._task_query()
            .where(Task.parent_task_id == parent_task_id)
            .order_by(Task.created_at)
        )
        return [TaskRecord.model_validate(task) for task in result.scalars().all()]

    async def add_task_assignment(
        self, task_id: UUID, user_id: UUID, assigned_by_id: UUID
    ) -> None:
        await self.db.execute(
            pg_insert(TaskAssignment)
            .values(task_id=task_id, user_id=user_id, assigned_by_id=assigned_by_id)
            .on_conflict_do_nothing(constraint="uq_task_assignment")
        )
        await self.db.flush()

    async def remove_task_assignment(self, task_id: UUID, user_id: UUID) -> None:
        await self.db.execute(
            delete(TaskAssignment).where(
                and_(
                    TaskAssignment.task_id == task_id,
                    TaskAssignment.user_id == user_id,
                )
            )
        )
        await self.db.flush()

    async def log_task_action(self, entry: TaskLogEntry) -> None:
        self.db.add(
            TaskLog(
                task_id=entry.task_id,
                user_id=entry.user_id,
                action=entry.action.value,
                field=entry.field,
                changes=entry.changes,
                extra_data=entry.metadata,
            )
        )
        await self.db.flush()

    async def get_task_logs(self, task_id: UUID) -> list[TaskLogRecord]:
        result = await self.db.execute(
            select(TaskLog).where(TaskLog.task_id == task_id).order_by(TaskLog.created_at)
        )
        return [
            TaskLogRecord(
                id=log.id,
                task_id=log.task_id,
                user_id=log.user_id,
                action=log.action,
                field=log.field,
                changes=log.changes,
                metadata=log.extra_data,
                created_at=log.created_at,
            )
            for log in result.scalars().all()
        ]

    async def _list_tasks(self, *criteria: Any, include_archived: bool) -> list[TaskRecord]:
        query = self._task_query().where(*criteria)
        if not include_archived:
            query = query.where(Task.is_archived.is_(False))
        result = await self.db.execute(query.order_by(Task.due_date, Task.id))
        return [TaskRecord.model_validate(task) for task in result.scalars().all()]

    async def get_owner_tasks(
        self, owner_id: UUID, include_archived: bool = False
    ) -> list[TaskRecord]:
        return await self._list_tasks(Task.owner_id == owner_id, include_archived=include_archived)

    async def get_department_tasks(
        self, department_id: UUID, include_archived: bool = False
    ) -> list[TaskRecord]:
        return await self._list_tasks(
            Task.department_id == department_id, include_archived=include_archived
        )

    # =========================================================================
    # Comments
    # =========================================================================

    async def create_comment(
        self, task_id: UUID, author_id: UUID, content: str
    ) -> CommentRecord:
        comment = TaskComment(task_id=task_id, author_id=author_id, content=content)
        self.db.add(comment)
        await self.db.flush()
        await self.db.refresh(comment)
        return CommentRecord.model_validate(comment)

    async def get_comment(self, comment_id: UUID) -> CommentRecord | None:
        comment = await self.db.get(TaskComment, comment_id, populate_existing=True)
        return CommentRecord.model_validate(comment) if comment else None

    async def update_comment(self, comment_id: UUID, content: str) -> CommentRecord:
        await self.db.execute(
            update(TaskComment).where(TaskComment.id == comment_id).values(content=content)
        )
        await self.db.flush()
        updated = await self.get_comment(comment_id)
        if updated is None:
            raise CommentNotFoundError(comment_id)
        return updated

    async def get_task_comments(self, task_id: UUID) -> list[CommentRecord]:
        result = await self.db.execute(
            select(TaskComment)
            .where(TaskComment.task_id == task_id)
            .order_by(TaskComment.created_at)
        )
        return [CommentRecord.model_validate(comment) for comment in result.scalars().all()]

    # =========================================================================
    # Projects
    # =========================================================================

    async def get_project_by_id(self, project_id: UUID) -> ProjectRecord | None:
        project = await self.db.get(Project, project_id, populate_existing=True)
        return ProjectRecord.model_validate(project) if project else None

    async def validate_project_exists(self, project_id: UUID) -> bool:
        result = await self.db.execute(
            select(func.count(Project.id)).where(Project.id == project_id)
        )
        return (result.scalar() or 0) > 0

    async def create_project(self, data: NewProject) -> ProjectRecord:
        project = Project(
            name=data.name,
            description=data.description,
            priority=data.priority,
            status=data.status.value,
            department_id=data.department_id,
            creator_id=data.creator_id,
            is_archived=False,
        )
        self.db.add(project)
        await self.db.flush()
        await self.db.refresh(project)
        return ProjectRecord.model_validate(project)

    async def update_project(self, project_id: UUID, **fields: Any) -> None:
        values = {
            key: value.value if hasattr(value, "value") else value
            for key, value in fields.items()
        }
        await self.db.execute(
            update(Project).where(Project.id == project_id).values(**values)
        )
        await self.db.flush()

    async def is_project_name_taken(
        self, name: str, exclude_project_id: UUID | None = None
    ) -> bool:
        query = select(func.count(Project.id)).where(
            func.lower(Project.name) == name.strip().lower(),
            Project.is_archived.is_(False),
        )
        if exclude_project_id is not None:
            query = query.where(Project.id != exclude_project_id)
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0

    async def get_project_tasks(
        self, project_id: UUID, include_archived: bool = False
    ) -> list[TaskRecord]:
        return await self._list_tasks(
            Task.project_id == project_id, include_archived=include_archived
        )

    async def get_project_tasks_for_assignee(
        self, project_id: UUID, user_id: UUID, *, for_update: bool = False
    ) -> list[TaskRecord]:
        query = (
            self._task_query()
            .join(TaskAssignment, TaskAssignment.task_id == Task.id)
            .where(
                Task.project_id == project_id,
                TaskAssignment.user_id == user_id,
            )
            .order_by(Task.id)
        )
        if for_update:
            query = query.with_for_update(of=Task)
        result = await self.db.execute(query.execution_options(populate_existing=True))
        return [TaskRecord.model_validate(task) for task in result.scalars().unique().all()]

    # =========================================================================
    # Collaborators
    # =========================================================================

    async def is_user_project_collaborator(self, project_id: UUID, user_id: UUID) -> bool:
        collaborator = await self.db.get(ProjectCollaborator, (project_id, user_id))
        return collaborator is not None

    async def create_project_collaborator(
        self, project_id: UUID, user_id: UUID, department_id: UUID
    ) -> bool:
        async with self.db.begin_nested():
            result = await self.db.execute(
                pg_insert(ProjectCollaborator)
                .values(project_id=project_id, user_id=user_id, department_id=department_id)
                .on_conflict_do_nothing(index_elements=["project_id", "user_id"])
                .returning(ProjectCollaborator.user_id)
            )
            # No row comes back when a concurrent insert won the conflict
            return result.scalar_one_or_none() is not None

    async def remove_project_collaborator_if_no_tasks(
        self, project_id: UUID, user_id: UUID
    ) -> bool:
        async with self.db.begin_nested():
            remaining = await self.db.execute(
                select(func.count(TaskAssignment.id))
                .join(Task, Task.id == TaskAssignment.task_id)
                .where(
                    Task.project_id == project_id,
                    TaskAssignment.user_id == user_id,
                )
            )
            if (remaining.scalar() or 0) > 0:
                return False

            result = await self.db.execute(
                delete(ProjectCollaborator).where(
                    ProjectCollaborator.project_id == project_id,
                    ProjectCollaborator.user_id == user_id,
                )
            )
            return result.rowcount > 0

    async def list_project_collaborators(self, project_id: UUID) -> list[UserProfileRecord]:
        assigned = (
            select(TaskAssignment.user_id)
            .join(Task, Task.id == TaskAssignment.task_id)
            .where(Task.project_id == project_id)
        )
        result = await self.db.execute(
            select(UserProfile)
            .where(UserProfile.id.in_(assigned))
            .order_by(UserProfile.name)
        )
        return [UserProfileRecord.model_validate(user) for user in result.scalars().all()]

    # =========================================================================
    # Notifications
    # =========================================================================

    async def create_notification(self, data: NotificationCreate) -> None:
        async with self.db.begin_nested():
            self.db.add(
                Notification(
                    user_id=data.user_id,
                    notification_type=data.type.value,
                    title=data.title,
                    message=data.message,
                    task_id=data.task_id,
                    is_read=False,
                )
            )
