"""SqlAlchemyRepository transaction handling, checked against a recording session."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

import pytest

from taskhub.domain.errors import TaskNotFoundError
from taskhub.domain.records import NewTask
from taskhub.repositories.sql import SqlAlchemyRepository
from tests.fakes import task_input


class FakeResult:
    def __init__(self, value: Any = None, rowcount: int = 0) -> None:
        self.value = value
        self.rowcount = rowcount

    def scalar(self) -> Any:
        return self.value

    def scalar_one_or_none(self) -> Any:
        return self.value


class Savepoint:
    def __init__(self, session: RecordingSession) -> None:
        self.session = session

    async def __aenter__(self) -> Savepoint:
        self.session.calls.append("savepoint")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self.session.calls.append("rollback_savepoint" if exc_type else "release_savepoint")
        return False


class RecordingSession:
    """Stands in for ``AsyncSession``; ``execute`` answers from ``results`` in order."""

    def __init__(self, results: list[FakeResult] | None = None, fail: bool = False) -> None:
        self.results = list(results or [])
        self.fail = fail
        self.calls: list[str] = []
        self.added: list[Any] = []

    def begin_nested(self) -> Savepoint:
        return Savepoint(self)

    async def execute(self, statement: Any) -> FakeResult:
        self.calls.append("execute")
        if self.fail:
            raise RuntimeError("current transaction is aborted")
        return self.results.pop(0)

    async def flush(self) -> None:
        self.calls.append("flush")

    def add(self, obj: Any) -> None:
        self.added.append(obj)


class TestCollaboratorRelease:
    @pytest.mark.asyncio
    async def test_failure_stays_inside_savepoint(self) -> None:
        session = RecordingSession(fail=True)
        repository = SqlAlchemyRepository(session)

        with pytest.raises(RuntimeError):
            await repository.remove_project_collaborator_if_no_tasks(uuid4(), uuid4())

        assert session.calls == ["savepoint", "execute", "rollback_savepoint"]

    @pytest.mark.asyncio
    async def test_removed_when_no_assignment_remains(self) -> None:
        session = RecordingSession([FakeResult(0), FakeResult(rowcount=1)])
        repository = SqlAlchemyRepository(session)

        assert await repository.remove_project_collaborator_if_no_tasks(uuid4(), uuid4()) is True
        assert session.calls == ["savepoint", "execute", "execute", "release_savepoint"]

    @pytest.mark.asyncio
    async def test_kept_while_assignment_remains(self) -> None:
        session = RecordingSession([FakeResult(2)])
        repository = SqlAlchemyRepository(session)

        assert await repository.remove_project_collaborator_if_no_tasks(uuid4(), uuid4()) is False
        assert session.calls == ["savepoint", "execute", "release_savepoint"]


class TestCollaboratorInsert:
    @pytest.mark.asyncio
    async def test_reports_inserted_row(self) -> None:
        user_id = uuid4()
        session = RecordingSession([FakeResult(user_id)])
        repository = SqlAlchemyRepository(session)

        assert await repository.create_project_collaborator(uuid4(), user_id, uuid4()) is True
        assert session.calls == ["savepoint", "execute", "release_savepoint"]

    @pytest.mark.asyncio
    async def test_conflict_is_not_an_insert(self) -> None:
        session = RecordingSession([FakeResult(None)])
        repository = SqlAlchemyRepository(session)

        assert await repository.create_project_collaborator(uuid4(), uuid4(), uuid4()) is False


class TestCreateTask:
    @pytest.mark.asyncio
    async def test_missing_row_after_insert_raises(self) -> None:
        session = RecordingSession([FakeResult(None)])
        repository = SqlAlchemyRepository(session)
        data = task_input([uuid4()])

        with pytest.raises(TaskNotFoundError):
            await repository.create_task(
                NewTask(
                    title=data.title,
                    description=data.description,
                    priority=5,
                    due_date=data.due_date,
                    owner_id=uuid4(),
                    department_id=uuid4(),
                    assignee_ids=data.assignee_ids,
                    assigned_by_id=uuid4(),
                )
            )

        assert len(session.added) == 2
