"""HTTP tests: routing, authentication and error mapping."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from taskhub.api.v1.auth import create_access_token
from taskhub.api.v1.deps import get_repository
from taskhub.domain.errors import (
    AssigneeNotFoundError,
    DuplicateProjectNameError,
    LastAssigneeError,
    MaxAssigneesError,
    SubtaskDepthExceededError,
    TaskHubError,
    UnauthorizedError,
)
from taskhub.main import create_app, status_for_error
from tests.fakes import DUE_DATE, InMemoryRepository, add_project


@pytest.fixture
def client(repo: InMemoryRepository) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_repository] = lambda: repo
    # Not used as a context manager, so the lifespan database check never runs
    return TestClient(app)


def auth(repo: InMemoryRepository, key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(repo.user[key].id)}"}


def task_body(*assignee_ids, **extra) -> dict:
    body = {
        "title": "Prepare quarterly report",
        "description": "Collect numbers from every team",
        "due_date": DUE_DATE.isoformat(),
        "assignee_ids": [str(uid) for uid in assignee_ids],
    }
    body.update(extra)
    return body


class TestAuthentication:
    def test_health_needs_no_token(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_missing_token(self, client: TestClient) -> None:
        response = client.get(f"/api/v1/tasks/{uuid4()}")
        assert response.status_code == 401

    def test_garbage_token(self, client: TestClient) -> None:
        response = client.get(
            f"/api/v1/tasks/{uuid4()}", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_expired_token(self, client: TestClient, repo: InMemoryRepository) -> None:
        token = create_access_token(repo.user["alice"].id, expires_delta=timedelta(minutes=-5))
        response = client.get(
            f"/api/v1/tasks/{uuid4()}", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    def test_inactive_user(self, client: TestClient, repo: InMemoryRepository) -> None:
        response = client.get(f"/api/v1/tasks/{uuid4()}", headers=auth(repo, "ivan"))
        assert response.status_code == 401

    def test_request_id_echoed(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


class TestTaskEndpoints:
    def test_create_task_in_project(self, client: TestClient, repo: InMemoryRepository) -> None:
        project = add_project(repo)
        alice, bob = repo.user["alice"], repo.user["bob"]

        response = client.post(
            "/api/v1/tasks/",
            json=task_body(alice.id, bob.id, project_id=str(project.id)),
            headers=auth(repo, "morgan"),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["priority"] == 5
        assert set(body["assignee_ids"]) == {str(alice.id), str(bob.id)}
        assert len(repo.notifications) == 2

    def test_depth_limit_is_422(self, client: TestClient, repo: InMemoryRepository) -> None:
        headers = auth(repo, "morgan")
        alice_id = repo.user["alice"].id
        root = client.post("/api/v1/tasks/", json=task_body(alice_id), headers=headers).json()
        child = client.post(
            "/api/v1/tasks/", json=task_body(alice_id, parent_task_id=root["id"]), headers=headers
        ).json()

        response = client.post(
            "/api/v1/tasks/", json=task_body(alice_id, parent_task_id=child["id"]), headers=headers
        )

        assert response.status_code == 422
        assert response.json()["code"] == "TGO026"
        assert "TGO026" in response.json()["message"]

    def test_field_error_carries_field(self, client: TestClient, repo: InMemoryRepository) -> None:
        response = client.post(
            "/api/v1/tasks/",
            json=task_body(repo.user["alice"].id, priority=0),
            headers=auth(repo, "morgan"),
        )
        assert response.status_code == 422
        assert response.json()["field"] == "priority"

    def test_last_assignee_is_409(self, client: TestClient, repo: InMemoryRepository) -> None:
        headers = auth(repo, "morgan")
        alice_id = repo.user["alice"].id
        task = client.post("/api/v1/tasks/", json=task_body(alice_id), headers=headers).json()

        response = client.delete(
            f"/api/v1/tasks/{task['id']}/assignees/{alice_id}", headers=headers
        )

        assert response.status_code == 409
        assert response.json()["code"] == "LAST_ASSIGNEE"

    def test_assignee_round_trip(self, client: TestClient, repo: InMemoryRepository) -> None:
        headers = auth(repo, "morgan")
        alice_id, bob_id = repo.user["alice"].id, repo.user["bob"].id
        task = client.post("/api/v1/tasks/", json=task_body(alice_id), headers=headers).json()

        added = client.post(
            f"/api/v1/tasks/{task['id']}/assignees", json={"user_id": str(bob_id)}, headers=headers
        )
        assert added.status_code == 200
        assert str(bob_id) in added.json()["assignee_ids"]

        removed = client.delete(f"/api/v1/tasks/{task['id']}/assignees/{bob_id}", headers=headers)
        assert removed.json()["assignee_ids"] == [str(alice_id)]

    def test_status_and_title(self, client: TestClient, repo: InMemoryRepository) -> None:
        headers = auth(repo, "alice")
        task = client.post(
            "/api/v1/tasks/", json=task_body(repo.user["alice"].id), headers=headers
        ).json()

        status_response = client.patch(
            f"/api/v1/tasks/{task['id']}/status", json={"status": "IN_PROGRESS"}, headers=headers
        )
        assert status_response.json()["status"] == "IN_PROGRESS"
        assert status_response.json()["start_date"] is not None

        title_response = client.patch(
            f"/api/v1/tasks/{task['id']}/title", json={"title": "Renamed"}, headers=headers
        )
        assert title_response.json()["title"] == "Renamed"

    def test_staff_delete_is_403(self, client: TestClient, repo: InMemoryRepository) -> None:
        headers = auth(repo, "alice")
        task = client.post(
            "/api/v1/tasks/", json=task_body(repo.user["alice"].id), headers=headers
        ).json()

        response = client.delete(f"/api/v1/tasks/{task['id']}", headers=headers)

        assert response.status_code == 403
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_hr_admin_delete_is_204(self, client: TestClient, repo: InMemoryRepository) -> None:
        task = client.post(
            "/api/v1/tasks/", json=task_body(repo.user["alice"].id), headers=auth(repo, "morgan")
        ).json()

        response = client.delete(f"/api/v1/tasks/{task['id']}", headers=auth(repo, "hannah"))

        assert response.status_code == 204
        assert repo.tasks == {}

    def test_missing_task_is_404(self, client: TestClient, repo: InMemoryRepository) -> None:
        response = client.get(f"/api/v1/tasks/{uuid4()}", headers=auth(repo, "hannah"))
        assert response.status_code == 404
        assert response.json()["code"] == "TASK_NOT_FOUND"

    def test_hierarchy(self, client: TestClient, repo: InMemoryRepository) -> None:
        headers = auth(repo, "morgan")
        alice_id = repo.user["alice"].id
        root = client.post("/api/v1/tasks/", json=task_body(alice_id), headers=headers).json()
        client.post(
            "/api/v1/tasks/", json=task_body(alice_id, parent_task_id=root["id"]), headers=headers
        )

        response = client.get(f"/api/v1/tasks/{root['id']}/hierarchy", headers=headers)

        assert response.status_code == 200
        assert len(response.json()["subtasks"]) == 1


class TestCommentAndReadEndpoints:
    def test_comment_flow(self, client: TestClient, repo: InMemoryRepository) -> None:
        alice_id, bob_id = repo.user["alice"].id, repo.user["bob"].id
        task = client.post(
            "/api/v1/tasks/", json=task_body(alice_id, bob_id), headers=auth(repo, "morgan")
        ).json()

        created = client.post(
            f"/api/v1/tasks/{task['id']}/comments",
            json={"content": "Numbers are in"},
            headers=auth(repo, "alice"),
        )
        assert created.status_code == 201
        comment_id = created.json()["id"]

        denied = client.patch(
            f"/api/v1/tasks/{task['id']}/comments/{comment_id}",
            json={"content": "Edited by someone else"},
            headers=auth(repo, "bob"),
        )
        assert denied.status_code == 403

        edited = client.patch(
            f"/api/v1/tasks/{task['id']}/comments/{comment_id}",
            json={"content": "Final numbers"},
            headers=auth(repo, "alice"),
        )
        assert edited.json()["content"] == "Final numbers"

        listed = client.get(f"/api/v1/tasks/{task['id']}/comments", headers=auth(repo, "bob"))
        assert [c["content"] for c in listed.json()] == ["Final numbers"]

    def test_missing_comment_is_404(self, client: TestClient, repo: InMemoryRepository) -> None:
        headers = auth(repo, "alice")
        task = client.post(
            "/api/v1/tasks/", json=task_body(repo.user["alice"].id), headers=headers
        ).json()

        response = client.patch(
            f"/api/v1/tasks/{task['id']}/comments/{uuid4()}",
            json={"content": "x"},
            headers=headers,
        )

        assert response.status_code == 404
        assert response.json()["code"] == "COMMENT_NOT_FOUND"

    def test_task_logs(self, client: TestClient, repo: InMemoryRepository) -> None:
        headers = auth(repo, "alice")
        task = client.post(
            "/api/v1/tasks/", json=task_body(repo.user["alice"].id), headers=headers
        ).json()
        client.patch(
            f"/api/v1/tasks/{task['id']}/status", json={"status": "IN_PROGRESS"}, headers=headers
        )

        response = client.get(f"/api/v1/tasks/{task['id']}/logs", headers=headers)

        assert [log["field"] for log in response.json()] == ["Task", "Status", "startDate"]

    def test_listings(self, client: TestClient, repo: InMemoryRepository) -> None:
        project = add_project(repo)
        alice_id = repo.user["alice"].id
        task = client.post(
            "/api/v1/tasks/",
            json=task_body(alice_id, project_id=str(project.id)),
            headers=auth(repo, "morgan"),
        ).json()

        in_project = client.get(f"/api/v1/projects/{project.id}/tasks", headers=auth(repo, "alice"))
        assert [t["id"] for t in in_project.json()] == [task["id"]]

        owned = client.get(
            f"/api/v1/tasks/owner/{repo.user['morgan'].id}", headers=auth(repo, "morgan")
        )
        assert [t["id"] for t in owned.json()] == [task["id"]]

        department_id = repo.dept["engineering"].id
        staff_view = client.get(
            f"/api/v1/tasks/department/{department_id}", headers=auth(repo, "alice")
        )
        assert staff_view.status_code == 403
        manager_view = client.get(
            f"/api/v1/tasks/department/{department_id}", headers=auth(repo, "morgan")
        )
        assert [t["id"] for t in manager_view.json()] == [task["id"]]


class TestProjectEndpoints:
    def test_duplicate_name_is_409(self, client: TestClient, repo: InMemoryRepository) -> None:
        first = client.post(
            "/api/v1/projects/", json={"name": "Website Redesign"}, headers=auth(repo, "sam")
        )
        assert first.status_code == 201

        response = client.post(
            "/api/v1/projects/", json={"name": "website redesign"}, headers=auth(repo, "morgan")
        )

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_PROJECT_NAME"

    def test_collaborators_and_removal(self, client: TestClient, repo: InMemoryRepository) -> None:
        project = add_project(repo)
        headers = auth(repo, "morgan")
        alice_id, bob_id = repo.user["alice"].id, repo.user["bob"].id
        client.post(
            "/api/v1/tasks/",
            json=task_body(alice_id, bob_id, project_id=str(project.id)),
            headers=headers,
        )

        listed = client.get(f"/api/v1/projects/{project.id}/collaborators", headers=headers)
        assert {user["id"] for user in listed.json()} == {str(alice_id), str(bob_id)}

        removed = client.delete(
            f"/api/v1/projects/{project.id}/collaborators/{bob_id}", headers=headers
        )
        assert removed.status_code == 200
        assert removed.json()["assignments_removed"] == 1

        listed = client.get(f"/api/v1/projects/{project.id}/collaborators", headers=headers)
        assert [user["id"] for user in listed.json()] == [str(alice_id)]

    def test_archive_and_update(self, client: TestClient, repo: InMemoryRepository) -> None:
        project = add_project(repo)
        headers = auth(repo, "morgan")

        updated = client.patch(
            f"/api/v1/projects/{project.id}", json={"priority": 9}, headers=headers
        )
        assert updated.json()["priority"] == 9

        archived = client.post(f"/api/v1/projects/{project.id}/archive", headers=headers)
        assert archived.json()["is_archived"] is True


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (MaxAssigneesError(), 422),
        (SubtaskDepthExceededError(uuid4()), 422),
        (AssigneeNotFoundError(uuid4()), 404),
        (UnauthorizedError(), 403),
        (LastAssigneeError(uuid4(), uuid4()), 409),
        (DuplicateProjectNameError("x"), 409),
        (TaskHubError("other"), 400),
    ],
)
def test_status_for_error(error: TaskHubError, expected: int) -> None:
    assert status_for_error(error) == expected
