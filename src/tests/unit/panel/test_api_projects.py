"""Unit tests for project API endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from opencode_panel.api.dependencies import get_project_service
from opencode_panel.errors import (
    ConflictError,
    ExternalServiceError,
    ResourceExhaustedError,
    ValidationError,
)
from opencode_panel.main import app
from opencode_panel.services import CreatedProject, ProjectInfo, ProjectService


@pytest.fixture
def mock_service() -> MagicMock:
    service = MagicMock(spec=ProjectService)
    service.list = AsyncMock(return_value=[])
    service.create = AsyncMock()
    service.start = AsyncMock()
    service.stop = AsyncMock()
    service.delete = AsyncMock()
    service.logs = AsyncMock(return_value="")
    return service


@pytest.fixture
def client(mock_service: MagicMock) -> TestClient:
    app.dependency_overrides[get_project_service] = lambda: mock_service

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


class TestProjectAPI:
    def test_list_empty(self, client: TestClient) -> None:
        response = client.get("/api/projects")

        assert response.status_code == 200
        assert response.json() == []

    def test_list_is_camel_case(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.list.return_value = [
            ProjectInfo(
                name="demo",
                repo="r",
                created_at="2024-01-01T00:00:00.000Z",
                auto_created=True,
                running=True,
                port=4100,
                container_id="0123456789ab",
            )
        ]

        [project] = client.get("/api/projects").json()

        assert project["name"] == "demo"
        assert project["autoCreated"] is True
        assert project["containerId"] == "0123456789ab"
        assert project["createdAt"] == "2024-01-01T00:00:00.000Z"
        assert project["running"] is True

    def test_create(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.create.return_value = CreatedProject(
            name="demo", repo="https://github.com/o/demo.git", port=4100, auto_created=True
        )

        response = client.post(
            "/api/projects",
            json={"name": "demo", "apiKeys": {"OPENAI_API_KEY": "sk"}, "createdBy": "ana"},
        )

        assert response.status_code == 201
        assert response.json() == {
            "name": "demo",
            "repo": "https://github.com/o/demo.git",
            "port": 4100,
            "autoCreated": True,
        }
        kwargs = mock_service.create.await_args.kwargs
        assert kwargs["api_keys"] == {"OPENAI_API_KEY": "sk"}
        assert kwargs["created_by"] == "ana"

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ValidationError("El nombre es obligatorio"), 400),
            (ConflictError('El proyecto "demo" ya existe'), 409),
            (ResourceExhaustedError(), 503),
            (ExternalServiceError("clone failed"), 500),
        ],
    )
    def test_create_errors(
        self, client: TestClient, mock_service: MagicMock, error: Exception, status: int
    ) -> None:
        mock_service.create.side_effect = error

        response = client.post("/api/projects", json={"name": "demo"})

        assert response.status_code == status
        assert response.json()["error"] == error.message

    def test_start(self, client: TestClient, mock_service: MagicMock) -> None:
        response = client.post("/api/projects/demo/start")

        assert response.status_code == 200
        assert response.json() == {"name": "demo", "running": True}
        mock_service.start.assert_awaited_once_with("demo")

    def test_stop(self, client: TestClient) -> None:
        response = client.post("/api/projects/demo/stop")

        assert response.json() == {"name": "demo", "running": False}

    def test_delete(self, client: TestClient, mock_service: MagicMock) -> None:
        response = client.delete("/api/projects/demo")

        assert response.json() == {"name": "demo", "deleted": True}
        mock_service.delete.assert_awaited_once_with("demo")

    def test_logs(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.logs.return_value = "line1\nline2\n"

        response = client.get("/api/projects/demo/logs?lines=2")

        assert response.json() == {"logs": "line1\nline2\n"}
        mock_service.logs.assert_awaited_once_with("demo", 2)

    def test_logs_default_lines(self, client: TestClient, mock_service: MagicMock) -> None:
        client.get("/api/projects/demo/logs")

        mock_service.logs.assert_awaited_once_with("demo", 50)

    def test_logs_invalid_lines(self, client: TestClient) -> None:
        response = client.get("/api/projects/demo/logs?lines=0")

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_logs_missing_container(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.logs.side_effect = ExternalServiceError("No such container")

        response = client.get("/api/projects/nonexistent/logs")

        assert response.status_code == 500
        assert "error" in response.json()

    def test_trace_id_header(self, client: TestClient) -> None:
        response = client.get("/api/projects", headers={"X-Trace-ID": "trace-123"})

        assert response.headers["X-Trace-ID"] == "trace-123"


class TestHealthAndMetrics:
    def test_health(self, client: TestClient) -> None:
        data = client.get("/api/health").json()

        assert data["status"] == "ok"
        assert "workspacesDir" in data
        assert "githubOrg" in data

    def test_metrics(self, client: TestClient) -> None:
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "opencode_panel_projects_total" in response.text

    def test_static_index(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
