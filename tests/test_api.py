"""HTTP route tests."""

import pytest
from fastapi.testclient import TestClient

from image_task_api.core.config import Settings
from image_task_api.core.container import build_container, get_container
from image_task_api.main import app


@pytest.fixture
def container(tmp_path, task_repository, image_repository, price_calculator):
    settings = Settings(output_dir=str(tmp_path / "output"), resolutions=[64, 32], task_dispatch="thread")
    container = build_container(
        settings,
        task_repository=task_repository,
        image_repository=image_repository,
        price_calculator=price_calculator,
    )
    yield container
    container.dispatcher.shutdown()


@pytest.fixture
def client(container):
    app.dependency_overrides[get_container] = lambda: container
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestCreateTaskRoute:
    def test_returns_pending_task_and_processes_in_background(self, client, container, make_image):
        source = str(make_image("beach.png", size=(128, 64), fmt="PNG"))

        response = client.post("/tasks", json={"source": source})

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["price"] == 25.5
        assert "images" not in body

        container.dispatcher.shutdown()
        result = client.get(f"/tasks/{body['task_id']}").json()
        assert result["status"] == "completed"
        assert [i["resolution"] for i in result["images"]] == ["64", "32"]
        assert all(i["path"].endswith(".png") for i in result["images"])

    def test_bad_source_ends_failed(self, client, container, tmp_path):
        response = client.post("/tasks", json={"source": str(tmp_path / "missing.jpg")})
        task_id = response.json()["task_id"]

        container.dispatcher.shutdown()
        result = client.get(f"/tasks/{task_id}").json()
        assert result["status"] == "failed"
        assert "missing.jpg" in result["error"]
        assert "images" not in result

    def test_blank_source_is_400(self, client, task_repository):
        response = client.post("/tasks", json={"source": "  "})

        assert response.status_code == 400
        assert response.json() == {"detail": "Source is required"}
        assert task_repository.find_all() == []

    def test_missing_body_field_is_422(self, client):
        assert client.post("/tasks", json={}).status_code == 422


class TestGetTaskRoute:
    def test_unknown_task_is_404(self, client):
        response = client.get("/tasks/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"detail": "Task not found"}


def test_health_check(client):
    assert client.get("/healthz").json()["status"] == "ok"


def test_shutdown_closes_dispatcher_and_http_client(container, monkeypatch):
    monkeypatch.setattr("image_task_api.main.get_container", lambda: container)

    with TestClient(app):
        assert not container.image_processor._client.is_closed

    assert container.image_processor._client.is_closed
    with pytest.raises(RuntimeError):
        container.dispatcher.dispatch("1", "x")
