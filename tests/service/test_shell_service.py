import json
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from service.shell_app import create_app


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "shell" / "lumina_data.json"


@pytest.fixture
def client(data_file):
    return TestClient(create_app(str(data_file)))


def test_health_reports_data_file(client, data_file):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["data_file"] == str(data_file)


def test_load_without_file_returns_null(client):
    response = client.get("/api/storage/load")
    assert response.status_code == 200
    assert response.json() == {"data": None}


def test_save_writes_snapshot_and_load_returns_it(client, data_file):
    snapshot = {"tasks": [], "userName": "User", "dailyMission": "Go", "chatHistory": {}}

    response = client.post("/api/storage/save", json=snapshot)
    assert response.json()["ok"] is True

    assert json.loads(data_file.read_text()) == snapshot
    assert client.get("/api/storage/load").json() == {"data": snapshot}


def test_legacy_list_is_returned_verbatim(client, data_file):
    legacy = [{"date": "d1", "tasks": [], "dailyMission": "A"}]
    data_file.parent.mkdir(parents=True)
    data_file.write_text(json.dumps(legacy))

    assert client.get("/api/storage/load").json() == {"data": legacy}


def test_unreadable_file_loads_as_null(client, data_file):
    data_file.parent.mkdir(parents=True)
    data_file.write_text("{broken")
    assert client.get("/api/storage/load").json() == {"data": None}


def test_clear_removes_file_and_tolerates_missing(client, data_file):
    client.post("/api/storage/save", json={"tasks": []})
    assert data_file.exists()

    assert client.delete("/api/storage/clear").json()["ok"] is True
    assert not data_file.exists()
    assert client.delete("/api/storage/clear").json()["ok"] is True


def test_minimize_is_acknowledged(client):
    assert client.post("/api/shell/minimize").json()["ok"] is True


def test_quit_without_server_is_rejected(client):
    body = client.post("/api/shell/quit").json()
    assert body["ok"] is False
    assert body["error"]


def test_quit_signals_server_exit(data_file):
    app = create_app(str(data_file))
    server = Mock(should_exit=False)
    app.state.server = server

    body = TestClient(app).post("/api/shell/quit").json()

    assert body["ok"] is True
    assert server.should_exit is True


def test_write_failure_returns_server_error(client, data_file):
    # A directory where the data file should be makes the write fail.
    data_file.mkdir(parents=True)

    response = client.post("/api/storage/save", json={"tasks": []})

    assert response.status_code == 500
    assert response.json()["detail"]
