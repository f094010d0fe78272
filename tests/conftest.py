import os
import tempfile
from unittest.mock import patch

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from core.settings import StorageBackend, settings
from memory import planner_storage
from schema.planner_models import Task


@pytest.fixture
def mock_env():
    """Fixture to ensure environment is clean for each test."""
    with patch.dict(os.environ, {}, clear=True):
        yield


@pytest.fixture
def temp_planner_json(monkeypatch):
    """Point local storage at a throwaway file and disable the shell."""
    with tempfile.TemporaryDirectory() as tmpdir:
        json_path = os.path.join(tmpdir, "lumina_data.json")
        monkeypatch.setattr(planner_storage, "JSON_PATH", json_path)
        monkeypatch.setattr(settings, "STORAGE_BACKEND", StorageBackend.JSON)
        monkeypatch.setattr(settings, "SHELL_URL", None)
        yield json_path


@pytest.fixture
def make_task():
    """Factory for tasks with sensible defaults."""

    def _make(task_id, task_date="2024-06-01", **overrides):
        fields = {
            "id": task_id,
            "title": f"Task {task_id}",
            "created_at": "2024-06-01T08:00:00+00:00",
            "date": task_date,
        }
        fields.update(overrides)
        return Task(**fields)

    return _make


@pytest.fixture
def fake_model(monkeypatch):
    """Replace the configured chat model with canned responses."""

    def _install(*responses):
        model = FakeListChatModel(responses=list(responses))
        monkeypatch.setattr("tools.agenda_tools.get_model", lambda name: model)
        return model

    return _install
