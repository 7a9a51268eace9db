# This project was developed with assistance from AI tools.
"""Tests for the upload lifecycle endpoints."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from factories import make_user
from intake_api.main import app
from intake_api.middleware.auth import get_current_user
from intake_api.routes._live import get_change_notifier
from intake_api.schemas.upload import UploadEntry, UploadState
from intake_api.services.changes import ChangeNotifier
from intake_api.services.upload import LeadNotFound, UploadNotFound
from intake_api.services.upload_state import InvalidUploadTransition
from intake_db import get_db

NOW = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


def _entry(**overrides) -> UploadEntry:
    fields = {
        "correlation_id": "c-1",
        "lead_id": 7,
        "document_type_id": 1,
        "filename": "pan.jpg",
        "size": 4,
        "content_type": "image/jpeg",
        "state": UploadState.COMPLETED,
        "document_id": 100,
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return UploadEntry(**fields)


@pytest.fixture
def orchestrator():
    mock = MagicMock()
    mock.start = AsyncMock(return_value=_entry())
    mock.override = AsyncMock(return_value=_entry())
    mock.retry = AsyncMock(return_value=_entry())
    with patch("intake_api.routes.uploads.get_upload_orchestrator", return_value=mock):
        yield mock


@pytest.fixture
def client(orchestrator):
    session = AsyncMock()
    notifier = ChangeNotifier()

    async def fake_db():
        yield session

    app.dependency_overrides[get_db] = fake_db
    app.dependency_overrides[get_current_user] = lambda: make_user()
    app.dependency_overrides[get_change_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_start_upload(client, orchestrator):
    response = client.post(
        "/api/leads/7/uploads",
        files={"file": ("pan.jpg", b"\xff\xd8\xff\xe0", "image/jpeg")},
        data={"document_type_id": "1"},
    )

    assert response.status_code == 201
    assert response.json()["state"] == "completed"
    kwargs = orchestrator.start.await_args.kwargs
    assert kwargs["lead_id"] == 7
    assert kwargs["document_type_id"] == 1
    assert kwargs["filename"] == "pan.jpg"
    assert kwargs["file_data"] == b"\xff\xd8\xff\xe0"


def test_start_upload_unknown_lead(client, orchestrator):
    orchestrator.start.side_effect = LeadNotFound(7)

    response = client.post(
        "/api/leads/7/uploads",
        files={"file": ("pan.jpg", b"data", "image/jpeg")},
        data={"document_type_id": "1"},
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Lead not found"
    assert response.json()["title"] == "Not Found"


def test_start_upload_requires_document_type(client):
    response = client.post(
        "/api/leads/7/uploads", files={"file": ("pan.jpg", b"data", "image/jpeg")}
    )
    assert response.status_code == 422
    assert response.json()["errors"]


def test_list_and_get(client, orchestrator):
    orchestrator.list_entries.return_value = [_entry()]
    orchestrator.get.return_value = _entry()

    assert len(client.get("/api/leads/7/uploads").json()) == 1
    assert client.get("/api/uploads/c-1").json()["correlation_id"] == "c-1"
    orchestrator.list_entries.assert_called_once_with(7)


def test_get_unknown_upload(client, orchestrator):
    orchestrator.get.side_effect = UploadNotFound("nope")
    assert client.get("/api/uploads/nope").status_code == 404


def test_override_conflict(client, orchestrator):
    orchestrator.override.side_effect = InvalidUploadTransition(
        "Cannot override an upload that is completed"
    )

    response = client.post("/api/uploads/c-1/override")

    assert response.status_code == 409
    assert "completed" in response.json()["detail"]


def test_retry(client, orchestrator):
    assert client.post("/api/uploads/c-1/retry").status_code == 200
    orchestrator.retry.assert_awaited_once()


def test_remove(client, orchestrator):
    assert client.delete("/api/uploads/c-1").status_code == 204
    orchestrator.remove.assert_called_once_with("c-1")

    orchestrator.remove.side_effect = UploadNotFound("c-1")
    assert client.delete("/api/uploads/c-1").status_code == 404
