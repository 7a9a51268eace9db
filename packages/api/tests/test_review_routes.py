# This project was developed with assistance from AI tools.
"""Tests for reviewer, activity, reference and audit endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from factories import make_document, make_document_type, make_user
from intake_api.main import app
from intake_api.middleware.auth import get_current_user
from intake_api.routes._live import get_change_notifier
from intake_api.services.changes import ChangeNotifier
from intake_api.services.verification import (
    DocumentNotFound,
    InvalidVerificationTransition,
    RejectionReasonRequired,
)
from intake_db import AuditEvent, get_db
from intake_db.enums import DocumentCategory, UserRole, VerificationStatus

REVIEWER = make_user(UserRole.ADMIN, user_id="admin-1")


@pytest.fixture
def client():
    session = AsyncMock()

    async def fake_db():
        yield session

    app.dependency_overrides[get_db] = fake_db
    app.dependency_overrides[get_current_user] = lambda: REVIEWER
    app.dependency_overrides[get_change_notifier] = lambda: ChangeNotifier()
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Verification queue
# ---------------------------------------------------------------------------


@patch("intake_api.routes.verification.verification_service.list_pending", new_callable=AsyncMock)
def test_queue_lists_pending(mock_list, client):
    mock_list.return_value = []

    response = client.get("/api/verification-queue?limit=50")

    assert response.status_code == 200
    assert response.json() == {"data": [], "count": 0}
    assert mock_list.await_args.kwargs["limit"] == 50


@patch("intake_api.routes.verification.verification_service.verify_document", new_callable=AsyncMock)
def test_verify_without_body(mock_verify, client):
    mock_verify.return_value = make_document(
        verification_status=VerificationStatus.VERIFIED, verified_by="admin-1"
    )

    response = client.post("/api/documents/100/verify")

    assert response.status_code == 200
    assert response.json()["verification_status"] == "verified"
    assert mock_verify.await_args.kwargs["notes"] is None


@patch("intake_api.routes.verification.verification_service.verify_document", new_callable=AsyncMock)
def test_verify_conflict(mock_verify, client):
    mock_verify.side_effect = InvalidVerificationTransition("Document 100 is rejected")
    assert client.post("/api/documents/100/verify").status_code == 409


@patch("intake_api.routes.verification.verification_service.reject_document", new_callable=AsyncMock)
def test_reject_passes_notes(mock_reject, client):
    mock_reject.return_value = make_document(
        verification_status=VerificationStatus.REJECTED, admin_notes="blurry photo"
    )

    response = client.post("/api/documents/100/reject", json={"notes": "  blurry photo "})

    assert response.status_code == 200
    assert response.json()["admin_notes"] == "blurry photo"
    assert mock_reject.await_args.kwargs["notes"] == "  blurry photo "


@patch("intake_api.routes.verification.verification_service.reject_document", new_callable=AsyncMock)
def test_reject_without_reason(mock_reject, client):
    mock_reject.side_effect = RejectionReasonRequired("A rejection reason is required")

    response = client.post("/api/documents/100/reject", json={"notes": "   "})

    assert response.status_code == 422
    assert response.json()["detail"] == "A rejection reason is required"


@patch("intake_api.routes.verification.verification_service.reject_document", new_callable=AsyncMock)
def test_reject_missing_document(mock_reject, client):
    mock_reject.side_effect = DocumentNotFound(404)
    assert client.post("/api/documents/404/reject", json={"notes": "x"}).status_code == 404


@patch("intake_api.routes.verification.verification_service.get_download_url", new_callable=AsyncMock)
def test_download_url(mock_url, client):
    mock_url.return_value = "https://minio.test/signed"

    response = client.get("/api/documents/100/download-url")

    assert response.status_code == 200
    assert response.json() == {"url": "https://minio.test/signed", "expires_in": 3600}


def test_queue_websocket_sends_snapshot_and_unsubscribes():
    notifier = ChangeNotifier()
    app.state.change_notifier = notifier
    snapshot = {"type": "verification_queue", "data": [], "count": 0}

    with patch(
        "intake_api.routes.verification._queue_snapshot",
        new=AsyncMock(return_value=snapshot),
    ):
        with TestClient(app).websocket_connect("/api/verification-queue/ws") as ws:
            assert ws.receive_json() == snapshot

    assert notifier.subscriber_count == 0


# ---------------------------------------------------------------------------
# Activity, document types, audit
# ---------------------------------------------------------------------------


@patch("intake_api.routes.activity.get_activity_feed", new_callable=AsyncMock)
def test_activity_default_limit(mock_feed, client):
    mock_feed.return_value = []

    response = client.get("/api/activity")

    assert response.status_code == 200
    assert response.json() == {"data": [], "count": 0}
    assert mock_feed.await_args.kwargs["limit"] == 30


def test_activity_limit_bounds(client):
    assert client.get("/api/activity?limit=0").status_code == 422
    assert client.get("/api/activity?limit=101").status_code == 422


@patch("intake_api.routes.document_types.list_document_types", new_callable=AsyncMock)
def test_document_types_by_category(mock_list, client):
    mock_list.return_value = [make_document_type()]

    response = client.get("/api/document-types?category=student")

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["data"][0]["name"] == "PAN Card"
    assert mock_list.await_args.args[1] == DocumentCategory.STUDENT


def test_document_types_unknown_category(client):
    assert client.get("/api/document-types?category=pets").status_code == 422


@patch("intake_api.routes.audit.get_events_for_document", new_callable=AsyncMock)
def test_document_audit_history(mock_events, client):
    mock_events.return_value = [
        AuditEvent(
            id=1,
            timestamp=make_document().uploaded_at,
            event_type="document_upload",
            user_id="student-1",
            document_id=100,
            event_data={"filename": "pan.jpg"},
            prev_hash="genesis",
        )
    ]

    response = client.get("/api/documents/100/audit")

    assert response.status_code == 200
    assert response.json()["data"][0]["event_type"] == "document_upload"


@patch("intake_api.routes.audit.verify_audit_chain", new_callable=AsyncMock)
def test_audit_verify(mock_verify, client):
    mock_verify.return_value = {"status": "OK", "events_checked": 3}
    assert client.get("/api/audit/verify").json()["status"] == "OK"
