# This project was developed with assistance from AI tools.
"""Tests for the reviewer verification service."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from factories import make_document, make_document_type, make_lead, make_status_row, make_user
from intake_api.services.activity import build_activity_feed
from intake_api.services.actors import Actor
from intake_api.services.changes import LEAD_DOCUMENTS, ChangeNotifier
from intake_api.services.verification import (
    DocumentNotFound,
    InvalidVerificationTransition,
    RejectionReasonRequired,
    get_download_url,
    list_pending,
    reject_document,
    verify_document,
)
from intake_db.enums import ActivityType, UserRole, VerificationStatus

ADMIN = make_user(UserRole.ADMIN)


def _returning(doc):
    result = MagicMock()
    result.scalar_one_or_none.return_value = doc
    return result


def _make_session(*results):
    session = AsyncMock()
    session.execute = AsyncMock(side_effect=list(results))
    return session


def _reviewed(status: VerificationStatus, **overrides):
    fields = {
        "verification_status": status,
        "verified_by": ADMIN.user_id,
        "verified_at": datetime(2026, 3, 1, 11, 0, tzinfo=UTC),
    }
    fields.update(overrides)
    return make_document(**fields)


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_list_pending_joins_lead_and_type():
    rows = MagicMock()
    rows.all.return_value = [
        (make_document(), make_lead(), make_document_type()),
        (make_document(id=101, lead_id=99, document_type_id=42), None, None),
    ]
    session = _make_session(rows)

    pending = await list_pending(session)

    assert pending[0].case_id == "EDU-2026-0007"
    assert pending[0].document_type_name == "PAN Card"
    assert pending[0].document_category == "student"
    orphan = pending[1]
    assert (orphan.case_id, orphan.student_name, orphan.partner_name) == (
        "Unknown",
        "Unknown",
        "Unknown",
    )
    assert orphan.document_type_name == "Unknown"


# ---------------------------------------------------------------------------
# Verify
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@patch("intake_api.services.verification.write_audit_event", new_callable=AsyncMock)
async def test_verify_pending_document(mock_audit):
    verified = _reviewed(VerificationStatus.VERIFIED)
    session = _make_session(_returning(verified))
    notifier = ChangeNotifier()

    async with notifier.subscribe([LEAD_DOCUMENTS]) as sub:
        doc = await verify_document(session, notifier, ADMIN, 100)
        events = sub.drain()

    assert doc is verified
    event = mock_audit.await_args.kwargs
    assert event["event_type"] == "document_verify"
    assert event["user_id"] == "admin-1"
    assert event["event_data"] == {"old_status": "pending", "new_status": "verified", "notes": None}
    session.commit.assert_awaited_once()
    assert [(e.action, e.record_id) for e in events] == [("update", 100)]


@pytest.mark.asyncio
@patch("intake_api.services.verification.write_audit_event", new_callable=AsyncMock)
async def test_verify_twice_is_a_no_op(mock_audit):
    already = _reviewed(VerificationStatus.VERIFIED)
    session = _make_session(_returning(None), _returning(already))

    doc = await verify_document(session, ChangeNotifier(), ADMIN, 100)

    assert doc.verification_status == VerificationStatus.VERIFIED
    mock_audit.assert_not_awaited()
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
@patch("intake_api.services.verification.write_audit_event", new_callable=AsyncMock)
async def test_verify_rejected_document_refused(mock_audit):
    rejected = _reviewed(VerificationStatus.REJECTED, admin_notes="blurry photo")
    session = _make_session(_returning(None), _returning(rejected))

    with pytest.raises(InvalidVerificationTransition):
        await verify_document(session, ChangeNotifier(), ADMIN, 100)
    mock_audit.assert_not_awaited()


@pytest.mark.asyncio
async def test_verify_missing_document():
    session = _make_session(_returning(None), _returning(None))
    with pytest.raises(DocumentNotFound):
        await verify_document(session, ChangeNotifier(), ADMIN, 404)


# ---------------------------------------------------------------------------
# Reject
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("notes", [None, "", "   "])
async def test_reject_requires_reason(notes):
    session = _make_session()

    with pytest.raises(RejectionReasonRequired):
        await reject_document(session, ChangeNotifier(), ADMIN, 100, notes)
    session.execute.assert_not_awaited()


@pytest.mark.asyncio
@patch("intake_api.services.verification.write_audit_event", new_callable=AsyncMock)
async def test_reject_stores_trimmed_reason(mock_audit):
    rejected = _reviewed(VerificationStatus.REJECTED, admin_notes="blurry photo")
    session = _make_session(_returning(rejected))

    doc = await reject_document(session, ChangeNotifier(), ADMIN, 100, "  blurry photo  ")

    assert doc.admin_notes == "blurry photo"
    event = mock_audit.await_args.kwargs
    assert event["event_type"] == "document_reject"
    assert event["event_data"] == {
        "old_status": "pending",
        "new_status": "rejected",
        "notes": "blurry photo",
    }


@pytest.mark.asyncio
@patch("intake_api.services.verification.write_audit_event", new_callable=AsyncMock)
async def test_rejecting_again_replaces_the_reason(mock_audit):
    first = _reviewed(VerificationStatus.REJECTED, admin_notes="blurry photo")
    second = _reviewed(VerificationStatus.REJECTED, admin_notes="wrong applicant")
    session = _make_session(_returning(None), _returning(first), _returning(second))

    doc = await reject_document(session, ChangeNotifier(), ADMIN, 100, "wrong applicant")

    assert doc.admin_notes == "wrong applicant"
    assert mock_audit.await_args.kwargs["event_data"]["old_status"] == "rejected"
    assert session.execute.await_count == 3


@pytest.mark.asyncio
@patch("intake_api.services.verification.write_audit_event", new_callable=AsyncMock)
async def test_reject_verified_document_refused(mock_audit):
    verified = _reviewed(VerificationStatus.VERIFIED)
    session = _make_session(_returning(None), _returning(verified))

    with pytest.raises(InvalidVerificationTransition):
        await reject_document(session, ChangeNotifier(), ADMIN, 100, "too late")
    mock_audit.assert_not_awaited()
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
@patch("intake_api.services.verification.write_audit_event", new_callable=AsyncMock)
async def test_rejection_shows_at_the_head_of_the_feed(mock_audit):
    uploaded = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)
    rejected = _reviewed(
        VerificationStatus.REJECTED,
        uploaded_at=uploaded,
        verified_at=uploaded + timedelta(hours=1),
        admin_notes="blurry photo",
    )
    session = _make_session(_returning(rejected))

    doc = await reject_document(session, ChangeNotifier(), ADMIN, 100, "blurry photo")
    feed = build_activity_feed(
        [make_status_row()],
        [doc],
        {7: make_lead()},
        {"admin-1": Actor(label="Priya Admin", role=UserRole.ADMIN)},
    )

    assert feed[0].type == ActivityType.DOCUMENT_REJECT
    assert feed[0].notes == "blurry photo"
    assert feed[0].actor == "Priya Admin"


# ---------------------------------------------------------------------------
# Download links
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_download_url_for_stored_file():
    storage = MagicMock()
    storage.get_download_url = AsyncMock(return_value="https://minio.test/signed")
    session = _make_session(_returning(make_document()))

    with patch("intake_api.services.verification.get_storage_service", return_value=storage):
        url = await get_download_url(session, 100, expires_in=600)

    assert url == "https://minio.test/signed"
    storage.get_download_url.assert_awaited_once_with(
        "7/1/1767225600000-ab12cd34.jpg", expires_in=600
    )


@pytest.mark.asyncio
async def test_download_url_missing_document():
    session = _make_session(_returning(None))
    with pytest.raises(DocumentNotFound):
        await get_download_url(session, 404, 600)
