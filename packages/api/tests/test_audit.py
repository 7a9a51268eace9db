# This project was developed with assistance from AI tools.
"""Tests for the hash-chained audit trail."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from intake_api.services.audit import (
    _compute_hash,
    get_events_for_document,
    verify_audit_chain,
    write_audit_event,
)
from intake_db import AuditEvent

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_audit_session(prev_event=None):
    """Build a mock session that supports advisory lock + latest-event query."""
    mock_session = AsyncMock()
    # execute is called twice: advisory lock, then latest-event query
    lock_result = MagicMock()
    query_result = MagicMock()
    query_result.scalar_one_or_none.return_value = prev_event
    mock_session.execute = AsyncMock(side_effect=[lock_result, query_result])
    mock_session.add = MagicMock()
    return mock_session


def _event(event_id: int, prev_hash: str, data: dict | None = None) -> AuditEvent:
    return AuditEvent(
        id=event_id,
        timestamp=datetime(2026, 3, 1, 10, event_id, tzinfo=UTC),
        event_type="document_upload",
        event_data=data or {"document_id": event_id},
        prev_hash=prev_hash,
    )


def _chain(length: int) -> list[AuditEvent]:
    events = []
    for i in range(1, length + 1):
        if not events:
            prev_hash = "genesis"
        else:
            prev = events[-1]
            prev_hash = _compute_hash(prev.id, str(prev.timestamp), prev.event_data)
        events.append(_event(i, prev_hash))
    return events


def _scalars_session(events):
    session = AsyncMock()
    result = MagicMock()
    result.scalars.return_value.all.return_value = events
    session.execute = AsyncMock(return_value=result)
    return session


# ---------------------------------------------------------------------------
# write_audit_event
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_first_event_links_to_genesis():
    mock_session = _mock_audit_session(prev_event=None)

    await write_audit_event(
        mock_session,
        event_type="document_upload",
        user_id="student-1",
        user_role="student",
        lead_id=7,
        document_id=100,
        event_data={"filename": "pan.jpg"},
    )

    mock_session.add.assert_called_once()
    mock_session.flush.assert_awaited_once()
    added = mock_session.add.call_args[0][0]
    assert added.event_type == "document_upload"
    assert added.document_id == 100
    assert added.prev_hash == "genesis"
    mock_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_event_links_to_previous_hash():
    prev = _event(5, "genesis")
    mock_session = _mock_audit_session(prev_event=prev)

    audit = await write_audit_event(mock_session, event_type="document_verify", document_id=100)

    assert audit.prev_hash == _compute_hash(5, str(prev.timestamp), prev.event_data)
    assert len(audit.prev_hash) == 64


@pytest.mark.asyncio
async def test_advisory_lock_taken_first():
    mock_session = _mock_audit_session()

    await write_audit_event(mock_session, event_type="document_reject")

    first_stmt = mock_session.execute.await_args_list[0].args[0]
    assert "pg_advisory_xact_lock" in str(first_stmt)


def test_hash_ignores_key_order():
    assert _compute_hash(1, "t", {"a": 1, "b": 2}) == _compute_hash(1, "t", {"b": 2, "a": 1})


# ---------------------------------------------------------------------------
# verify_audit_chain
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_intact_chain():
    result = await verify_audit_chain(_scalars_session(_chain(4)))
    assert result == {"status": "OK", "events_checked": 4}


@pytest.mark.asyncio
async def test_empty_chain():
    result = await verify_audit_chain(_scalars_session([]))
    assert result == {"status": "OK", "events_checked": 0}


@pytest.mark.asyncio
async def test_tampered_payload_breaks_next_link():
    events = _chain(4)
    events[1].event_data = {"document_id": 999}

    result = await verify_audit_chain(_scalars_session(events))

    assert result == {"status": "TAMPERED", "first_break_id": 3, "events_checked": 3}


@pytest.mark.asyncio
async def test_get_events_for_document():
    events = _chain(2)
    result = await get_events_for_document(_scalars_session(events), 1)
    assert result == events
