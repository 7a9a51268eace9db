# This project was developed with assistance from AI tools.
"""Tests for in-process change notification."""

import asyncio

import pytest

from intake_api.services.changes import LEAD_DOCUMENTS, LEAD_STATUS_HISTORY, ChangeNotifier


@pytest.mark.asyncio
async def test_publish_reaches_matching_subscribers_only():
    notifier = ChangeNotifier()
    docs = notifier.subscribe([LEAD_DOCUMENTS])
    history = notifier.subscribe([LEAD_STATUS_HISTORY])

    notifier.publish(LEAD_DOCUMENTS, "insert", 100)

    event = await asyncio.wait_for(docs.get(), timeout=1)
    assert (event.table, event.action, event.record_id) == (LEAD_DOCUMENTS, "insert", 100)
    assert history.drain() == []


@pytest.mark.asyncio
async def test_slow_subscriber_keeps_newest_events():
    notifier = ChangeNotifier(queue_size=2)
    sub = notifier.subscribe([LEAD_DOCUMENTS])

    for record_id in (1, 2, 3):
        notifier.publish(LEAD_DOCUMENTS, "update", record_id)

    assert [e.record_id for e in sub.drain()] == [2, 3]


@pytest.mark.asyncio
async def test_context_manager_closes_subscription():
    notifier = ChangeNotifier()

    async with notifier.subscribe([LEAD_DOCUMENTS]) as sub:
        assert notifier.subscriber_count == 1

    assert sub.closed is True
    assert notifier.subscriber_count == 0
    notifier.publish(LEAD_DOCUMENTS, "insert", 1)
    assert sub.drain() == []


def test_close_is_idempotent():
    notifier = ChangeNotifier()
    sub = notifier.subscribe([LEAD_DOCUMENTS])
    sub.close()
    sub.close()
    assert notifier.subscriber_count == 0
