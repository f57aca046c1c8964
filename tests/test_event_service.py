"""Tests for the audit event log."""

from uuid import uuid4

import pytest

from quire.db.services.event_service import create_event, event_data, list_events


@pytest.mark.asyncio
async def test_event_is_part_of_callers_transaction(db_session):
    model_id = uuid4()
    await create_event(db_session, "pins.create", model_id=model_id, data={"index": "P"})
    await db_session.rollback()

    assert await list_events(db_session, model_id=model_id) == []


@pytest.mark.asyncio
async def test_list_filters_and_decodes(db_session):
    model_id = uuid4()
    await create_event(db_session, "stars.create", model_id=model_id)
    await create_event(db_session, "stars.update", model_id=model_id, data={"index": "a"})
    await create_event(db_session, "stars.update", model_id=uuid4(), data={"index": "b"})
    await db_session.commit()

    events = await list_events(db_session, model_id=model_id, name="stars.update")

    assert len(events) == 1
    assert event_data(events[0]) == {"index": "a"}
    assert len(await list_events(db_session, limit=2)) == 2
