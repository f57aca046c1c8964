"""Audit log: append-only events written alongside the change they describe."""

import json
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quire.db.models import Event


async def create_event(
    db_session: AsyncSession,
    name: str,
    actor_id: UUID | None = None,
    team_id: UUID | None = None,
    collection_id: UUID | None = None,
    document_id: UUID | None = None,
    model_id: UUID | None = None,
    data: dict[str, Any] | None = None,
) -> Event:
    """Add an event to the current transaction.

    Never commits: the event becomes visible exactly when the change it
    records does, and disappears with it on rollback.

    Args:
        db_session: Database session holding the caller's transaction
        name: Dotted event name, e.g. ``pins.create``
        actor_id: User performing the change
        team_id: Team scope of the change
        collection_id: Collection involved, if any
        document_id: Document involved, if any
        model_id: Id of the entity that was created or changed
        data: Extra JSON-serializable details

    Returns:
        The pending Event object
    """
    event = Event(
        name=name,
        actor_id=actor_id,
        team_id=team_id,
        collection_id=collection_id,
        document_id=document_id,
        model_id=model_id,
        data_json=json.dumps(data or {}, default=str),
    )
    db_session.add(event)
    return event


async def list_events(
    db_session: AsyncSession,
    model_id: UUID | None = None,
    name: str | None = None,
    limit: int | None = None,
) -> list[Event]:
    """List events oldest first, optionally filtered by entity and name."""
    query = select(Event)
    if model_id is not None:
        query = query.where(Event.model_id == model_id)
    if name is not None:
        query = query.where(Event.name == name)
    query = query.order_by(Event.created_at.asc(), Event.id.asc())
    if limit:
        query = query.limit(limit)

    result = await db_session.execute(query)
    return list(result.scalars().all())


def event_data(event: Event) -> dict[str, Any]:
    """Decode an event's JSON payload."""
    return json.loads(event.data_json or "{}")
