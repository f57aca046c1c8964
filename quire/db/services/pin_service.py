"""Pin service: documents pinned to a team home or to a collection, in user order."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quire.config import get_settings
from quire.db.models import Collection, Document, Pin, User
from quire.db.scopes import pin_scope
from quire.db.services.event_service import create_event
from quire.db.session import unit_of_work
from quire.lib.exceptions import NotFoundError, ValidationError
from quire.lib.fractional_index import validate_index
from quire.lib.hooks import hooks, AFTER_PIN_CREATE, AFTER_PIN_DELETE, AFTER_PIN_UPDATE
from quire.lib.observability import span

logger = logging.getLogger(__name__)


async def _require_document(db_session: AsyncSession, document_id: UUID, team_id: UUID) -> Document:
    result = await db_session.execute(
        select(Document).where(Document.id == document_id, Document.team_id == team_id)
    )
    document = result.scalar_one_or_none()
    if document is None:
        raise NotFoundError("Document not found")
    return document


async def _require_collection(db_session: AsyncSession, collection_id: UUID, team_id: UUID) -> Collection:
    result = await db_session.execute(
        select(Collection).where(Collection.id == collection_id, Collection.team_id == team_id)
    )
    collection = result.scalar_one_or_none()
    if collection is None:
        raise NotFoundError("Collection not found")
    return collection


async def create_pin(
    db_session: AsyncSession,
    actor: User,
    document_id: UUID,
    collection_id: UUID | None = None,
    index: str | None = None,
    max_pins: int | None = None,
    *,
    commit: bool = True,
) -> Pin:
    """Pin a document at the end of its scope.

    The cap check, edge lookup, insert and audit event run in one
    transaction. When scope locking is enabled the team row is locked first,
    so concurrent pins in the same team cannot both pass the cap check or
    read the same last index.

    Args:
        db_session: Database session
        actor: User creating the pin
        document_id: Document to pin
        collection_id: Collection to pin into, or None for the team home
        index: Explicit position; moved just past any pin already holding it
        max_pins: Scope cap, defaults to ``settings.ordering.max_pins``
        commit: Commit here (True) or leave the caller's transaction open

    Returns:
        The created Pin with its index populated

    Raises:
        ValidationError: The scope is full or ``index`` is malformed
        NotFoundError: The document or collection is not in the actor's team
        PersistenceError: The transaction failed and was rolled back
    """
    ordering = get_settings().ordering
    if max_pins is None:
        max_pins = ordering.max_pins
    if index is not None:
        validate_index(index)

    scope = pin_scope(actor.team_id, collection_id)

    with span("pins.create", team_id=str(actor.team_id), collection_id=str(collection_id)):
        async with unit_of_work(db_session, commit):
            if ordering.lock_scope:
                await scope.lock(db_session)

            await _require_document(db_session, document_id, actor.team_id)
            if collection_id is not None:
                await _require_collection(db_session, collection_id, actor.team_id)

            if await scope.count(db_session) >= max_pins:
                raise ValidationError(f"You cannot pin more than {max_pins} documents")

            if index is None:
                index = await scope.index_after_last(db_session)
            else:
                index = await scope.resolve_collision(db_session, index)

            pin = Pin(
                team_id=actor.team_id,
                collection_id=collection_id,
                document_id=document_id,
                created_by_id=actor.id,
                index=index,
            )
            db_session.add(pin)
            await db_session.flush()

            await create_event(
                db_session,
                "pins.create",
                actor_id=actor.id,
                team_id=actor.team_id,
                collection_id=collection_id,
                document_id=document_id,
                model_id=pin.id,
            )

    logger.debug("Pinned document %s at %r", document_id, pin.index)
    if commit:
        await hooks.do_action(AFTER_PIN_CREATE, pin)
    return pin


async def get_pin(db_session: AsyncSession, pin_id: UUID) -> Pin | None:
    result = await db_session.execute(select(Pin).where(Pin.id == pin_id))
    return result.scalar_one_or_none()


async def get_pin_for_document(
    db_session: AsyncSession,
    team_id: UUID,
    document_id: UUID,
    collection_id: UUID | None = None,
) -> Pin | None:
    """Find the pin of a document in one scope (the home when collection_id is None)."""
    scope = pin_scope(team_id, collection_id)
    result = await db_session.execute(
        scope.ordered().where(Pin.document_id == document_id).limit(1)
    )
    return result.scalar_one_or_none()


async def list_pins(
    db_session: AsyncSession,
    team_id: UUID,
    collection_id: UUID | None = None,
) -> list[Pin]:
    """List a scope's pins in display order.

    Args:
        db_session: Database session
        team_id: Team owning the pins
        collection_id: Collection to list, or None for the team home

    Returns:
        Pins ordered by index (byte order), most recently updated first on ties
    """
    return await pin_scope(team_id, collection_id).all(db_session)


async def update_pin(
    db_session: AsyncSession,
    actor: User,
    pin_id: UUID,
    index: str,
    *,
    commit: bool = True,
) -> Pin | None:
    """Move a pin to a new position within its scope.

    Returns:
        The updated Pin, or None if no such pin exists in the actor's team
    """
    validate_index(index)

    with span("pins.update", pin_id=str(pin_id)):
        async with unit_of_work(db_session, commit):
            result = await db_session.execute(
                select(Pin)
                .where(Pin.id == pin_id, Pin.team_id == actor.team_id)
                .with_for_update()
            )
            pin = result.scalar_one_or_none()
            if pin is None:
                return None

            scope = pin_scope(pin.team_id, pin.collection_id)
            pin.index = await scope.resolve_collision(db_session, index, exclude_id=pin.id)

            await create_event(
                db_session,
                "pins.update",
                actor_id=actor.id,
                team_id=pin.team_id,
                collection_id=pin.collection_id,
                document_id=pin.document_id,
                model_id=pin.id,
                data={"index": pin.index},
            )

    if commit:
        await hooks.do_action(AFTER_PIN_UPDATE, pin)
    return pin


async def delete_pin(
    db_session: AsyncSession,
    actor: User,
    pin_id: UUID,
    *,
    commit: bool = True,
) -> bool:
    """Delete a pin.

    Returns:
        True if deleted, False if not found
    """
    with span("pins.delete", pin_id=str(pin_id)):
        async with unit_of_work(db_session, commit):
            result = await db_session.execute(
                select(Pin).where(Pin.id == pin_id, Pin.team_id == actor.team_id)
            )
            pin = result.scalar_one_or_none()
            if pin is None:
                return False

            await db_session.delete(pin)
            await create_event(
                db_session,
                "pins.delete",
                actor_id=actor.id,
                team_id=pin.team_id,
                collection_id=pin.collection_id,
                document_id=pin.document_id,
                model_id=pin.id,
            )

    if commit:
        await hooks.do_action(AFTER_PIN_DELETE, pin)
    return True
