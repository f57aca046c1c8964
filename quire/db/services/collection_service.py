"""Collection service: a team's collections in sidebar order."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quire.config import get_settings
from quire.db.models import Collection, User
from quire.db.scopes import collection_scope
from quire.db.services.event_service import create_event
from quire.db.services.indexing import backfill_collection_order
from quire.db.session import unit_of_work
from quire.lib.exceptions import ValidationError
from quire.lib.fractional_index import validate_index
from quire.lib.hooks import hooks, AFTER_COLLECTION_CREATE, AFTER_COLLECTION_MOVE
from quire.lib.observability import span

logger = logging.getLogger(__name__)


async def create_collection(
    db_session: AsyncSession,
    actor: User,
    name: str,
    index: str | None = None,
    *,
    commit: bool = True,
) -> Collection:
    """Create a collection at the top of the team sidebar.

    Args:
        db_session: Database session
        actor: User creating the collection
        name: Collection name
        index: Explicit position; moved just past any collection already holding it
        commit: Commit here (True) or leave the caller's transaction open

    Returns:
        The created Collection
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")
    if index is not None:
        validate_index(index)

    scope = collection_scope(actor.team_id)

    with span("collections.create", team_id=str(actor.team_id)):
        async with unit_of_work(db_session, commit):
            if get_settings().ordering.lock_scope:
                await scope.lock(db_session)

            if index is None:
                index = await scope.index_before_first(db_session)
            else:
                index = await scope.resolve_collision(db_session, index)

            collection = Collection(
                team_id=actor.team_id,
                created_by_id=actor.id,
                name=name,
                index=index,
            )
            db_session.add(collection)
            await db_session.flush()

            await create_event(
                db_session,
                "collections.create",
                actor_id=actor.id,
                team_id=actor.team_id,
                collection_id=collection.id,
                model_id=collection.id,
                data={"name": name},
            )

    if commit:
        await hooks.do_action(AFTER_COLLECTION_CREATE, collection)
    return collection


async def get_collection(db_session: AsyncSession, collection_id: UUID) -> Collection | None:
    result = await db_session.execute(select(Collection).where(Collection.id == collection_id))
    return result.scalar_one_or_none()


async def list_collections(
    db_session: AsyncSession,
    team_id: UUID,
    *,
    commit: bool = True,
) -> list[Collection]:
    """List a team's collections in sidebar order, backfilling legacy rows first."""
    scope = collection_scope(team_id)
    if await scope.has_unindexed(db_session):
        await backfill_collection_order(db_session, team_id, commit=commit)
    return await scope.all(db_session)


async def move_collection(
    db_session: AsyncSession,
    actor: User,
    collection_id: UUID,
    index: str,
    *,
    commit: bool = True,
) -> Collection | None:
    """Move a collection to a new position in the sidebar.

    Returns:
        The moved Collection, or None if the actor's team has no such collection
    """
    validate_index(index)

    with span("collections.move", collection_id=str(collection_id)):
        async with unit_of_work(db_session, commit):
            result = await db_session.execute(
                select(Collection)
                .where(Collection.id == collection_id, Collection.team_id == actor.team_id)
                .with_for_update()
            )
            collection = result.scalar_one_or_none()
            if collection is None:
                return None

            collection.index = await collection_scope(actor.team_id).resolve_collision(
                db_session, index, exclude_id=collection.id
            )
            await create_event(
                db_session,
                "collections.move",
                actor_id=actor.id,
                team_id=actor.team_id,
                collection_id=collection.id,
                model_id=collection.id,
                data={"index": collection.index},
            )

    logger.debug("Moved collection %s to %r", collection_id, collection.index)
    if commit:
        await hooks.do_action(AFTER_COLLECTION_MOVE, collection)
    return collection
