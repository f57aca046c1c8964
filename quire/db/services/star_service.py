"""Star service: a user's starred documents and collections, newest on top."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quire.config import get_settings
from quire.db.models import Collection, Document, Star, User
from quire.db.scopes import star_scope
from quire.db.services.event_service import create_event
from quire.db.services.indexing import backfill_star_order
from quire.db.session import unit_of_work
from quire.lib.exceptions import NotFoundError, ValidationError
from quire.lib.fractional_index import validate_index
from quire.lib.hooks import hooks, AFTER_STAR_CREATE, AFTER_STAR_DELETE, AFTER_STAR_UPDATE
from quire.lib import observability
from quire.lib.observability import span


def _check_target(document_id: UUID | None, collection_id: UUID | None) -> None:
    if document_id is None and collection_id is None:
        raise ValidationError("documentId or collectionId is required")
    if document_id is not None and collection_id is not None:
        raise ValidationError("Only one of documentId or collectionId can be starred")


async def _require_target(
    db_session: AsyncSession,
    team_id: UUID,
    document_id: UUID | None,
    collection_id: UUID | None,
) -> None:
    if document_id is not None:
        query = select(Document.id).where(Document.id == document_id, Document.team_id == team_id)
        missing = "Document not found"
    else:
        query = select(Collection.id).where(Collection.id == collection_id, Collection.team_id == team_id)
        missing = "Collection not found"

    result = await db_session.execute(query)
    if result.first() is None:
        raise NotFoundError(missing)


async def find_star(
    db_session: AsyncSession,
    user_id: UUID,
    document_id: UUID | None = None,
    collection_id: UUID | None = None,
) -> Star | None:
    """Find a user's star on a document or collection."""
    query = select(Star).where(Star.user_id == user_id)
    if document_id is not None:
        query = query.where(Star.document_id == document_id)
    else:
        query = query.where(Star.collection_id == collection_id)
    result = await db_session.execute(query)
    return result.scalar_one_or_none()


async def create_star(
    db_session: AsyncSession,
    actor: User,
    document_id: UUID | None = None,
    collection_id: UUID | None = None,
    index: str | None = None,
    *,
    commit: bool = True,
) -> Star:
    """Star a document or collection, placing it at the top of the user's list.

    This is a find-or-create: starring something already starred returns
    the existing star and records nothing. A concurrent request that inserts
    the same star first is detected through the unique constraint and its
    row is returned instead of failing.

    Args:
        db_session: Database session
        actor: User starring the target
        document_id: Document to star (exclusive with collection_id)
        collection_id: Collection to star (exclusive with document_id)
        index: Explicit position, used only when a new star is created
        commit: Commit here (True) or leave the caller's transaction open

    Returns:
        The new or existing Star

    Raises:
        ValidationError: Neither or both targets given, or malformed index
        NotFoundError: The target is not in the actor's team
        PersistenceError: The transaction failed and was rolled back
    """
    _check_target(document_id, collection_id)
    if index is not None:
        validate_index(index)

    scope = star_scope(actor.id)
    created = False

    with span("stars.create", user_id=str(actor.id)):
        async with unit_of_work(db_session, commit):
            if get_settings().ordering.lock_scope:
                await scope.lock(db_session)

            await _require_target(db_session, actor.team_id, document_id, collection_id)

            star = await find_star(db_session, actor.id, document_id, collection_id)
            if star is None:
                if index is None:
                    index = await scope.index_before_first(db_session)
                else:
                    index = await scope.resolve_collision(db_session, index)

                star = Star(
                    user_id=actor.id,
                    document_id=document_id,
                    collection_id=collection_id,
                    index=index,
                )
                try:
                    async with db_session.begin_nested():
                        db_session.add(star)
                except IntegrityError:
                    star = await find_star(db_session, actor.id, document_id, collection_id)
                    if star is None:
                        raise
                    observability.info(
                        "Star for user {user_id} was created concurrently", user_id=str(actor.id)
                    )
                else:
                    created = True
                    await create_event(
                        db_session,
                        "stars.create",
                        actor_id=actor.id,
                        team_id=actor.team_id,
                        collection_id=collection_id,
                        document_id=document_id,
                        model_id=star.id,
                    )

    if created and commit:
        await hooks.do_action(AFTER_STAR_CREATE, star)
    return star


async def get_star(db_session: AsyncSession, star_id: UUID) -> Star | None:
    result = await db_session.execute(select(Star).where(Star.id == star_id))
    return result.scalar_one_or_none()


async def list_stars(
    db_session: AsyncSession,
    user_id: UUID,
    *,
    commit: bool = True,
) -> list[Star]:
    """List a user's stars in display order, backfilling legacy stars first."""
    scope = star_scope(user_id)
    if await scope.has_unindexed(db_session):
        await backfill_star_order(db_session, user_id, commit=commit)
    return await scope.all(db_session)


async def update_star(
    db_session: AsyncSession,
    actor: User,
    star_id: UUID,
    index: str,
    *,
    commit: bool = True,
) -> Star | None:
    """Move one of the actor's stars to a new position.

    Returns:
        The updated Star, or None if the actor has no such star
    """
    validate_index(index)

    with span("stars.update", star_id=str(star_id)):
        async with unit_of_work(db_session, commit):
            result = await db_session.execute(
                select(Star).where(Star.id == star_id, Star.user_id == actor.id).with_for_update()
            )
            star = result.scalar_one_or_none()
            if star is None:
                return None

            star.index = await star_scope(actor.id).resolve_collision(
                db_session, index, exclude_id=star.id
            )
            await create_event(
                db_session,
                "stars.update",
                actor_id=actor.id,
                team_id=actor.team_id,
                collection_id=star.collection_id,
                document_id=star.document_id,
                model_id=star.id,
                data={"index": star.index},
            )

    if commit:
        await hooks.do_action(AFTER_STAR_UPDATE, star)
    return star


async def delete_star(
    db_session: AsyncSession,
    actor: User,
    star_id: UUID,
    *,
    commit: bool = True,
) -> bool:
    """Delete one of the actor's stars.

    Returns:
        True if deleted, False if not found
    """
    with span("stars.delete", star_id=str(star_id)):
        async with unit_of_work(db_session, commit):
            result = await db_session.execute(
                select(Star).where(Star.id == star_id, Star.user_id == actor.id)
            )
            star = result.scalar_one_or_none()
            if star is None:
                return False

            await db_session.delete(star)
            await create_event(
                db_session,
                "stars.delete",
                actor_id=actor.id,
                team_id=actor.team_id,
                collection_id=star.collection_id,
                document_id=star.document_id,
                model_id=star.id,
            )

    if commit:
        await hooks.do_action(AFTER_STAR_DELETE, star)
    return True
