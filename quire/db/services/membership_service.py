"""Membership service: documents shared with a user, in "shared with me" order."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quire.config import get_settings
from quire.db.models import Document, Membership, User
from quire.db.models.membership import PERMISSIONS
from quire.db.scopes import membership_scope
from quire.db.services.event_service import create_event
from quire.db.services.indexing import backfill_membership_order
from quire.db.session import unit_of_work
from quire.lib.exceptions import NotFoundError, ValidationError
from quire.lib.fractional_index import validate_index
from quire.lib.hooks import hooks, AFTER_MEMBERSHIP_CREATE, AFTER_MEMBERSHIP_UPDATE
from quire.lib.observability import span


async def find_membership(db_session: AsyncSession, user_id: UUID, document_id: UUID) -> Membership | None:
    result = await db_session.execute(
        select(Membership).where(Membership.user_id == user_id, Membership.document_id == document_id)
    )
    return result.scalar_one_or_none()


async def share_document(
    db_session: AsyncSession,
    actor: User,
    user_id: UUID,
    document_id: UUID,
    permission: str = "read_write",
    *,
    commit: bool = True,
) -> Membership:
    """Share a document with a teammate, at the top of their "shared with me" list.

    Sharing a document the user already has returns the existing membership
    unchanged.

    Raises:
        ValidationError: Unknown permission
        NotFoundError: The document or user is not in the actor's team
    """
    if permission not in PERMISSIONS:
        raise ValidationError(f"permission must be one of {', '.join(PERMISSIONS)}")

    scope = membership_scope(user_id)
    created = False

    with span("memberships.create", user_id=str(user_id), document_id=str(document_id)):
        async with unit_of_work(db_session, commit):
            if get_settings().ordering.lock_scope:
                await scope.lock(db_session)

            result = await db_session.execute(
                select(Document.id).where(Document.id == document_id, Document.team_id == actor.team_id)
            )
            if result.first() is None:
                raise NotFoundError("Document not found")
            result = await db_session.execute(
                select(User.id).where(User.id == user_id, User.team_id == actor.team_id)
            )
            if result.first() is None:
                raise NotFoundError("User not found")

            membership = await find_membership(db_session, user_id, document_id)
            if membership is None:
                membership = Membership(
                    user_id=user_id,
                    document_id=document_id,
                    created_by_id=actor.id,
                    permission=permission,
                    index=await scope.index_before_first(db_session),
                )
                try:
                    async with db_session.begin_nested():
                        db_session.add(membership)
                except IntegrityError:
                    membership = await find_membership(db_session, user_id, document_id)
                    if membership is None:
                        raise
                else:
                    created = True
                    await create_event(
                        db_session,
                        "memberships.create",
                        actor_id=actor.id,
                        team_id=actor.team_id,
                        document_id=document_id,
                        model_id=membership.id,
                        data={"userId": str(user_id), "permission": permission},
                    )

    if created and commit:
        await hooks.do_action(AFTER_MEMBERSHIP_CREATE, membership)
    return membership


async def list_memberships(
    db_session: AsyncSession,
    user_id: UUID,
    *,
    commit: bool = True,
) -> list[Membership]:
    scope = membership_scope(user_id)
    if await scope.has_unindexed(db_session):
        await backfill_membership_order(db_session, user_id, commit=commit)
    return await scope.all(db_session)


async def update_membership(
    db_session: AsyncSession,
    actor: User,
    membership_id: UUID,
    index: str,
    *,
    commit: bool = True,
) -> Membership | None:
    """Move a document in the actor's own "shared with me" list.

    Returns:
        The updated Membership, or None if the actor has no such membership
    """
    validate_index(index)

    with span("memberships.update", membership_id=str(membership_id)):
        async with unit_of_work(db_session, commit):
            result = await db_session.execute(
                select(Membership)
                .where(Membership.id == membership_id, Membership.user_id == actor.id)
                .with_for_update()
            )
            membership = result.scalar_one_or_none()
            if membership is None:
                return None

            membership.index = await membership_scope(actor.id).resolve_collision(
                db_session, index, exclude_id=membership.id
            )
            await create_event(
                db_session,
                "memberships.update",
                actor_id=actor.id,
                team_id=actor.team_id,
                document_id=membership.document_id,
                model_id=membership.id,
                data={"index": membership.index},
            )

    if commit:
        await hooks.do_action(AFTER_MEMBERSHIP_UPDATE, membership)
    return membership
