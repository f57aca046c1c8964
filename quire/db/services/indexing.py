"""Housekeeping writes for ordered scopes: backfill and rebalance.

Both run silently. Indices are written with a Core UPDATE that keeps
``updated_at`` unchanged, no audit events are recorded and no hooks fire.
Each operation is atomic: if any write fails, none of the batch persists.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quire.db.models import Collection, Document, Membership, Star
from quire.db.ordering import OrderedSet
from quire.db.scopes import collection_scope, membership_scope, pin_scope, star_scope
from quire.db.session import unit_of_work
from quire.lib.exceptions import BackfillError
from quire.lib.fractional_index import OrderKeyError
from quire.lib.natural_sort import natural_key
from quire.lib import observability
from quire.lib.observability import span

# Stand-in for a missing creation time
_NEVER = datetime.min.replace(tzinfo=timezone.utc)


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def backfill_collection_order(
    db_session: AsyncSession,
    team_id: UUID,
    *,
    commit: bool = True,
) -> dict[UUID, str]:
    """Give a team's unindexed collections an index, in natural name order.

    Collections that already have an index keep it. Unindexed ones are
    placed after the running previous index when walking the team's
    collections sorted by name (digit-aware, case-insensitive), then
    creation time, then id.

    Returns:
        Mapping of every collection id in the team to its index
    """
    scope = collection_scope(team_id)

    def sort_key(collection: Collection):
        return (natural_key(collection.name), _aware(collection.created_at) or _NEVER, str(collection.id))

    with span("collections.backfill", team_id=str(team_id)):
        async with unit_of_work(db_session, commit, error=BackfillError):
            indices = await _backfill(scope, db_session, sort_key)

    observability.info(
        "Backfilled collection order for team {team_id} ({count} collections)",
        team_id=str(team_id),
        count=len(indices),
    )
    return indices


async def _target_timestamps(db_session: AsyncSession, stars: list[Star]) -> dict[UUID, datetime | None]:
    """Map each star's target id to the target's ``updated_at``."""
    document_ids = [star.document_id for star in stars if star.document_id is not None]
    collection_ids = [star.collection_id for star in stars if star.collection_id is not None]

    timestamps: dict[UUID, datetime | None] = {}
    if document_ids:
        result = await db_session.execute(
            select(Document.id, Document.updated_at).where(Document.id.in_(document_ids))
        )
        timestamps.update({row_id: _aware(updated) for row_id, updated in result.all()})
    if collection_ids:
        result = await db_session.execute(
            select(Collection.id, Collection.updated_at).where(Collection.id.in_(collection_ids))
        )
        timestamps.update({row_id: _aware(updated) for row_id, updated in result.all()})
    return timestamps


async def backfill_star_order(
    db_session: AsyncSession,
    user_id: UUID,
    *,
    commit: bool = True,
) -> dict[UUID, str]:
    """Give a user's unindexed stars an index, most recently updated target first.

    Stars whose target has no timestamp go last. Ties fall back to the
    star's own creation time, then id.

    Returns:
        Mapping of every star id of the user to its index
    """
    scope = star_scope(user_id)

    with span("stars.backfill", user_id=str(user_id)):
        async with unit_of_work(db_session, commit, error=BackfillError):
            stars = await scope.all(db_session)
            timestamps = await _target_timestamps(db_session, stars)

            def sort_key(star: Star):
                updated = timestamps.get(star.document_id or star.collection_id)
                recency = -updated.timestamp() if updated is not None else 0.0
                created = _aware(star.created_at) or _NEVER
                return (updated is None, recency, created, str(star.id))

            indices = await _backfill(scope, db_session, sort_key, stars)

    observability.info(
        "Backfilled star order for user {user_id} ({count} stars)",
        user_id=str(user_id),
        count=len(indices),
    )
    return indices


async def backfill_membership_order(
    db_session: AsyncSession,
    user_id: UUID,
    *,
    commit: bool = True,
) -> dict[UUID, str]:
    """Give a user's unindexed memberships an index, most recently shared first."""
    scope = membership_scope(user_id)

    def sort_key(membership: Membership):
        shared = _aware(membership.created_at) or _NEVER
        return (-shared.timestamp(), str(membership.id))

    with span("memberships.backfill", user_id=str(user_id)):
        async with unit_of_work(db_session, commit, error=BackfillError):
            indices = await _backfill(scope, db_session, sort_key)

    observability.info(
        "Backfilled shared document order for user {user_id} ({count} documents)",
        user_id=str(user_id),
        count=len(indices),
    )
    return indices


async def _backfill(scope: OrderedSet, db_session: AsyncSession, sort_key, rows=None) -> dict[UUID, str]:
    try:
        return await scope.backfill(db_session, sort_key, rows)
    except OrderKeyError as exc:
        raise BackfillError(f"Cannot backfill {scope!r}: {exc}") from exc


async def _rebalance(scope: OrderedSet, db_session: AsyncSession, commit: bool) -> dict[UUID, str]:
    with span("ordering.rebalance", scope=repr(scope)):
        async with unit_of_work(db_session, commit, error=BackfillError):
            await scope.lock(db_session)
            indices = await scope.rebalance(db_session)
    observability.info("Rebalanced {scope} ({count} rows)", scope=repr(scope), count=len(indices))
    return indices


async def rebalance_pins(
    db_session: AsyncSession,
    team_id: UUID,
    collection_id: UUID | None = None,
    *,
    commit: bool = True,
) -> dict[UUID, str]:
    """Rewrite one pin scope with short evenly spaced keys, keeping its order."""
    return await _rebalance(pin_scope(team_id, collection_id), db_session, commit)


async def rebalance_stars(db_session: AsyncSession, user_id: UUID, *, commit: bool = True) -> dict[UUID, str]:
    return await _rebalance(star_scope(user_id), db_session, commit)


async def rebalance_collections(db_session: AsyncSession, team_id: UUID, *, commit: bool = True) -> dict[UUID, str]:
    return await _rebalance(collection_scope(team_id), db_session, commit)


async def rebalance_memberships(db_session: AsyncSession, user_id: UUID, *, commit: bool = True) -> dict[UUID, str]:
    return await _rebalance(membership_scope(user_id), db_session, commit)
