"""Generic ordered-set service over any model with an ``index`` column.

An ``OrderedSet`` is one scope of one model (one team's home pins, one
user's stars, ...). Pins, stars and collections all go through it, so the
edge lookup, midpoint and backfill logic exists exactly once.

Ordering is ``index`` ascending under byte-order collation, ties broken by
the most recently updated row and finally by id. Rows whose index is still
null sort last until they are backfilled.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import Select, bindparam, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.sql import ColumnElement

from quire.db.base import Base
from quire.lib.fractional_index import midpoint, spaced_keys

ModelT = TypeVar("ModelT", bound=Base)


class OrderedSet(Generic[ModelT]):
    """Ordered view of ``model`` rows matching ``criteria``.

    Args:
        model: Mapped class with ``index``, ``updated_at`` and ``id`` columns
        *criteria: Filters selecting the rows of this scope
        marker: ``(model, id)`` of the row that stands for the whole scope,
            locked before read-then-write sequences
    """

    def __init__(
        self,
        model: type[ModelT],
        *criteria: ColumnElement[bool],
        marker: tuple[type[Base], UUID] | None = None,
    ) -> None:
        self.model = model
        self.criteria = criteria
        self.marker = marker

    def __repr__(self) -> str:
        return f"OrderedSet({self.model.__name__}, {len(self.criteria)} criteria)"

    def select(self) -> Select[tuple[ModelT]]:
        return select(self.model).where(*self.criteria)

    def ordered(self) -> Select[tuple[ModelT]]:
        model = self.model
        return self.select().order_by(
            model.index.is_(None),
            model.index.asc(),
            model.updated_at.desc(),
            model.id.asc(),
        )

    async def all(self, db_session: AsyncSession) -> list[ModelT]:
        result = await db_session.execute(self.ordered())
        return list(result.scalars().all())

    async def count(self, db_session: AsyncSession) -> int:
        result = await db_session.execute(
            select(func.count()).select_from(self.model).where(*self.criteria)
        )
        return result.scalar_one()

    async def has_unindexed(self, db_session: AsyncSession) -> bool:
        result = await db_session.execute(
            self.select().where(self.model.index.is_(None)).limit(1)
        )
        return result.first() is not None

    async def first(self, db_session: AsyncSession) -> ModelT | None:
        """Edge lookup: the first indexed row."""
        query = (
            self.select()
            .where(self.model.index.is_not(None))
            .order_by(self.model.index.asc(), self.model.updated_at.desc())
            .limit(1)
        )
        result = await db_session.execute(query)
        return result.scalar_one_or_none()

    async def last(self, db_session: AsyncSession) -> ModelT | None:
        """Edge lookup: the last indexed row."""
        query = (
            self.select()
            .where(self.model.index.is_not(None))
            .order_by(self.model.index.desc(), self.model.updated_at.desc())
            .limit(1)
        )
        result = await db_session.execute(query)
        return result.scalar_one_or_none()

    async def index_after_last(self, db_session: AsyncSession) -> str:
        last = await self.last(db_session)
        return midpoint(last.index if last else None, None)

    async def index_before_first(self, db_session: AsyncSession) -> str:
        first = await self.first(db_session)
        return midpoint(None, first.index if first else None)

    async def resolve_collision(
        self,
        db_session: AsyncSession,
        index: str,
        exclude_id: UUID | None = None,
    ) -> str:
        """Return ``index``, or a key just after it if another row already holds it.

        The replacement sits between ``index`` and the next larger index in
        the scope, so the caller still lands where it asked to be.
        """
        model = self.model
        taken = select(model.id).where(*self.criteria, model.index == index)
        if exclude_id is not None:
            taken = taken.where(model.id != exclude_id)
        result = await db_session.execute(taken.limit(1))
        if result.first() is None:
            return index

        result = await db_session.execute(
            select(model.index)
            .where(*self.criteria, model.index > index)
            .order_by(model.index.asc(), model.updated_at.desc())
            .limit(1)
        )
        return midpoint(index, result.scalar_one_or_none())

    async def lock(self, db_session: AsyncSession) -> bool:
        """Lock the scope marker row (``SELECT ... FOR UPDATE``).

        Serializes concurrent cap checks and edge lookups in the same scope
        until the surrounding transaction ends. SQLite ignores the lock; its
        writers are serialized by the database file lock instead.

        Returns:
            False if the marker row does not exist
        """
        if self.marker is None:
            return True
        marker_model, marker_id = self.marker
        result = await db_session.execute(
            select(marker_model.id).where(marker_model.id == marker_id).with_for_update()
        )
        return result.first() is not None

    async def assign(
        self,
        db_session: AsyncSession,
        indices: dict[UUID, str],
        loaded: Iterable[ModelT] = (),
    ) -> None:
        """Silently write ``id -> index`` for rows in this scope.

        Uses a Core UPDATE so no ORM events or hooks fire, and pins
        ``updated_at`` to its current value so collaborators do not see the
        rows as modified. Rows in ``loaded`` get their in-memory index
        updated without being marked dirty.
        """
        if not indices:
            return

        table = self.model.__table__
        statement = (
            update(table)
            .where(table.c.id == bindparam("row_id"))
            .values({"index": bindparam("new_index"), "updated_at": table.c.updated_at})
        )
        await db_session.execute(
            statement,
            [{"row_id": row_id, "new_index": index} for row_id, index in indices.items()],
        )

        for row in loaded:
            if row.id in indices:
                set_committed_value(row, "index", indices[row.id])

    async def backfill(
        self,
        db_session: AsyncSession,
        sort_key: Callable[[ModelT], Any],
        rows: list[ModelT] | None = None,
    ) -> dict[UUID, str]:
        """Give every row without an index one, keeping existing indices.

        All rows are sorted by ``sort_key`` (not only the unindexed ones) and
        walked in that order. An unindexed row is placed after the running
        previous index; every row then becomes the new previous index.
        Indices are computed in memory first and written in one batch.

        Returns:
            Mapping of every row id in scope to its index
        """
        if rows is None:
            rows = await self.all(db_session)

        previous: str | None = None
        indices: dict[UUID, str] = {}
        pending: dict[UUID, str] = {}
        for row in sorted(rows, key=sort_key):
            index = row.index
            if index is None:
                index = midpoint(previous, None)
                pending[row.id] = index
            indices[row.id] = index
            previous = index

        await self.assign(db_session, pending, rows)
        return indices

    async def rebalance(self, db_session: AsyncSession) -> dict[UUID, str]:
        """Rewrite the scope with short, evenly spaced keys in the current order."""
        rows = await self.all(db_session)
        keys = spaced_keys(len(rows))
        indices = {row.id: key for row, key in zip(rows, keys)}
        changed = {row.id: indices[row.id] for row in rows if row.index != indices[row.id]}
        await self.assign(db_session, changed, rows)
        return indices
