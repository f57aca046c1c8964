"""Tests for the generic ordered set."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from quire.db.models import Collection
from quire.db.scopes import collection_scope, pin_scope


class TestOrderedSet:
    @pytest.mark.asyncio
    async def test_edges_ignore_unindexed_rows(self, db_session, team, make_collection):
        await make_collection("a", index="B")
        await make_collection("b", index="D")
        await make_collection("legacy")

        scope = collection_scope(team.id)
        first = await scope.first(db_session)
        last = await scope.last(db_session)

        assert first.index == "B"
        assert last.index == "D"

    @pytest.mark.asyncio
    async def test_empty_scope_edges(self, db_session, team):
        scope = collection_scope(team.id)
        assert await scope.first(db_session) is None
        assert await scope.index_after_last(db_session) == "P"
        assert await scope.index_before_first(db_session) == "P"

    @pytest.mark.asyncio
    async def test_unindexed_rows_sort_last(self, db_session, team, make_collection):
        await make_collection("legacy")
        await make_collection("b", index="D")
        await make_collection("a", index="B")

        rows = await collection_scope(team.id).all(db_session)
        assert [row.index for row in rows] == ["B", "D", None]

    @pytest.mark.asyncio
    async def test_order_is_byte_order(self, db_session, team, make_collection):
        for index in ["a", "B", "_", "0"]:
            await make_collection(index, index=index)

        rows = await collection_scope(team.id).all(db_session)
        assert [row.index for row in rows] == ["0", "B", "_", "a"]

    @pytest.mark.asyncio
    async def test_ties_prefer_most_recently_updated(self, db_session, team, make_collection, clock):
        older = await make_collection("older", index="P", updated_at=clock(1))
        newer = await make_collection("newer", index="P", updated_at=clock(2))

        rows = await collection_scope(team.id).all(db_session)
        assert [row.id for row in rows] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_resolve_collision_keeps_free_index(self, db_session, team, make_collection):
        await make_collection("a", index="P")
        assert await collection_scope(team.id).resolve_collision(db_session, "Q") == "Q"

    @pytest.mark.asyncio
    async def test_resolve_collision_moves_past_taken_index(self, db_session, team, make_collection):
        await make_collection("a", index="P")
        await make_collection("b", index="R")

        index = await collection_scope(team.id).resolve_collision(db_session, "P")
        assert "P" < index < "R"

    @pytest.mark.asyncio
    async def test_resolve_collision_excludes_self(self, db_session, team, make_collection):
        row = await make_collection("a", index="P")
        index = await collection_scope(team.id).resolve_collision(db_session, "P", exclude_id=row.id)
        assert index == "P"

    @pytest.mark.asyncio
    async def test_scopes_are_isolated(self, db_session, team):
        home = pin_scope(team.id)
        assert await home.count(db_session) == 0
        assert "collection_id IS NULL" in str(home.select())

    @pytest.mark.asyncio
    async def test_lock_finds_marker_row(self, db_session, team):
        assert await collection_scope(team.id).lock(db_session) is True

    @pytest.mark.asyncio
    async def test_lock_reports_missing_marker(self, db_session):
        assert await collection_scope(uuid4()).lock(db_session) is False

    @pytest.mark.asyncio
    async def test_assign_keeps_updated_at(self, db_session, team, make_collection, clock):
        row = await make_collection("a", updated_at=clock(5))
        scope = collection_scope(team.id)

        await scope.assign(db_session, {row.id: "X"}, [row])
        await db_session.commit()

        assert row.index == "X"
        result = await db_session.execute(
            select(Collection.index, Collection.updated_at).where(Collection.id == row.id)
        )
        index, updated_at = result.one()
        assert index == "X"
        assert updated_at == clock(5)

    @pytest.mark.asyncio
    async def test_rebalance_preserves_order(self, db_session, team, make_collection):
        keys = ["P", "PP", "PPP", "PPPP"]
        rows = [await make_collection(key, index=key) for key in keys]
        scope = collection_scope(team.id)

        indices = await scope.rebalance(db_session)
        await db_session.commit()

        ordered = await scope.all(db_session)
        assert [row.id for row in ordered] == [row.id for row in rows]
        assert all(len(indices[row.id]) == 1 for row in rows)
