"""Tests for the star service."""

from uuid import uuid4

import pytest

from quire.db.models import Star
from quire.db.services import star_service
from quire.db.services.event_service import list_events
from quire.lib.exceptions import NotFoundError, ValidationError
from quire.lib.hooks import hooks, AFTER_STAR_CREATE


class TestCreateStar:
    @pytest.mark.asyncio
    async def test_new_stars_go_on_top(self, db_session, user, make_document):
        first, second = await make_document("First"), await make_document("Second")

        star_a = await star_service.create_star(db_session, user, document_id=first.id)
        star_b = await star_service.create_star(db_session, user, document_id=second.id)

        assert star_b.index < star_a.index
        stars = await star_service.list_stars(db_session, user.id)
        assert [star.id for star in stars] == [star_b.id, star_a.id]

    @pytest.mark.asyncio
    async def test_starring_twice_returns_existing(self, db_session, user, make_document, clean_hooks):
        created = []
        hooks.add_action(AFTER_STAR_CREATE, lambda star: created.append(star.id))
        document = await make_document()

        star = await star_service.create_star(db_session, user, document_id=document.id)
        again = await star_service.create_star(db_session, user, document_id=document.id)

        assert again.id == star.id
        assert again.index == star.index
        assert len(await star_service.list_stars(db_session, user.id)) == 1
        assert [e.name for e in await list_events(db_session, name="stars.create")] == ["stars.create"]
        assert created == [star.id]

    @pytest.mark.asyncio
    async def test_many_stars_keep_short_indices(self, db_session, user, make_document):
        for number in range(100):
            document = await make_document(f"Doc {number}")
            top = await star_service.create_star(db_session, user, document_id=document.id)

        assert len(top.index) <= 3
        moved = await star_service.update_star(db_session, user, top.id, top.index)
        assert moved.index == top.index

    @pytest.mark.asyncio
    async def test_star_collection(self, db_session, user, make_collection):
        collection = await make_collection("Handbook", index="P")
        star = await star_service.create_star(db_session, user, collection_id=collection.id)

        assert star.collection_id == collection.id
        assert star.document_id is None

    @pytest.mark.asyncio
    async def test_requires_a_target(self, db_session, user):
        with pytest.raises(ValidationError, match="documentId or collectionId is required"):
            await star_service.create_star(db_session, user)

    @pytest.mark.asyncio
    async def test_rejects_two_targets(self, db_session, user, make_document, make_collection):
        document = await make_document()
        collection = await make_collection("Handbook")
        with pytest.raises(ValidationError, match="Only one of"):
            await star_service.create_star(
                db_session, user, document_id=document.id, collection_id=collection.id
            )

    @pytest.mark.asyncio
    async def test_unknown_target(self, db_session, user):
        with pytest.raises(NotFoundError, match="Document not found"):
            await star_service.create_star(db_session, user, document_id=uuid4())

    @pytest.mark.asyncio
    async def test_concurrent_create_returns_winner(self, db_session, user, make_document, monkeypatch):
        document = await make_document()
        winner = Star(user_id=user.id, document_id=document.id, index="P")
        db_session.add(winner)
        await db_session.commit()

        real_find = star_service.find_star
        calls = []

        async def racing_find(*args, **kwargs):
            calls.append(args)
            # The first lookup misses, as if the other request had not committed yet
            if len(calls) == 1:
                return None
            return await real_find(*args, **kwargs)

        monkeypatch.setattr(star_service, "find_star", racing_find)

        star = await star_service.create_star(db_session, user, document_id=document.id)

        assert star.id == winner.id
        assert len(calls) == 2
        assert await list_events(db_session, name="stars.create") == []

    @pytest.mark.asyncio
    async def test_explicit_index(self, db_session, user, make_document):
        document = await make_document()
        star = await star_service.create_star(db_session, user, document_id=document.id, index="a")
        assert star.index == "a"


class TestListStars:
    @pytest.mark.asyncio
    async def test_backfills_legacy_stars(self, db_session, user, make_document, make_legacy_star, clock):
        stale = await make_document("Stale", updated_at=clock(1))
        fresh = await make_document("Fresh", updated_at=clock(30))
        middle = await make_document("Middle", updated_at=clock(10))
        for document in (stale, fresh, middle):
            await make_legacy_star(document=document)

        stars = await star_service.list_stars(db_session, user.id)

        assert [star.document_id for star in stars] == [fresh.id, middle.id, stale.id]
        assert all(star.index is not None for star in stars)
        assert await list_events(db_session) == []


class TestUpdateAndDeleteStar:
    @pytest.mark.asyncio
    async def test_update_moves_star(self, db_session, user, make_document):
        first, second = await make_document("First"), await make_document("Second")
        star_a = await star_service.create_star(db_session, user, document_id=first.id)
        star_b = await star_service.create_star(db_session, user, document_id=second.id)

        moved = await star_service.update_star(db_session, user, star_b.id, "~")

        assert moved.index == "~"
        stars = await star_service.list_stars(db_session, user.id)
        assert [star.id for star in stars] == [star_a.id, star_b.id]

    @pytest.mark.asyncio
    async def test_update_unknown_star(self, db_session, user):
        assert await star_service.update_star(db_session, user, uuid4(), "P") is None

    @pytest.mark.asyncio
    async def test_delete_star(self, db_session, user, make_document):
        document = await make_document()
        star = await star_service.create_star(db_session, user, document_id=document.id)

        assert await star_service.delete_star(db_session, user, star.id) is True
        assert await star_service.list_stars(db_session, user.id) == []
        assert await star_service.delete_star(db_session, user, star.id) is False

    @pytest.mark.asyncio
    async def test_restar_after_delete_goes_on_top(self, db_session, user, make_document):
        first, second = await make_document("First"), await make_document("Second")
        star_a = await star_service.create_star(db_session, user, document_id=first.id)
        await star_service.create_star(db_session, user, document_id=second.id)
        await star_service.delete_star(db_session, user, star_a.id)

        restarred = await star_service.create_star(db_session, user, document_id=first.id)

        stars = await star_service.list_stars(db_session, user.id)
        assert stars[0].id == restarred.id
