"""Tests for unit_of_work transaction handling."""

import pytest
from sqlalchemy import select

from quire.db.models import Team
from quire.db.session import unit_of_work
from quire.lib.exceptions import BackfillError, PersistenceError, ValidationError
from quire.lib.fractional_index import OrderKeyError, midpoint


async def _team_names(db_session):
    result = await db_session.execute(select(Team.name).order_by(Team.name))
    return result.scalars().all()


@pytest.mark.asyncio
async def test_commits_on_success(db_session):
    async with unit_of_work(db_session):
        db_session.add(Team(name="Acme"))

    assert await _team_names(db_session) == ["Acme"]


@pytest.mark.asyncio
async def test_domain_error_rolls_back_and_propagates(db_session):
    with pytest.raises(ValidationError):
        async with unit_of_work(db_session):
            db_session.add(Team(name="Acme"))
            await db_session.flush()
            raise ValidationError("nope")

    assert await _team_names(db_session) == []


@pytest.mark.asyncio
async def test_malformed_key_becomes_persistence_error(db_session):
    with pytest.raises(PersistenceError) as exc_info:
        async with unit_of_work(db_session):
            db_session.add(Team(name="Acme"))
            await db_session.flush()
            midpoint("P ", None)

    assert isinstance(exc_info.value.__cause__, OrderKeyError)
    assert await _team_names(db_session) == []


@pytest.mark.asyncio
async def test_malformed_key_uses_given_error_type(db_session):
    with pytest.raises(BackfillError):
        async with unit_of_work(db_session, error=BackfillError):
            midpoint("Q", "P")


@pytest.mark.asyncio
async def test_unexpected_error_rolls_back_and_propagates(db_session):
    with pytest.raises(RuntimeError, match="boom"):
        async with unit_of_work(db_session):
            db_session.add(Team(name="Acme"))
            await db_session.flush()
            raise RuntimeError("boom")

    assert await _team_names(db_session) == []


@pytest.mark.asyncio
async def test_caller_owned_transaction_is_left_open(db_session):
    with pytest.raises(RuntimeError):
        async with unit_of_work(db_session, commit=False):
            db_session.add(Team(name="Acme"))
            await db_session.flush()
            raise RuntimeError("boom")

    assert await _team_names(db_session) == ["Acme"]
    await db_session.rollback()
