"""Shared pytest fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
import yaml
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import quire.db.models  # noqa: F401 - register all models on Base
from quire.config import clear_settings_cache, set_config_path
from quire.db.base import Base
from quire.db.models import Collection, Document, Star, Team, User
from quire.db.session import enable_sqlite_savepoints
from quire.lib.hooks import hooks

TEST_SECRET_KEY = "test-secret-key-for-quire"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at an empty config so a local app.yaml never leaks in."""
    monkeypatch.setenv("SECRET_KEY", TEST_SECRET_KEY)
    monkeypatch.delenv("QUIRE_ENV", raising=False)
    set_config_path(tmp_path / "missing-app.yaml")
    clear_settings_cache()
    yield
    set_config_path(None)
    clear_settings_cache()


@pytest.fixture
def temp_app_yaml(tmp_path):
    """Create a temporary app.yaml file for testing."""
    config_path = tmp_path / "app.yaml"

    def _create_config(config: dict):
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f)
        return config_path

    return _create_config


@pytest.fixture
def clean_hooks():
    """Save and restore hooks state around a test."""
    original_filters = hooks._filters.copy()
    original_actions = hooks._actions.copy()
    hooks.clear()
    yield
    hooks._filters = original_filters
    hooks._actions = original_actions


# ---------------------------------------------------------------------------
# Database (in-memory SQLite, one per test)
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def team(db_session):
    team = Team(name="Acme")
    db_session.add(team)
    await db_session.commit()
    return team


@pytest.fixture
async def user(db_session, team):
    user = User(team_id=team.id, email="ada@example.com", name="Ada")
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def make_document(db_session, team, user):
    """Factory creating committed documents in the test team."""

    async def _make(title="Untitled", updated_at: datetime | None = None, **kwargs):
        document = Document(team_id=team.id, created_by_id=user.id, title=title, **kwargs)
        if updated_at is not None:
            document.updated_at = updated_at
        db_session.add(document)
        await db_session.commit()
        return document

    return _make


@pytest.fixture
def make_collection(db_session, team, user):
    """Factory creating committed collections directly, bypassing the service.

    Leaves ``index`` null unless given, like rows that predate ordering.
    """

    async def _make(name="Collection", index=None, created_at=None, updated_at=None):
        collection = Collection(team_id=team.id, created_by_id=user.id, name=name, index=index)
        if created_at is not None:
            collection.created_at = created_at
        if updated_at is not None:
            collection.updated_at = updated_at
        db_session.add(collection)
        await db_session.commit()
        return collection

    return _make


@pytest.fixture
def make_legacy_star(db_session, user):
    """Factory creating stars without an index."""

    async def _make(document=None, collection=None, created_at=None):
        star = Star(
            user_id=user.id,
            document_id=document.id if document else None,
            collection_id=collection.id if collection else None,
        )
        if created_at is not None:
            star.created_at = created_at
        db_session.add(star)
        await db_session.commit()
        return star

    return _make


@pytest.fixture
def clock():
    """Strictly increasing timestamps for deterministic ordering tests."""
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _at(minutes: int) -> datetime:
        return start + timedelta(minutes=minutes)

    return _at
