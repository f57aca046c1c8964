"""Session helpers: request-scoped sessions, SQLite savepoints, units of work.

``SafeSQLAlchemyAsyncConfig`` closes sessions when a request is cancelled
(client disconnect, timeout). Without it, CancelledError can prevent session
cleanup and leak pooled connections.
"""

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Callable, cast

from advanced_alchemy._listeners import set_async_context
from advanced_alchemy.extensions.litestar import SQLAlchemyAsyncConfig
from advanced_alchemy.extensions.litestar._utils import (
    delete_aa_scope_state,
    get_aa_scope_state,
    set_aa_scope_state,
)
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from quire.lib.exceptions import PersistenceError, QuireError
from quire.lib.fractional_index import OrderKeyError

if TYPE_CHECKING:
    from litestar.datastructures import State
    from litestar.types import Scope


class SafeSQLAlchemyAsyncConfig(SQLAlchemyAsyncConfig):
    """SQLAlchemy async config with safe session cleanup on request cancellation."""

    async def provide_session(
        self,
        state: "State",
        scope: "Scope",
    ) -> AsyncGenerator[AsyncSession, None]:
        """Provide a database session, closing it if the request is cancelled.

        Args:
            state: The application state
            scope: The ASGI scope

        Yields:
            AsyncSession: The database session
        """
        session = cast(
            "AsyncSession | None",
            get_aa_scope_state(scope, self.session_scope_key),
        )

        if session is None:
            session_maker = cast(
                "Callable[[], AsyncSession]",
                state[self.session_maker_app_state_key],
            )
            session = session_maker()
            # Store in scope for reuse within this request
            set_aa_scope_state(scope, self.session_scope_key, session)

        set_async_context(True)

        try:
            yield session
        except asyncio.CancelledError:
            await session.close()
            # Remove the session from scope state to prevent double-close
            delete_aa_scope_state(scope, self.session_scope_key)
            raise


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Make the sqlite3 driver honour BEGIN/SAVEPOINT the way other backends do.

    The driver defers BEGIN until the first write, which breaks SAVEPOINT
    (used by find-or-create on stars). Emitting BEGIN ourselves fixes that.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


@asynccontextmanager
async def unit_of_work(
    db_session: AsyncSession,
    commit: bool = True,
    error: type[PersistenceError] = PersistenceError,
) -> AsyncIterator[AsyncSession]:
    """Run a block as one all-or-nothing unit of work.

    With ``commit=True`` the block owns the transaction: it is committed when
    the block succeeds and rolled back when it raises. With ``commit=False``
    the caller owns the transaction and nothing is committed or rolled back
    here.

    Database errors and malformed stored keys surface as ``error`` (a
    PersistenceError subclass) chained to the original exception. Domain
    errors and anything else propagate unchanged after the rollback.
    """
    try:
        yield db_session
        if commit:
            await db_session.commit()
    except QuireError:
        if commit:
            await db_session.rollback()
        raise
    except (SQLAlchemyError, OrderKeyError) as exc:
        if commit:
            await db_session.rollback()
        raise error() from exc
    except BaseException:
        if commit:
            await db_session.rollback()
        raise


__all__ = ["SafeSQLAlchemyAsyncConfig", "enable_sqlite_savepoints", "unit_of_work"]
