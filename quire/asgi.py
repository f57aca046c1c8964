"""ASGI application factory for Quire."""

import hashlib
import logging
from typing import Any

from advanced_alchemy.config import EngineConfig
from advanced_alchemy.extensions.litestar import AsyncSessionConfig, SQLAlchemyPlugin
from litestar import Litestar
from litestar.di import Provide
from litestar.exceptions import HTTPException
from litestar.middleware.session.client_side import CookieBackendConfig

from quire.config import Settings, get_settings
from quire.controllers import (
    CollectionsController,
    MembershipsController,
    PinsController,
    StarsController,
)
from quire.controllers.helpers import provide_actor
from quire.db.base import Base
from quire.db.session import SafeSQLAlchemyAsyncConfig, enable_sqlite_savepoints
from quire.lib import observability
from quire.lib.exceptions import (
    QuireError,
    http_exception_handler,
    internal_server_error_handler,
    quire_exception_handler,
)

logger = logging.getLogger(__name__)

EXCEPTION_HANDLERS: dict[type[Exception], Any] = {
    QuireError: quire_exception_handler,
    HTTPException: http_exception_handler,
    Exception: internal_server_error_handler,
}


def create_session_config(
    secret_key: str,
    max_age: int = 86400,
    secure: bool = False,
    cookie_domain: str | None = None,
    cookie_name: str = "session",
) -> CookieBackendConfig:
    """Create a cookie-backed session config."""
    session_secret = hashlib.sha256(secret_key.encode()).digest()
    return CookieBackendConfig(
        secret=session_secret,
        key=cookie_name,
        max_age=max_age,
        httponly=True,
        secure=secure,
        samesite="lax",
        domain=cookie_domain,
    )


def create_db_config(settings: Settings) -> SafeSQLAlchemyAsyncConfig:
    if "sqlite" in settings.db.url:
        engine_config = EngineConfig(echo=settings.db.echo)
    else:
        engine_config = EngineConfig(
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.pool_overflow,
            pool_timeout=settings.db.pool_timeout,
            pool_pre_ping=settings.db.pool_pre_ping,
            echo=settings.db.echo,
        )

    return SafeSQLAlchemyAsyncConfig(
        connection_string=settings.db.url,
        metadata=Base.metadata,
        create_all=False,
        session_config=AsyncSessionConfig(expire_on_commit=False),
        engine_config=engine_config,
    )


def create_app(settings: Settings | None = None) -> Litestar:
    """Create and configure the main Litestar application."""
    settings = settings or get_settings()

    observability.configure(settings)

    db_config = create_db_config(settings)
    session_config = create_session_config(
        secret_key=settings.secret_key,
        max_age=settings.session.max_age,
        secure=not settings.debug,
        cookie_domain=settings.session.cookie_domain,
    )

    def on_startup(app: Litestar) -> None:
        engine = db_config.get_engine()
        if engine.dialect.name == "sqlite":
            enable_sqlite_savepoints(engine)
        observability.instrument_sqlalchemy(engine)
        logger.info("Quire started with database dialect %s", engine.dialect.name)

    return Litestar(
        on_startup=[on_startup],
        route_handlers=[PinsController, StarsController, CollectionsController, MembershipsController],
        plugins=[SQLAlchemyPlugin(config=db_config)],
        middleware=[session_config.middleware],
        dependencies={"actor": Provide(provide_actor)},
        exception_handlers=EXCEPTION_HANDLERS,
        debug=settings.debug,
    )


def app_factory():
    """Entry point for hypercorn: the instrumented ASGI app."""
    return observability.instrument_app(create_app())
