"""Tests for the application factory."""

from litestar import Litestar

from quire.asgi import EXCEPTION_HANDLERS, create_app, create_session_config
from quire.config import get_settings
from quire.lib.exceptions import QuireError


def test_create_app_registers_api_routes():
    app = create_app(get_settings())

    assert isinstance(app, Litestar)
    paths = {route.path for route in app.routes}
    assert {"/api/pins", "/api/stars", "/api/collections", "/api/memberships"} <= paths
    assert "actor" in app.dependencies


def test_domain_errors_have_a_handler():
    assert QuireError in EXCEPTION_HANDLERS


def test_session_config_hashes_secret():
    config = create_session_config("short", secure=True)
    assert len(config.secret) == 32
    assert config.secure is True
    assert config.httponly is True
