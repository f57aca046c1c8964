"""Tests for the error taxonomy and exception handlers."""

from unittest.mock import MagicMock, patch

import pytest
from litestar.exceptions import NotAuthorizedException

from quire.lib import observability
from quire.lib.exceptions import (
    BackfillError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    http_exception_handler,
    internal_server_error_handler,
    quire_exception_handler,
)


@pytest.fixture
def fake_request():
    """Create a minimal mock request for the error handlers."""
    request = MagicMock()
    request.method = "POST"
    request.url.path = "/api/pins"
    return request


class TestErrorTaxonomy:
    def test_status_codes(self):
        assert ValidationError().status_code == 400
        assert NotFoundError().status_code == 404
        assert PersistenceError().status_code == 500

    def test_backfill_error_is_persistence_error(self):
        assert issubclass(BackfillError, PersistenceError)
        assert BackfillError().detail == "Operation failed, please retry"

    def test_custom_detail(self):
        assert ValidationError("You cannot pin more than 8 documents").detail == (
            "You cannot pin more than 8 documents"
        )


class TestQuireExceptionHandler:
    def test_validation_error_keeps_message(self, fake_request):
        response = quire_exception_handler(fake_request, ValidationError("index must not be empty"))

        assert response.status_code == 400
        assert response.content == {"status_code": 400, "detail": "index must not be empty"}

    def test_not_found(self, fake_request):
        response = quire_exception_handler(fake_request, NotFoundError("Document not found"))
        assert response.status_code == 404

    def test_persistence_error_is_generic_and_logged(self, fake_request):
        with patch.object(observability, "exception", return_value=False), \
             patch("quire.lib.exceptions.logger") as mock_logger:
            response = quire_exception_handler(fake_request, PersistenceError("deadlock on pins"))

        assert response.status_code == 500
        assert response.content["detail"] == "Operation failed, please retry"
        mock_logger.exception.assert_called_once()

    def test_http_exception(self, fake_request):
        response = http_exception_handler(fake_request, NotAuthorizedException("Authentication required"))
        assert response.status_code == 401
        assert response.content["detail"] == "Authentication required"


class TestInternalServerErrorHandler:
    def test_calls_observability_when_available(self, fake_request):
        with patch.object(observability, "exception", return_value=True) as mock_exc:
            response = internal_server_error_handler(fake_request, RuntimeError("boom"))

        mock_exc.assert_called_once_with(
            "Unhandled exception on {method} {path}",
            method="POST",
            path="/api/pins",
        )
        assert response.status_code == 500

    def test_falls_back_to_stdlib_when_unavailable(self, fake_request):
        with patch.object(observability, "exception", return_value=False), \
             patch("quire.lib.exceptions.logger") as mock_logger:
            response = internal_server_error_handler(fake_request, RuntimeError("boom"))

        mock_logger.exception.assert_called_once_with(
            "Unhandled exception on %s %s", "POST", "/api/pins",
        )
        assert response.content == {"status_code": 500, "detail": "Internal Server Error"}

    def test_does_not_double_log(self, fake_request):
        with patch.object(observability, "exception", return_value=True), \
             patch("quire.lib.exceptions.logger") as mock_logger:
            internal_server_error_handler(fake_request, RuntimeError("boom"))

        mock_logger.exception.assert_not_called()


class TestObservabilityException:
    def test_returns_true_when_available(self):
        with patch.object(observability, "_logfire", MagicMock()) as mock_lf, \
             patch.object(observability, "_configured", True):
            assert observability.exception("test error") is True
            mock_lf.exception.assert_called_once_with("test error")

    def test_returns_false_when_unavailable(self):
        with patch.object(observability, "_logfire", None), \
             patch.object(observability, "_configured", False):
            assert observability.exception("test error") is False
