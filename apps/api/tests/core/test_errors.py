"""
Unit tests for service error to HTTP conversion.
"""

import pytest
from fastapi import HTTPException

from membership_api.core.errors import ServiceError, raise_http_error, raise_internal_error


def test_raise_http_error_includes_details():
    error = ServiceError(
        message="Application is incomplete.",
        error_code="APPLICATION_INCOMPLETE",
        status_code=409,
        details={"missing_required_fields": ["email"], "missing_payment_proof": True},
    )

    with pytest.raises(HTTPException) as exc_info:
        raise_http_error(error)

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == {
        "error": "APPLICATION_INCOMPLETE",
        "message": "Application is incomplete.",
        "missing_required_fields": ["email"],
        "missing_payment_proof": True,
    }


def test_raise_internal_error_hides_cause():
    with pytest.raises(HTTPException) as exc_info:
        raise_internal_error(RuntimeError("db password is hunter2"), "testing")

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail["error"] == "INTERNAL_ERROR"
    assert "hunter2" not in exc_info.value.detail["message"]
