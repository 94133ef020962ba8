"""
HTTP-level tests for the routers.

Services are patched; these tests check routing, auth dependencies, status
codes and the error body shape.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from membership_api.core.auth import CurrentUser, get_current_user
from membership_api.core.database import get_db
from membership_api.core.storage import get_proof_storage
from membership_api.main import app
from membership_api.modules.applications.models import Application, ApplicationStatus
from membership_api.modules.applications.service import (
    ApplicationIncompleteError,
    PaymentNotVerifiedError,
)

APPLICATION_SERVICE = "membership_api.modules.applications.service"


def _application(status: ApplicationStatus = ApplicationStatus.DRAFT):
    now = datetime.now(UTC)
    application = MagicMock(spec=Application)
    application.id = uuid4()
    application.user_id = uuid4()
    application.status = status
    application.answers = {}
    application.payment_proof_key = None
    application.payment_proof_uploaded_at = None
    application.payment_verified_at = None
    application.submitted_at = now
    application.reviewed_at = None
    application.decision_note = None
    application.created_at = now
    application.updated_at = now
    return application


@pytest.fixture
def member():
    return CurrentUser(id=uuid4(), email="member@example.org", role="MEMBER")


@pytest.fixture
def admin():
    return CurrentUser(id=uuid4(), email="admin@example.org", role="ADMIN")


@pytest.fixture
def client():
    async def _db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_proof_storage] = lambda: MagicMock()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def as_member(client, member):
    app.dependency_overrides[get_current_user] = lambda: member
    return client


@pytest.fixture
def as_admin(client, admin):
    app.dependency_overrides[get_current_user] = lambda: admin
    return client


@pytest.fixture(autouse=True)
def no_redis():
    with patch("membership_api.core.redis.redis_client", None):
        yield


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_requires_authentication(client):
    response = client.get("/api/v1/application")
    assert response.status_code in (401, 403)


def test_start_application_created(as_member):
    application = _application()

    with patch(
        f"{APPLICATION_SERVICE}.start_application", AsyncMock(return_value=(application, True))
    ):
        response = as_member.post("/api/v1/application/start")

    assert response.status_code == 201
    assert response.json()["created"] is True
    assert response.json()["application"]["status"] == "DRAFT"


def test_start_application_existing(as_member):
    application = _application(ApplicationStatus.PENDING)

    with patch(
        f"{APPLICATION_SERVICE}.start_application", AsyncMock(return_value=(application, False))
    ):
        response = as_member.post("/api/v1/application/start")

    assert response.status_code == 200
    assert response.json()["created"] is False


def test_submit_incomplete_error_body(as_member):
    error = ApplicationIncompleteError(["facebookLink"], False)

    with patch(f"{APPLICATION_SERVICE}.submit_application", AsyncMock(side_effect=error)):
        response = as_member.post("/api/v1/application/submit", json={"answers": {}})

    assert response.status_code == 409
    assert response.json()["detail"] == {
        "error": "APPLICATION_INCOMPLETE",
        "message": "Application is incomplete.",
        "missing_required_fields": ["facebookLink"],
        "missing_payment_proof": False,
    }


def test_invalid_answers_rejected(as_member):
    response = as_member.put(
        "/api/v1/application/draft", json={"answers": {"amountPaid": -10}}
    )
    assert response.status_code == 422


def test_unexpected_error_is_500(as_member):
    with patch(
        f"{APPLICATION_SERVICE}.get_application", AsyncMock(side_effect=RuntimeError("boom"))
    ):
        response = as_member.get("/api/v1/application")

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "INTERNAL_ERROR"


def test_admin_endpoints_forbidden_for_members(as_member):
    response = as_member.get("/api/v1/admin/applications")

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "ADMIN_ACCESS_REQUIRED"


def test_admin_decision_payment_not_verified(as_admin):
    with patch(
        f"{APPLICATION_SERVICE}.admin_decide", AsyncMock(side_effect=PaymentNotVerifiedError())
    ):
        response = as_admin.post(
            f"/api/v1/admin/applications/{uuid4()}/decision",
            json={"outcome": "ACCEPTED"},
        )

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "PAYMENT_NOT_VERIFIED"


def test_admin_decision_invalid_outcome(as_admin):
    response = as_admin.post(
        f"/api/v1/admin/applications/{uuid4()}/decision",
        json={"outcome": "PENDING"},
    )
    assert response.status_code == 422


def test_admin_list_applications(as_admin):
    with patch(f"{APPLICATION_SERVICE}.admin_list_applications", AsyncMock(return_value=[])):
        response = as_admin.get("/api/v1/admin/applications")

    assert response.status_code == 200
    assert response.json() == {"applications": [], "total": 0}


def test_ready_without_redis(client):
    with (
        patch("membership_api.main.ping_db", AsyncMock(return_value=True)),
        patch("membership_api.main.ping_redis", AsyncMock(return_value=False)),
    ):
        response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "database": "ok", "redis": "unavailable"}


def test_not_ready_without_database(client):
    with (
        patch("membership_api.main.ping_db", AsyncMock(return_value=False)),
        patch("membership_api.main.ping_redis", AsyncMock(return_value=True)),
    ):
        response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"
