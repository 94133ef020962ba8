"""
Fixtures for onboarding tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from membership_api.modules.applications.models import Application, ApplicationStatus
from membership_api.modules.onboarding.models import OnboardingResponse
from membership_api.modules.users.models import User, UserRole


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def member():
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.email = "member@example.org"
    user.role = UserRole.MEMBER
    user.onboarding_completed_at = None
    return user


@pytest.fixture
def make_status_application():
    def _make(user_id, status: ApplicationStatus):
        app = MagicMock(spec=Application)
        app.id = uuid4()
        app.user_id = user_id
        app.status = status
        return app

    return _make


@pytest.fixture
def onboarding_response(member):
    response = MagicMock(spec=OnboardingResponse)
    response.id = uuid4()
    response.user_id = member.id
    response.answers = {"tshirtSize": "M", "discordHandle": "juan#1234"}
    response.submitted_at = datetime.now(UTC)
    return response
