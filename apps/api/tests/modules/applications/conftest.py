"""
Fixtures for membership application tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from membership_api.core.storage import PaymentProofStorage, PresignedUpload
from membership_api.modules.applications.completeness import REQUIRED_FIELD_IDS
from membership_api.modules.applications.models import Application, ApplicationStatus
from membership_api.modules.users.models import User, UserRole


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.delete = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_storage():
    """Create a mock payment proof storage gateway."""
    storage = MagicMock(spec=PaymentProofStorage)
    storage.max_bytes = 10 * 1024 * 1024
    storage.build_object_key = MagicMock(
        return_value="applications/user/payment-proof-1700000000000-abc.png"
    )
    storage.create_upload_url = AsyncMock(
        return_value=PresignedUpload(url="https://storage.test/upload?sig=1", expires_in=900)
    )
    storage.create_view_url = AsyncMock(return_value="https://storage.test/view?sig=1")
    storage.object_exists = AsyncMock(return_value=True)
    return storage


@pytest.fixture
def complete_answers():
    """Answers payload with every required field filled (canonical ids)."""
    return {
        "email": "applicant@example.org",
        "fullName": "Juan Dela Cruz",
        "universityAndBranch": "University of the Philippines Diliman",
        "currentYearLevelAndProgram": "3rd Year BS Computer Science",
        "facebookLink": "https://facebook.com/juan",
        "resumeOrCv": "https://drive.example.org/cv.pdf",
        "hobbiesAndInterests": "Robotics, chess",
        "personalWhy": "I want to build things that matter.",
        "currentBuildingOrWantToBuild": "A marketplace for student tutors.",
        "whyAsesManila": "To meet other builders.",
        "oneToTwoYearVision": "Launch my first product.",
        "fiveYearVision": "Run a profitable company.",
        "uniqueAboutYou": "I have shipped three side projects.",
        "memberType": "NEW",
        "universityType": "PUBLIC",
        "amountPaid": 500,
        "referenceNumber": "GCASH-12345",
    }


@pytest.fixture
def make_application():
    """Factory for application model mocks in a given status."""

    def _make(
        status: ApplicationStatus = ApplicationStatus.DRAFT,
        answers: dict | None = None,
        payment_proof_key: str | None = None,
        payment_verified: bool = False,
    ):
        now = datetime.now(UTC)
        app = MagicMock(spec=Application)
        app.id = uuid4()
        app.user_id = uuid4()
        app.status = status
        app.answers = answers if answers is not None else {}
        app.payment_proof_key = payment_proof_key
        app.payment_proof_uploaded_at = now if payment_proof_key else None
        app.payment_verified_at = now if payment_verified else None
        app.payment_verified_by = uuid4() if payment_verified else None
        app.submitted_at = now
        app.reviewed_at = None
        app.reviewed_by = None
        app.decision_note = None
        app.created_at = now
        app.updated_at = now
        return app

    return _make


@pytest.fixture
def sample_user():
    """Create a sample member user."""
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.email = "applicant@example.org"
    user.display_name = "Juan Dela Cruz"
    user.avatar_url = None
    user.role = UserRole.MEMBER
    user.onboarding_completed_at = None
    user.created_at = datetime.now(UTC)
    return user


@pytest.fixture
def required_field_ids():
    return list(REQUIRED_FIELD_IDS)
