"""
Onboarding Schemas
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class OnboardingSubmitRequest(BaseModel):
    """Free-form onboarding answers, keyed by question id."""

    answers: dict[str, Any] = Field(..., min_length=1)


class OnboardingStatusResponse(BaseModel):
    completed: bool
    submitted_at: datetime | None = None
    answers: dict[str, Any] | None = None


class OnboardingResetResponse(BaseModel):
    user_id: UUID
    reset: bool = True
