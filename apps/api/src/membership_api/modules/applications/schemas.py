"""
Membership Application Schemas

Pydantic schemas for request validation and response serialization.

Answers are accepted with their canonical camelCase identifiers (e.g.
``fullName``) or the snake_case attribute names, and are always stored under
the camelCase identifiers.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from membership_api.modules.applications.models import ApplicationStatus

HTTP_URL_PATTERN = r"^https?://\S+$"


class MemberType(str, Enum):
    NEW = "NEW"
    RETURNING = "RETURNING"


class UniversityType(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class DecisionOutcome(str, Enum):
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


# ============================================
# Answers
# ============================================


class ApplicationAnswers(BaseModel):
    """
    Typed application form answers.

    Every field is optional so drafts can be saved partially; completeness for
    submission is decided separately. Strings are trimmed and blank strings
    become None. Unknown keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: EmailStr | None = Field(None, max_length=255)
    full_name: str | None = Field(None, alias="fullName", max_length=200)
    university_and_branch: str | None = Field(None, alias="universityAndBranch", max_length=200)
    current_year_level_and_program: str | None = Field(
        None, alias="currentYearLevelAndProgram", max_length=200
    )
    facebook_link: str | None = Field(
        None, alias="facebookLink", max_length=2048, pattern=HTTP_URL_PATTERN
    )
    resume_or_cv: str | None = Field(None, alias="resumeOrCv", min_length=3, max_length=2000)
    linked_in_link: str | None = Field(
        None, alias="linkedInLink", max_length=2048, pattern=HTTP_URL_PATTERN
    )
    hobbies_and_interests: str | None = Field(None, alias="hobbiesAndInterests", max_length=1000)
    personal_why: str | None = Field(None, alias="personalWhy", max_length=4000)
    current_building_or_want_to_build: str | None = Field(
        None, alias="currentBuildingOrWantToBuild", max_length=4000
    )
    why_ases_manila: str | None = Field(None, alias="whyAsesManila", max_length=4000)
    one_to_two_year_vision: str | None = Field(None, alias="oneToTwoYearVision", max_length=4000)
    five_year_vision: str | None = Field(None, alias="fiveYearVision", max_length=4000)
    unique_about_you: str | None = Field(None, alias="uniqueAboutYou", max_length=4000)
    member_type: MemberType | None = Field(None, alias="memberType")
    university_type: UniversityType | None = Field(None, alias="universityType")
    amount_paid: float | None = Field(None, alias="amountPaid", gt=0, allow_inf_nan=False)
    reference_number: str | None = Field(None, alias="referenceNumber", max_length=200)
    description: str | None = Field(None, max_length=1000)

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def to_stored(self, *, only_set: bool = False) -> dict[str, Any]:
        """
        Serialize to the stored answers map, keyed by canonical identifiers.

        With ``only_set`` the map contains just the fields present in the
        request (explicit nulls included), for merging into a draft.
        Otherwise it is a full snapshot without empty fields.
        """
        if only_set:
            return self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AnswersRequest(BaseModel):
    """Request body carrying form answers (draft save, submit, reapply)."""

    answers: ApplicationAnswers


# ============================================
# Applicant responses
# ============================================


class ApplicationResponse(BaseModel):
    """The applicant's own application record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    status: ApplicationStatus
    answers: dict[str, Any]
    payment_proof_key: str | None = None
    payment_proof_uploaded_at: datetime | None = None
    payment_verified_at: datetime | None = None
    submitted_at: datetime
    reviewed_at: datetime | None = None
    decision_note: str | None = None
    created_at: datetime
    updated_at: datetime


class ApplicationView(ApplicationResponse):
    """Application record plus the state flags the form needs."""

    can_submit: bool
    can_reapply: bool
    can_upload_payment_proof: bool
    membership_granted: bool
    is_complete_for_submission: bool
    missing_required_fields: list[str]
    missing_payment_proof: bool


class GetApplicationResponse(BaseModel):
    has_application: bool
    application: ApplicationView | None = None


class StartApplicationResponse(BaseModel):
    created: bool
    application: ApplicationResponse


class ProofUploadUrlRequest(BaseModel):
    """Request for a pre-signed payment proof upload URL."""

    content_type: str = Field(..., min_length=1, max_length=100)
    content_length: int = Field(..., gt=0)

    @field_validator("content_type")
    @classmethod
    def normalize_content_type(cls, value: str) -> str:
        return value.strip().lower()


class ProofUploadUrlResponse(BaseModel):
    upload_url: str
    object_key: str
    expires_in: int
    method: Literal["PUT"] = "PUT"
    required_headers: dict[str, str]
    attached_to_application: bool = True


class CancelApplicationResponse(BaseModel):
    cancelled: bool = True


# ============================================
# Admin schemas
# ============================================


class ApplicantInfo(BaseModel):
    """Owner of an application, as shown to admins."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    display_name: str | None = None
    onboarding_completed_at: datetime | None = None


class ApplicationSummary(BaseModel):
    """Application list item for the admin review queue."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    status: ApplicationStatus
    submitted_at: datetime
    payment_proof_key: str | None = None
    payment_proof_uploaded_at: datetime | None = None
    payment_verified_at: datetime | None = None
    payment_verified_by: UUID | None = None
    reviewed_at: datetime | None = None
    reviewed_by: UUID | None = None
    decision_note: str | None = None
    payment_proof_view_url: str | None = None
    applicant: ApplicantInfo | None = None


class ApplicationDetail(ApplicationSummary):
    """Full application for admin review, including the raw answers."""

    answers: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    applications: list[ApplicationSummary]
    total: int


class DecisionRequest(BaseModel):
    """Admin decision on a pending application."""

    outcome: DecisionOutcome
    note: str | None = Field(None, max_length=2000)

    @field_validator("note", mode="before")
    @classmethod
    def blank_note_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value
