"""
Unit tests for membership application request schemas.
"""

import pytest
from pydantic import ValidationError

from membership_api.modules.applications.schemas import (
    ApplicationAnswers,
    DecisionOutcome,
    DecisionRequest,
    MemberType,
    ProofUploadUrlRequest,
)


class TestApplicationAnswers:
    """Tests for the typed answers payload."""

    def test_accepts_canonical_ids(self, complete_answers):
        answers = ApplicationAnswers.model_validate(complete_answers)

        assert answers.full_name == "Juan Dela Cruz"
        assert answers.member_type == MemberType.NEW
        assert answers.amount_paid == 500

    def test_accepts_snake_case_names(self):
        answers = ApplicationAnswers.model_validate({"full_name": "Juan"})
        assert answers.full_name == "Juan"

    def test_strips_and_blanks_to_none(self):
        answers = ApplicationAnswers.model_validate({"fullName": "  Juan  ", "personalWhy": "   "})

        assert answers.full_name == "Juan"
        assert answers.personal_why is None

    def test_unknown_keys_ignored(self):
        answers = ApplicationAnswers.model_validate({"fullName": "Juan", "favouriteColour": "red"})
        assert "favouriteColour" not in answers.to_stored()

    @pytest.mark.parametrize("amount", [0, -5, "abc"])
    def test_invalid_amount(self, amount):
        with pytest.raises(ValidationError):
            ApplicationAnswers.model_validate({"amountPaid": amount})

    def test_non_finite_amount_rejected(self):
        with pytest.raises(ValidationError):
            ApplicationAnswers.model_validate({"amountPaid": float("inf")})

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            ApplicationAnswers.model_validate({"email": "not-an-email"})

    @pytest.mark.parametrize("link", ["facebook.com/juan", "ftp://facebook.com/juan"])
    def test_links_must_be_http(self, link):
        with pytest.raises(ValidationError):
            ApplicationAnswers.model_validate({"facebookLink": link})

    def test_invalid_enum(self):
        with pytest.raises(ValidationError):
            ApplicationAnswers.model_validate({"universityType": "ONLINE"})

    def test_to_stored_snapshot_uses_canonical_ids(self, complete_answers):
        stored = ApplicationAnswers.model_validate(
            {**complete_answers, "description": ""}
        ).to_stored()

        assert set(stored) == set(complete_answers)
        assert stored["memberType"] == "NEW"
        assert stored["currentYearLevelAndProgram"] == "3rd Year BS Computer Science"

    def test_to_stored_only_set_keeps_explicit_nulls(self):
        stored = ApplicationAnswers.model_validate(
            {"fullName": "Juan", "linkedInLink": None}
        ).to_stored(only_set=True)

        assert stored == {"fullName": "Juan", "linkedInLink": None}


class TestProofUploadUrlRequest:
    def test_content_type_normalized(self):
        request = ProofUploadUrlRequest(content_type=" Image/PNG ", content_length=10)
        assert request.content_type == "image/png"

    @pytest.mark.parametrize("length", [0, -1])
    def test_content_length_positive(self, length):
        with pytest.raises(ValidationError):
            ProofUploadUrlRequest(content_type="image/png", content_length=length)


class TestDecisionRequest:
    def test_blank_note_becomes_none(self):
        request = DecisionRequest(outcome="REJECTED", note="   ")

        assert request.outcome == DecisionOutcome.REJECTED
        assert request.note is None

    @pytest.mark.parametrize("outcome", ["PENDING", "DRAFT", "accepted"])
    def test_only_accept_or_reject(self, outcome):
        with pytest.raises(ValidationError):
            DecisionRequest(outcome=outcome)
