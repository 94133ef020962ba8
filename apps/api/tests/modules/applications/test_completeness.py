"""
Unit tests for the application completeness evaluator.
"""

import math

import pytest

from membership_api.modules.applications.completeness import (
    OPTIONAL_FIELD_IDS,
    REQUIRED_FIELD_IDS,
    evaluate_completeness,
    get_missing_required_fields,
    has_non_empty_value,
)


class TestHasNonEmptyValue:
    """Tests for the single-value presence rule."""

    @pytest.mark.parametrize(
        "value",
        ["x", "  padded  ", 0, 500, 12.5, True, False, ["a"], {"k": "v"}],
    )
    def test_present_values(self, value):
        assert has_non_empty_value(value) is True

    @pytest.mark.parametrize(
        "value",
        [None, "", "   ", "\n\t", math.nan, math.inf, -math.inf, [], {}, object()],
    )
    def test_missing_values(self, value):
        assert has_non_empty_value(value) is False


class TestGetMissingRequiredFields:
    """Tests for missing required field detection."""

    def test_required_and_optional_fields(self):
        """Seventeen required fields, description and LinkedIn optional."""
        assert len(REQUIRED_FIELD_IDS) == 17
        assert set(OPTIONAL_FIELD_IDS) == {"description", "linkedInLink"}
        assert not set(OPTIONAL_FIELD_IDS) & set(REQUIRED_FIELD_IDS)

    def test_empty_answers_missing_everything(self):
        assert get_missing_required_fields({}) == list(REQUIRED_FIELD_IDS)

    def test_none_answers_missing_everything(self):
        assert get_missing_required_fields(None) == list(REQUIRED_FIELD_IDS)

    def test_complete_answers_missing_nothing(self, complete_answers):
        assert get_missing_required_fields(complete_answers) == []

    def test_optional_fields_not_required(self, complete_answers):
        """Blank optional fields never show up as missing."""
        answers = {**complete_answers, "description": "", "linkedInLink": None}
        assert get_missing_required_fields(answers) == []

    def test_missing_fields_in_canonical_order(self, complete_answers):
        """Order follows the required list, not the answers map."""
        answers = dict(reversed(list(complete_answers.items())))
        answers["referenceNumber"] = "  "
        answers["email"] = ""
        answers["memberType"] = None

        assert get_missing_required_fields(answers) == ["email", "memberType", "referenceNumber"]

    def test_zero_amount_counts_as_present(self, complete_answers):
        """Presence is about having a value, not about it being valid."""
        answers = {**complete_answers, "amountPaid": 0}
        assert "amountPaid" not in get_missing_required_fields(answers)

    def test_nan_amount_counts_as_missing(self, complete_answers):
        answers = {**complete_answers, "amountPaid": math.nan}
        assert get_missing_required_fields(answers) == ["amountPaid"]

    def test_custom_required_list(self):
        assert get_missing_required_fields({"a": "x"}, required=("a", "b")) == ["b"]


class TestEvaluateCompleteness:
    """Tests for the combined answers + payment proof check."""

    def test_complete_with_proof(self, complete_answers):
        result = evaluate_completeness(complete_answers, "applications/u/proof.png")

        assert result.is_complete is True
        assert result.missing_required_fields == []
        assert result.missing_payment_proof is False

    def test_complete_answers_without_proof(self, complete_answers):
        result = evaluate_completeness(complete_answers, None)

        assert result.is_complete is False
        assert result.missing_required_fields == []
        assert result.missing_payment_proof is True

    def test_empty_proof_key_counts_as_missing(self, complete_answers):
        result = evaluate_completeness(complete_answers, "")
        assert result.missing_payment_proof is True

    def test_partial_answers_with_proof(self, complete_answers):
        answers = {**complete_answers}
        del answers["facebookLink"]

        result = evaluate_completeness(answers, "applications/u/proof.png")

        assert result.is_complete is False
        assert result.missing_required_fields == ["facebookLink"]
        assert result.missing_payment_proof is False
