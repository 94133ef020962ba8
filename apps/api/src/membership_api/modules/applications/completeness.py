"""
Application Completeness

Pure functions deciding whether an answers map is ready for submission.
Missing fields are always reported in the canonical REQUIRED_FIELD_IDS order,
independent of the answers map's key order.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

# Canonical order of the fields required for submission
REQUIRED_FIELD_IDS: tuple[str, ...] = (
    "email",
    "fullName",
    "universityAndBranch",
    "currentYearLevelAndProgram",
    "facebookLink",
    "resumeOrCv",
    "hobbiesAndInterests",
    "personalWhy",
    "currentBuildingOrWantToBuild",
    "whyAsesManila",
    "oneToTwoYearVision",
    "fiveYearVision",
    "uniqueAboutYou",
    "memberType",
    "universityType",
    "amountPaid",
    "referenceNumber",
)

OPTIONAL_FIELD_IDS: tuple[str, ...] = ("description", "linkedInLink")


@dataclass(frozen=True)
class CompletenessResult:
    missing_required_fields: list[str] = field(default_factory=list)
    missing_payment_proof: bool = False

    @property
    def is_complete(self) -> bool:
        return not self.missing_required_fields and not self.missing_payment_proof


def has_non_empty_value(value: Any) -> bool:
    """
    Whether a single answer counts as filled in.

    Present: non-blank string, finite number, any boolean, non-empty list,
    non-empty mapping. Everything else (None, "", NaN, infinities) is missing.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    if isinstance(value, Mapping):
        return len(value) > 0
    return False


def get_missing_required_fields(
    answers: Mapping[str, Any] | None,
    required: Sequence[str] = REQUIRED_FIELD_IDS,
) -> list[str]:
    """Return the required field ids without a value, in ``required`` order."""
    answers = answers or {}
    return [field_id for field_id in required if not has_non_empty_value(answers.get(field_id))]


def evaluate_completeness(
    answers: Mapping[str, Any] | None,
    payment_proof_key: str | None,
    required: Sequence[str] = REQUIRED_FIELD_IDS,
) -> CompletenessResult:
    """Evaluate answers plus proof presence for submission readiness."""
    return CompletenessResult(
        missing_required_fields=get_missing_required_fields(answers, required),
        missing_payment_proof=not payment_proof_key,
    )
