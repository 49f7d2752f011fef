"""Per-step failure policy for external calls made during checkout."""
from __future__ import annotations

from enum import Enum
from typing import Dict


class SubmissionStep(str, Enum):
    EXCHANGE_RATE = "exchange_rate"
    PAYMENT_PREFERENCE = "payment_preference"
    DELIVERY_SCHEDULING = "delivery_scheduling"


class FailurePolicy(str, Enum):
    SOFT = "soft"  # Log and continue as on success
    HARD = "hard"  # Abort the attempt and surface an error


FAILURE_POLICY: Dict[SubmissionStep, FailurePolicy] = {
    SubmissionStep.EXCHANGE_RATE: FailurePolicy.SOFT,
    SubmissionStep.PAYMENT_PREFERENCE: FailurePolicy.HARD,
    SubmissionStep.DELIVERY_SCHEDULING: FailurePolicy.SOFT,
}


def policy_for(step: SubmissionStep) -> FailurePolicy:
    return FAILURE_POLICY[step]


def is_tolerated(step: SubmissionStep) -> bool:
    return FAILURE_POLICY[step] is FailurePolicy.SOFT
