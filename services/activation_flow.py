"""
Doer activation state machine.

Activation runs in a fixed order: training -> quiz -> bank_details -> activated.
Each step is backed by a boolean flag and a timestamp column on
``DoerActivation``. Flags only ever go from False to True.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from core.exceptions import ActivationStateError


class ActivationStep(str, Enum):
    TRAINING = "training"
    QUIZ = "quiz"
    BANK_DETAILS = "bank_details"
    ACTIVATED = "activated"


STEP_ORDER = (ActivationStep.TRAINING, ActivationStep.QUIZ, ActivationStep.BANK_DETAILS)

TRANSITIONS = {
    ActivationStep.TRAINING: ActivationStep.QUIZ,
    ActivationStep.QUIZ: ActivationStep.BANK_DETAILS,
    ActivationStep.BANK_DETAILS: ActivationStep.ACTIVATED,
}

# step -> (flag column, timestamp column)
STEP_FIELDS = {
    ActivationStep.TRAINING: ("training_completed", "training_completed_at"),
    ActivationStep.QUIZ: ("quiz_passed", "quiz_passed_at"),
    ActivationStep.BANK_DETAILS: ("bank_details_added", "bank_details_added_at"),
}


def current_step(record) -> ActivationStep:
    """Return the first step whose flag is not yet set."""
    for step in STEP_ORDER:
        flag, _ = STEP_FIELDS[step]
        if not getattr(record, flag):
            return step
    return ActivationStep.ACTIVATED


def is_step_completed(record, step: ActivationStep) -> bool:
    if step == ActivationStep.ACTIVATED:
        return bool(record.is_fully_activated)
    flag, _ = STEP_FIELDS[step]
    return bool(getattr(record, flag))


def complete_step(record, step: ActivationStep, now: datetime) -> bool:
    """
    Mark ``step`` as done on ``record``.

    Returns True when the record changed and False when the step was already
    complete. Raises ActivationStateError if an earlier step is still open.
    """
    if step == ActivationStep.ACTIVATED:
        raise ActivationStateError("Activation is reached by completing bank details")

    if is_step_completed(record, step):
        return False

    expected = current_step(record)
    if expected != step:
        raise ActivationStateError(f"Cannot complete '{step.value}' before '{expected.value}'")

    flag, stamp = STEP_FIELDS[step]
    setattr(record, flag, True)
    setattr(record, stamp, now)

    if TRANSITIONS[step] == ActivationStep.ACTIVATED:
        record.is_fully_activated = True
        record.activated_at = now
    return True


@dataclass(frozen=True)
class RateLimitDecision:
    rate_limited: bool
    retry_after_minutes: Optional[int] = None


def check_rate_limit(
    attempt_times: Iterable[datetime],
    now: datetime,
    max_attempts: int = 3,
    window_minutes: int = 60,
) -> RateLimitDecision:
    """
    Rolling-window limit on quiz attempts.

    When the window is full, the caller may retry once the oldest attempt
    inside the window ages out.
    """
    window = timedelta(minutes=window_minutes)
    recent = sorted(t for t in attempt_times if t >= now - window)
    if len(recent) < max_attempts:
        return RateLimitDecision(rate_limited=False)

    retry_at = recent[0] + window
    minutes = math.floor((retry_at - now).total_seconds() / 60)
    return RateLimitDecision(rate_limited=True, retry_after_minutes=max(1, minutes))
