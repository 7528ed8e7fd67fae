"""
Quiz scoring.

Pure functions with no I/O. The answer key is only ever available on the
server, so these run where the quiz taker cannot see ``correct_option_ids``;
callers return the resulting ``ScoreResult``, never the key.
"""
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Protocol, Sequence

DEFAULT_PASSING_SCORE = 80
DEFAULT_MAX_ATTEMPTS = 3


class ScorableQuestion(Protocol):
    id: int
    correct_option_ids: Sequence[int]


@dataclass(frozen=True)
class ScoreResult:
    correct_count: int
    total_questions: int
    percentage: float


def is_answer_correct(question: ScorableQuestion, selected_option_id: Optional[int]) -> bool:
    """A selection is correct when it is one of the accepted options."""
    if selected_option_id is None:
        return False
    return selected_option_id in question.correct_option_ids


def calculate_score(questions: Iterable[ScorableQuestion], answers: Mapping[int, int]) -> ScoreResult:
    questions = list(questions)
    correct_count = sum(
        1 for question in questions
        if is_answer_correct(question, answers.get(question.id))
    )
    total = len(questions)
    percentage = (correct_count / total) * 100 if total > 0 else 0.0
    return ScoreResult(correct_count=correct_count, total_questions=total, percentage=percentage)


def is_passed(percentage: float, passing_threshold: float = DEFAULT_PASSING_SCORE) -> bool:
    return percentage >= passing_threshold


def remaining_attempts(previous_attempts: int, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> int:
    return max(0, max_attempts - previous_attempts)
