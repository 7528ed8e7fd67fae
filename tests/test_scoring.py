from dataclasses import dataclass, field
from typing import List

import pytest

from services.scoring import (
    ScoreResult,
    calculate_score,
    is_answer_correct,
    is_passed,
    remaining_attempts,
)


@dataclass
class Question:
    id: int
    correct_option_ids: List[int] = field(default_factory=lambda: [1])


@pytest.fixture
def questions():
    return [Question(id=i) for i in range(1, 6)]


def test_all_correct_scores_full_marks(questions):
    result = calculate_score(questions, {q.id: 1 for q in questions})
    assert result == ScoreResult(correct_count=5, total_questions=5, percentage=100.0)


def test_unanswered_questions_count_as_wrong(questions):
    result = calculate_score(questions, {1: 1, 2: 1})
    assert result.correct_count == 2
    assert result.total_questions == 5
    assert result.percentage == 40.0


def test_empty_question_set_scores_zero():
    result = calculate_score([], {1: 1})
    assert result == ScoreResult(correct_count=0, total_questions=0, percentage=0.0)


def test_answers_for_unknown_questions_are_ignored(questions):
    result = calculate_score(questions, {99: 1, 100: 1})
    assert result.correct_count == 0
    assert result.total_questions == 5


def test_any_accepted_option_is_correct():
    question = Question(id=1, correct_option_ids=[2, 4])
    assert is_answer_correct(question, 2)
    assert is_answer_correct(question, 4)
    assert not is_answer_correct(question, 1)
    assert not is_answer_correct(question, None)


def test_score_is_order_independent(questions):
    answers = {1: 1, 3: 1, 5: 2}
    forward = calculate_score(questions, answers)
    backward = calculate_score(list(reversed(questions)), dict(reversed(list(answers.items()))))
    assert forward == backward


def test_percentage_is_not_rounded():
    three = [Question(id=i) for i in range(1, 4)]
    result = calculate_score(three, {1: 1})
    assert result.percentage == pytest.approx(100 / 3)


@pytest.mark.parametrize("percentage, passed", [(80, True), (79.99, False), (100, True), (0, False)])
def test_passing_threshold_is_inclusive(percentage, passed):
    assert is_passed(percentage) is passed


def test_custom_passing_threshold():
    assert is_passed(60, passing_threshold=60)
    assert not is_passed(59, passing_threshold=60)


@pytest.mark.parametrize("previous, expected", [(0, 3), (1, 2), (3, 0), (7, 0)])
def test_remaining_attempts_never_negative(previous, expected):
    assert remaining_attempts(previous) == expected
