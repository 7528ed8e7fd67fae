"""
Quiz schemas.

``QuizQuestionPublic`` is the only question shape that leaves the server.
``QuizQuestionKey`` carries the answer key and is used for scoring only.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QuizOption(BaseModel):
    id: int = Field(..., description="Option identifier")
    label: str = Field(..., description="Option text", max_length=500)


class QuizQuestionPublic(BaseModel):
    """A quiz question as shown to the quiz taker (answer key stripped)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    target_role: str
    question_text: str
    question_type: str
    options: List[QuizOption]
    explanation: Optional[str] = None
    points: int = 1
    sequence_order: int = 0


class QuizQuestionKey(BaseModel):
    """A question together with its accepted options. Server side only."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    options: List[QuizOption] = Field(..., min_length=1)
    correct_option_ids: List[int] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_correct_ids_reference_options(self):
        option_ids = {option.id for option in self.options}
        unknown = [option_id for option_id in self.correct_option_ids if option_id not in option_ids]
        if unknown:
            raise ValueError(f"correct_option_ids reference unknown options: {unknown}")
        return self


class QuizSubmitRequest(BaseModel):
    """Answers keyed by question id. Unanswered questions may be omitted."""
    answers: Dict[int, int] = Field(default_factory=dict, description="question id -> selected option id")


class QuizAttemptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    attempt_number: int
    score_percentage: float
    correct_answers: int
    total_questions: int
    passing_score: float
    is_passed: bool
    started_at: datetime
    completed_at: datetime


class QuizSubmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attempt: Optional[QuizAttemptOut] = None
    passed: bool = False
    rate_limited: bool = False
    retry_after_minutes: Optional[int] = None
    remaining_attempts: int = 0
