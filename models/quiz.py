from sqlalchemy import Column, Integer, String, JSON, Boolean, Float, Text, DateTime, ForeignKey, Index, UniqueConstraint
from models.base import Base, TimestampMixin, utcnow

class QuizQuestion(Base, TimestampMixin):
    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, index=True)
    target_role = Column(String(20), default="doer", index=True, nullable=False)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(20), default="single_choice", nullable=False)
    # [{"id": 1, "label": "..."}, ...]
    options = Column(JSON, nullable=False)
    # Never serialized to the quiz taker
    correct_option_ids = Column(JSON, nullable=False)
    explanation = Column(Text, nullable=True)
    points = Column(Integer, default=1, nullable=False)
    sequence_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    # Attempt numbers never repeat per profile, even when submissions race
    __table_args__ = (UniqueConstraint("profile_id", "attempt_number", name="uq_quiz_attempts_profile_number"),)

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), index=True, nullable=False)
    target_role = Column(String(20), default="doer", nullable=False)
    attempt_number = Column(Integer, nullable=False)
    score_percentage = Column(Float, nullable=False)
    correct_answers = Column(Integer, nullable=False)
    total_questions = Column(Integer, nullable=False)
    passing_score = Column(Float, nullable=False)
    is_passed = Column(Boolean, nullable=False)
    answers = Column(JSON, nullable=False)
    started_at = Column(DateTime, default=utcnow, nullable=False)
    completed_at = Column(DateTime, default=utcnow, nullable=False)

# Rolling-window rate limit lookups
Index("idx_quiz_attempts_profile_started", QuizAttempt.profile_id, QuizAttempt.started_at)
