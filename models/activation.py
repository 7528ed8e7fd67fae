from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey
from models.base import Base, TimestampMixin

class DoerActivation(Base, TimestampMixin):
    __tablename__ = "doer_activation"

    id = Column(Integer, primary_key=True, index=True)
    doer_id = Column(Integer, ForeignKey("doers.id"), unique=True, index=True, nullable=False)

    training_completed = Column(Boolean, default=False, nullable=False)
    training_completed_at = Column(DateTime, nullable=True)

    quiz_passed = Column(Boolean, default=False, nullable=False)
    quiz_passed_at = Column(DateTime, nullable=True)
    quiz_attempt_id = Column(Integer, ForeignKey("quiz_attempts.id"), nullable=True)
    total_quiz_attempts = Column(Integer, default=0, nullable=False)

    bank_details_added = Column(Boolean, default=False, nullable=False)
    bank_details_added_at = Column(DateTime, nullable=True)

    is_fully_activated = Column(Boolean, default=False, nullable=False)
    activated_at = Column(DateTime, nullable=True)
