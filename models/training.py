from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime, ForeignKey, UniqueConstraint
from models.base import Base, TimestampMixin

class TrainingModule(Base, TimestampMixin):
    __tablename__ = "training_modules"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    content_url = Column(String(500), nullable=True)
    sequence_order = Column(Integer, default=0, nullable=False)
    is_mandatory = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class TrainingProgress(Base, TimestampMixin):
    __tablename__ = "training_progress"
    __table_args__ = (UniqueConstraint("profile_id", "module_id", name="uq_training_progress_profile_module"),)

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), index=True, nullable=False)
    module_id = Column(Integer, ForeignKey("training_modules.id"), nullable=False)
    status = Column(String(20), default="not_started", nullable=False)  # not_started, in_progress, completed
    progress_percentage = Column(Integer, default=0, nullable=False)
    completed_at = Column(DateTime, nullable=True)
