from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Integer, String, Boolean, Float, BigInteger, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base, TimestampMixin, utcnow

ACTIVE_STATUSES = ("assigned", "in_progress", "in_revision", "revision_requested")
REVIEW_STATUSES = ("submitted_for_qc", "qc_in_progress", "qc_approved", "delivered")
COMPLETED_STATUSES = ("completed", "auto_approved")

PROJECT_STATUSES = ("paid",) + ACTIVE_STATUSES + REVIEW_STATUSES + COMPLETED_STATUSES + ("cancelled",)


def is_deadline_urgent(deadline: datetime, now: Optional[datetime] = None) -> bool:
    """Less than 24 hours left, and not already past."""
    now = now or utcnow()
    hours_left = (deadline - now).total_seconds() / 3600
    return 0 < hours_left < 24


class Project(Base, TimestampMixin):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    project_number = Column(String(50), unique=True, nullable=True)
    title = Column(String(255), nullable=False)
    subject = Column(String(100), nullable=True)
    status = Column(String(30), default="paid", index=True, nullable=False)

    doer_id = Column(Integer, ForeignKey("doers.id"), index=True, nullable=True)
    supervisor_id = Column(Integer, ForeignKey("supervisors.id"), index=True, nullable=True)

    deadline = Column(DateTime, nullable=True)
    doer_payout = Column(Float, default=0.0, nullable=False)
    is_urgent = Column(Boolean, default=False, nullable=False)

    doer_assigned_at = Column(DateTime, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    doer = relationship("Doer")
    supervisor = relationship("Supervisor")


class ProjectDeliverable(Base, TimestampMixin):
    __tablename__ = "project_deliverables"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), index=True, nullable=False)
    uploaded_by = Column(Integer, ForeignKey("doers.id"), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1000), nullable=False)
    file_type = Column(String(100), nullable=True)
    file_size_bytes = Column(BigInteger, nullable=True)
    version = Column(Integer, default=1, nullable=False)
    qc_status = Column(String(20), default="pending", nullable=False)  # pending, approved, rejected
