from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models.project import PROJECT_STATUSES, is_deadline_urgent


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_number: Optional[str] = None
    title: str
    subject: Optional[str] = None
    status: str
    doer_id: Optional[int] = None
    supervisor_id: Optional[int] = None
    deadline: Optional[datetime] = None
    doer_payout: float = 0.0
    is_urgent: bool = False
    doer_assigned_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def flag_close_deadlines(self):
        # A deadline inside 24 hours marks the project urgent even when the stored flag is off
        if not self.is_urgent and self.deadline is not None:
            self.is_urgent = is_deadline_urgent(self.deadline)
        return self


class ProjectStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def known_status(cls, value: str) -> str:
        if value not in PROJECT_STATUSES:
            raise ValueError(f"Unknown project status: {value}")
        return value


class DeliverableCreate(BaseModel):
    """Metadata for a file already placed in object storage."""
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=1000)
    file_type: Optional[str] = Field(None, max_length=100)
    file_size_bytes: Optional[int] = Field(None, ge=0)


class DeliverableOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    uploaded_by: int
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size_bytes: Optional[int] = None
    version: int
    qc_status: str
    created_at: datetime


class DoerStats(BaseModel):
    active_count: int = 0
    completed_count: int = 0
    total_earnings: float = 0.0
    average_rating: float = 0.0
