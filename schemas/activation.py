import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
UPI_PATTERN = re.compile(r"^[\w.-]+@[\w]+$")
HOLDER_NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")


class ActivationStatus(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    doer_id: int
    training_completed: bool
    training_completed_at: Optional[datetime] = None
    quiz_passed: bool
    quiz_passed_at: Optional[datetime] = None
    total_quiz_attempts: int
    bank_details_added: bool
    bank_details_added_at: Optional[datetime] = None
    is_fully_activated: bool
    activated_at: Optional[datetime] = None


class ActivationStepOut(BaseModel):
    doer_id: int
    current_step: str
    is_fully_activated: bool


class BankDetails(BaseModel):
    """Payout details submitted in the last activation step."""
    account_holder_name: str = Field(..., min_length=2, max_length=100)
    account_number: str = Field(..., min_length=9, max_length=18)
    confirm_account_number: Optional[str] = None
    ifsc_code: str = Field(..., min_length=11, max_length=11)
    bank_name: Optional[str] = Field(None, max_length=255)
    upi_id: Optional[str] = None

    @field_validator("account_holder_name")
    @classmethod
    def holder_name_letters_only(cls, value: str) -> str:
        if not HOLDER_NAME_PATTERN.match(value):
            raise ValueError("Name can only contain letters and spaces")
        return value.strip()

    @field_validator("account_number")
    @classmethod
    def account_number_digits(cls, value: str) -> str:
        if not value.isdigit():
            raise ValueError("Account number must contain only digits")
        return value

    @field_validator("ifsc_code")
    @classmethod
    def ifsc_format(cls, value: str) -> str:
        value = value.upper()
        if not IFSC_PATTERN.match(value):
            raise ValueError("Invalid IFSC code format (e.g., SBIN0001234)")
        return value

    @field_validator("upi_id")
    @classmethod
    def upi_format(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if not UPI_PATTERN.match(value):
            raise ValueError("Invalid UPI ID format (e.g., name@upi)")
        return value

    @model_validator(mode="after")
    def account_numbers_match(self):
        if self.confirm_account_number is not None and self.confirm_account_number != self.account_number:
            raise ValueError("Account numbers do not match")
        return self


class TrainingModuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    content_url: Optional[str] = None
    sequence_order: int
    is_mandatory: bool


class TrainingProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    module_id: int
    status: str
    progress_percentage: int
    completed_at: Optional[datetime] = None


class TrainingProgressUpdate(BaseModel):
    status: str = Field(..., pattern="^(not_started|in_progress|completed)$")
    progress_percentage: int = Field(0, ge=0, le=100)
