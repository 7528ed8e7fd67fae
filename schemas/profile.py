from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DoerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    profile_id: int
    qualification: Optional[str] = None
    bio: Optional[str] = None
    bank_name: Optional[str] = None
    is_activated: bool
    total_earnings: float
    average_rating: float


class DoerProfileUpdate(BaseModel):
    qualification: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=2000)
