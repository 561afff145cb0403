from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.feedback import ComplaintStatus


class ReviewCreate(BaseModel):
    clinic_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    clinic_id: int
    rating: int
    comment: Optional[str] = None
    is_public: bool
    created_at: datetime


class ComplaintCreate(BaseModel):
    clinic_id: int
    subject: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)


class ComplaintResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    clinic_id: int
    subject: str
    description: str
    status: ComplaintStatus
    resolution: Optional[str] = None
    created_at: datetime
