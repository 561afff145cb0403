from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.offer import OfferStatus
from .appointment import AppointmentResponse
from .profile import ClinicSummary, PatientResponse


class OfferCreate(BaseModel):
    treatment_plan_id: int
    therapy_cost: int = Field(0, ge=0)
    orthopedics_cost: int = Field(0, ge=0)
    surgery_cost: int = Field(0, ge=0)
    hygiene_cost: int = Field(0, ge=0)
    periodontics_cost: int = Field(0, ge=0)
    total_cost: int = Field(..., ge=0)
    estimated_duration: Optional[str] = None
    installment_months: int = Field(0, ge=0)
    warranty_details: Optional[str] = None
    notes: Optional[str] = None


class OfferResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    treatment_plan_id: int
    clinic_id: int
    status: OfferStatus
    therapy_cost: int
    orthopedics_cost: int
    surgery_cost: int
    hygiene_cost: int
    periodontics_cost: int
    total_cost: int
    estimated_duration: Optional[str] = None
    installment_months: int = 0
    warranty_details: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    clinic: Optional[ClinicSummary] = None


class SelectOfferRequest(BaseModel):
    offer_id: int


class OfferAcceptedResponse(BaseModel):
    message: str
    appointment: AppointmentResponse


class LeadResponse(BaseModel):
    offer: OfferResponse
    patient: Optional[PatientResponse] = None
