from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.treatment import PlanStatus, ScanStatus, Specialization
from .offer import OfferResponse


class ScanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    upload_date: Optional[datetime] = None
    file_url: Optional[str] = None
    status: ScanStatus
    ai_processed: bool


class TreatmentItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    specialization: Specialization
    tooth_number: Optional[str] = None
    diagnosis: Optional[str] = None
    procedure: Optional[str] = None
    urgency: Optional[str] = None
    estimated_cost: int


class TreatmentPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    ct_scan_id: int
    status: PlanStatus
    created_at: datetime

    requires_therapy: bool
    requires_orthopedics: bool
    requires_surgery: bool
    requires_hygiene: bool
    requires_periodontics: bool

    therapy_min_cost: int
    therapy_max_cost: int
    orthopedics_min_cost: int
    orthopedics_max_cost: int
    surgery_min_cost: int
    surgery_max_cost: int
    hygiene_min_cost: int
    hygiene_max_cost: int
    periodontics_min_cost: int
    periodontics_max_cost: int

    items: List[TreatmentItemResponse] = []
    offers: List[OfferResponse] = []


class ScanDetailResponse(BaseModel):
    scan: ScanResponse
    treatment_plan: Optional[TreatmentPlanResponse] = None


class TreatmentItemIn(BaseModel):
    specialization: Specialization
    tooth_number: Optional[str] = None
    diagnosis: Optional[str] = None
    procedure: Optional[str] = None
    urgency: Optional[str] = None
    estimated_cost: int = Field(0, ge=0)


class CostRange(BaseModel):
    min_cost: int = Field(0, ge=0)
    max_cost: int = Field(0, ge=0)


class PlanIntake(BaseModel):
    """Output of the upstream CT-scan analysis for a single scan."""

    ct_scan_id: int
    items: List[TreatmentItemIn] = Field(..., min_length=1)
    estimates: Dict[Specialization, CostRange] = {}
