from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..models.appointment import AppointmentStatus
from .profile import ClinicSummary


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    clinic_id: int
    treatment_plan_id: int
    clinic_offer_id: int
    appointment_date: datetime
    specialization: Optional[str] = None
    status: AppointmentStatus
    notes: Optional[str] = None
    clinic: Optional[ClinicSummary] = None


class AppointmentUpdate(BaseModel):
    status: AppointmentStatus
    notes: Optional[str] = None
