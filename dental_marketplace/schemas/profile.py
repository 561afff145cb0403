from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    price_segment: Optional[str] = None


class ClinicSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    rating: float
    review_count: int
    city: Optional[str] = None
    district: Optional[str] = None
    address: Optional[str] = None


class ClinicResponse(ClinicSummary):
    user_id: int
    license_number: Optional[str] = None
    year_established: Optional[int] = None
    has_therapy: bool = True
    has_orthopedics: bool = True
    has_surgery: bool = True
    has_hygiene: bool = True
    has_periodontics: bool = True
    offers_installment: bool = False
    offers_insurance: bool = False


class RegulatorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    organization: Optional[str] = None
    region: Optional[str] = None
    position: Optional[str] = None


class SearchCriteriaUpdate(BaseModel):
    city: Optional[str] = None
    district: Optional[str] = None
    price_segment: Optional[str] = None
