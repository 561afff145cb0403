from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.treatment import Specialization


class PriceListItemIn(BaseModel):
    id: Optional[int] = None  # omitted for new items
    specialization: Specialization
    service_name: str = Field(..., min_length=1, max_length=255)
    price: int = Field(..., ge=0)
    warranty_years: int = Field(0, ge=0)


class PriceListItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    clinic_id: int
    specialization: Specialization
    service_name: str
    price: int
    warranty_years: int


class ClinicDashboardResponse(BaseModel):
    period: str
    new_plans: int
    offers_sent: int
    leads: int
    potential_revenue: int
    conversion_rate: str
