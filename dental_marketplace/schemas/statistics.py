from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .profile import ClinicResponse


class StatisticsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: date
    clinic_id: Optional[int] = None
    treatment_plans_generated: int
    appointments_scheduled: int
    appointments_completed: int
    total_revenue: int
    patient_count: int
    caries_count: int
    pulpitis_count: int
    periodontitis_count: int
    gingivitis_count: int
    parodontitis_count: int
    average_wait_days: float
    average_treatment_cost: int


class DashboardSummary(BaseModel):
    total_clinics: int
    total_treatment_plans: int
    total_appointments: int
    total_revenue: int
    total_patients: int
    average_wait_days: float
    average_treatment_cost: int


class DiseaseTotals(BaseModel):
    caries: int
    pulpitis: int
    periodontitis: int
    gingivitis: int
    parodontitis: int


class DiseaseShare(BaseModel):
    disease: str
    count: int
    percentage: float


class RegulatorDashboardResponse(BaseModel):
    period: str
    summary: DashboardSummary
    disease_statistics: DiseaseTotals
    time_series: List[StatisticsResponse]


class DiseaseAnalyticsResponse(BaseModel):
    period: str
    total_cases: int
    diseases: List[DiseaseShare]
    time_series: List[StatisticsResponse]


class StatisticsReport(BaseModel):
    period: str
    clinic: Optional[ClinicResponse] = None
    statistics: List[StatisticsResponse]


class ClinicOverview(BaseModel):
    id: int
    name: str
    license_number: Optional[str] = None
    rating: float
    review_count: int
    city: Optional[str] = None
    district: Optional[str] = None
    year_established: Optional[int] = None
    patient_count: int = 0
    total_revenue: int = 0
    average_wait_days: float = 0.0


class ClinicDetailsResponse(BaseModel):
    clinic: ClinicResponse
    period: str
    statistics: List[StatisticsResponse]
    price_list_count: int
    appointments_count: int
