from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_regulator_profile
from ...models.feedback import ComplaintStatus
from ...models.regulator import Regulator
from ...services.feedback_service import FeedbackService
from ...services.statistics_service import StatisticsService
from ...schemas.feedback import ComplaintResponse
from ...schemas.statistics import (
    ClinicDetailsResponse, ClinicOverview, DiseaseAnalyticsResponse,
    RegulatorDashboardResponse, StatisticsReport
)

router = APIRouter(prefix="/regulator", tags=["Regulator"])


@router.get("/dashboard", response_model=RegulatorDashboardResponse)
async def get_dashboard(
    period: Optional[str] = None,
    regulator: Regulator = Depends(get_regulator_profile),
    db: Session = Depends(get_db)
):
    """Regional overview built from the regional statistics rows."""
    return StatisticsService(db).regional_dashboard(period)


@router.get("/statistics", response_model=StatisticsReport)
async def get_statistics(
    period: Optional[str] = None,
    clinic_id: Optional[int] = None,
    regulator: Regulator = Depends(get_regulator_profile),
    db: Session = Depends(get_db)
):
    """Regional statistics, or a single clinic's when ``clinic_id`` is given."""
    return StatisticsService(db).statistics_report(period, clinic_id)


@router.get("/clinics", response_model=List[ClinicOverview])
async def list_clinics(
    city: Optional[str] = None,
    district: Optional[str] = None,
    regulator: Regulator = Depends(get_regulator_profile),
    db: Session = Depends(get_db)
):
    return StatisticsService(db).clinic_overview(city, district)


@router.get("/clinics/{clinic_id}", response_model=ClinicDetailsResponse)
async def get_clinic_details(
    clinic_id: int,
    period: Optional[str] = None,
    regulator: Regulator = Depends(get_regulator_profile),
    db: Session = Depends(get_db)
):
    return StatisticsService(db).clinic_details(clinic_id, period)


@router.get("/complaints", response_model=List[ComplaintResponse])
async def list_complaints(
    complaint_status: Optional[ComplaintStatus] = None,
    regulator: Regulator = Depends(get_regulator_profile),
    db: Session = Depends(get_db)
):
    return FeedbackService(db).list_complaints(complaint_status)


@router.get("/disease-analytics", response_model=DiseaseAnalyticsResponse)
async def get_disease_analytics(
    period: Optional[str] = None,
    regulator: Regulator = Depends(get_regulator_profile),
    db: Session = Depends(get_db)
):
    """Disease prevalence as counts and shares of all cases."""
    return StatisticsService(db).disease_analytics(period)
