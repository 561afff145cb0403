from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_clinic_profile
from ...models.appointment import AppointmentStatus
from ...models.clinic import Clinic
from ...models.offer import OfferStatus
from ...models.treatment import PlanStatus, Specialization
from ...services.clinic_service import ClinicService
from ...services.offer_service import OfferService
from ...services.statistics_service import StatisticsService, resolve_period
from ...schemas.appointment import AppointmentResponse, AppointmentUpdate
from ...schemas.clinic import ClinicDashboardResponse, PriceListItemIn, PriceListItemResponse
from ...schemas.offer import LeadResponse, OfferCreate, OfferResponse
from ...schemas.statistics import StatisticsReport
from ...schemas.treatment import TreatmentPlanResponse

router = APIRouter(prefix="/clinic", tags=["Clinic"])


@router.get("/dashboard", response_model=ClinicDashboardResponse)
async def get_dashboard(
    period: Optional[str] = None,
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    """Key metrics for the clinic over a 7d, 30d or 90d period."""
    period, start, end = resolve_period(period)
    return ClinicService(db).dashboard_metrics(clinic.id, period, start, end)


@router.get("/incoming-plans", response_model=List[TreatmentPlanResponse])
async def list_incoming_plans(
    plan_status: Optional[PlanStatus] = None,
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    """Treatment plans this clinic has not bid on yet."""
    return OfferService(db).list_incoming_plans(clinic.id, status=plan_status)


@router.get("/offers", response_model=List[OfferResponse])
async def list_offers(
    offer_status: Optional[OfferStatus] = None,
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    return ClinicService(db).list_offers(clinic.id, offer_status)


@router.post("/offers", response_model=OfferResponse, status_code=status.HTTP_201_CREATED)
async def create_offer(
    offer_data: OfferCreate,
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    """Submit an offer for a treatment plan."""
    return OfferService(db).submit_offer(clinic.id, offer_data)


@router.get("/leads", response_model=List[LeadResponse])
async def list_leads(
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    """Accepted offers, newest first."""
    return ClinicService(db).list_leads(clinic.id)


@router.get("/appointments", response_model=List[AppointmentResponse])
async def list_appointments(
    appointment_status: Optional[AppointmentStatus] = None,
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    return ClinicService(db).list_appointments(clinic.id, appointment_status)


@router.put("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    update_data: AppointmentUpdate,
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    """Update appointment status and notes."""
    return ClinicService(db).update_appointment(clinic.id, appointment_id, update_data)


@router.get("/price-list", response_model=List[PriceListItemResponse])
async def get_price_list(
    specialization: Optional[Specialization] = None,
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    return ClinicService(db).get_price_list(clinic.id, specialization)


@router.put("/price-list", response_model=List[PriceListItemResponse])
async def update_price_list(
    items: List[PriceListItemIn] = Body(...),
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    """Create new price list items and update existing ones in one go."""
    return ClinicService(db).upsert_price_list(clinic.id, items)


@router.delete("/price-list/{item_id}")
async def delete_price_item(
    item_id: int,
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    ClinicService(db).delete_price_item(clinic.id, item_id)
    return {"message": "Price list item deleted successfully"}


@router.get("/analytics", response_model=StatisticsReport)
async def get_analytics(
    period: Optional[str] = None,
    clinic: Clinic = Depends(get_clinic_profile),
    db: Session = Depends(get_db)
):
    """Daily statistics of this clinic over the period."""
    return StatisticsService(db).clinic_analytics(clinic, period)
