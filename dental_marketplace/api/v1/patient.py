from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_patient_profile
from ...models.patient import Patient
from ...services.feedback_service import FeedbackService
from ...services.offer_service import OfferService
from ...services.plan_service import PlanService
from ...schemas.appointment import AppointmentResponse
from ...schemas.feedback import ComplaintCreate, ComplaintResponse, ReviewCreate, ReviewResponse
from ...schemas.offer import OfferAcceptedResponse, OfferResponse, SelectOfferRequest
from ...schemas.profile import PatientResponse, SearchCriteriaUpdate
from ...schemas.treatment import ScanDetailResponse, ScanResponse, TreatmentPlanResponse

router = APIRouter(prefix="/patient", tags=["Patient"])


@router.get("/scans", response_model=List[ScanResponse])
async def list_scans(
    patient: Patient = Depends(get_patient_profile),
    db: Session = Depends(get_db)
):
    """List the patient's CT scans, newest first."""
    return PlanService(db).list_scans(patient.id)


@router.get("/scans/{scan_id}", response_model=ScanDetailResponse)
async def get_scan(
    scan_id: int,
    patient: Patient = Depends(get_patient_profile),
    db: Session = Depends(get_db)
):
    """Get a scan, with its treatment plan once analysis has finished."""
    plan_service = PlanService(db)
    scan = plan_service.get_scan(patient.id, scan_id)
    plan = plan_service.find_plan_for_scan(patient.id, scan)
    return ScanDetailResponse(
        scan=ScanResponse.model_validate(scan),
        treatment_plan=TreatmentPlanResponse.model_validate(plan) if plan else None,
    )


@router.get("/scans/{scan_id}/plan", response_model=TreatmentPlanResponse)
async def get_plan_for_scan(
    scan_id: int,
    patient: Patient = Depends(get_patient_profile),
    db: Session = Depends(get_db)
):
    return PlanService(db).get_plan_for_scan(patient.id, scan_id)


@router.get("/plans", response_model=List[TreatmentPlanResponse])
async def list_plans(
    patient: Patient = Depends(get_patient_profile),
    db: Session = Depends(get_db)
):
    return PlanService(db).list_plans(patient.id)


@router.get("/plans/{plan_id}/offers", response_model=List[OfferResponse])
async def list_offers_for_plan(
    plan_id: int,
    patient: Patient = Depends(get_patient_profile),
    db: Session = Depends(get_db)
):
    """Offers received for a plan, cheapest first."""
    return OfferService(db).list_offers_for_plan(plan_id, patient_id=patient.id)


@router.post("/select-offer", response_model=OfferAcceptedResponse)
async def select_offer(
    request: SelectOfferRequest,
    patient: Patient = Depends(get_patient_profile),
    db: Session = Depends(get_db)
):
    """Accept a clinic offer; competing offers are rejected and a visit is booked."""
    appointment = OfferService(db).accept_offer(request.offer_id, patient.id)
    return OfferAcceptedResponse(
        message="Offer accepted successfully",
        appointment=AppointmentResponse.model_validate(appointment),
    )


@router.put("/search-criteria", response_model=PatientResponse)
async def update_search_criteria(
    criteria: SearchCriteriaUpdate,
    patient: Patient = Depends(get_patient_profile),
    db: Session = Depends(get_db)
):
    return PlanService(db).update_search_criteria(patient, criteria)


@router.get("/appointments", response_model=List[AppointmentResponse])
async def list_appointments(
    patient: Patient = Depends(get_patient_profile),
    db: Session = Depends(get_db)
):
    return PlanService(db).list_appointments(patient.id)


@router.post("/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    review_data: ReviewCreate,
    patient: Patient = Depends(get_patient_profile),
    db: Session = Depends(get_db)
):
    """Review a clinic; the clinic's rating is recomputed immediately."""
    return FeedbackService(db).create_review(patient.id, review_data)


@router.post("/complaints", response_model=ComplaintResponse, status_code=status.HTTP_201_CREATED)
async def create_complaint(
    complaint_data: ComplaintCreate,
    patient: Patient = Depends(get_patient_profile),
    db: Session = Depends(get_db)
):
    return FeedbackService(db).create_complaint(patient.id, complaint_data)
