import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..core.exceptions import (
    AlreadyExistsError, DomainError, InternalFailureError, NotFoundError
)
from ..models.appointment import Appointment
from ..models.offer import ClinicOffer, OfferStatus
from ..models.patient import Patient
from ..models.treatment import (
    CTScan, ScanStatus, Specialization, TreatmentItem, TreatmentPlan, PlanStatus
)
from ..schemas.profile import SearchCriteriaUpdate
from ..schemas.treatment import PlanIntake

logger = logging.getLogger(__name__)


class PlanService:
    """Patient-facing reads plus intake of plans produced by scan analysis."""

    def __init__(self, db: Session):
        self.db = db

    def list_scans(self, patient_id: int) -> List[CTScan]:
        return self.db.query(CTScan).filter(
            CTScan.patient_id == patient_id,
            CTScan.not_deleted()
        ).order_by(CTScan.upload_date.desc(), CTScan.id.desc()).all()

    def get_scan(self, patient_id: int, scan_id: int) -> CTScan:
        scan = self.db.query(CTScan).filter(
            CTScan.id == scan_id,
            CTScan.patient_id == patient_id,
            CTScan.not_deleted()
        ).first()
        if not scan:
            raise NotFoundError("Scan not found")
        return scan

    def get_plan_for_scan(self, patient_id: int, scan_id: int) -> TreatmentPlan:
        plan = self._plan_query().filter(
            TreatmentPlan.ct_scan_id == scan_id,
            TreatmentPlan.patient_id == patient_id
        ).first()
        if not plan:
            raise NotFoundError("Treatment plan not found")
        return plan

    def find_plan_for_scan(self, patient_id: int, scan: CTScan) -> Optional[TreatmentPlan]:
        """Plan of a scan, only once the analysis has finished."""
        if not scan.ai_processed:
            return None
        try:
            return self.get_plan_for_scan(patient_id, scan.id)
        except NotFoundError:
            return None

    def list_plans(self, patient_id: int) -> List[TreatmentPlan]:
        return self._plan_query().filter(
            TreatmentPlan.patient_id == patient_id
        ).order_by(TreatmentPlan.created_at.desc(), TreatmentPlan.id.desc()).all()

    def list_appointments(self, patient_id: int) -> List[Appointment]:
        return self.db.query(Appointment).options(
            joinedload(Appointment.clinic)
        ).filter(
            Appointment.patient_id == patient_id,
            Appointment.not_deleted()
        ).order_by(Appointment.appointment_date.desc()).all()

    def update_search_criteria(self, patient: Patient, criteria: SearchCriteriaUpdate) -> Patient:
        patient.city = criteria.city
        patient.district = criteria.district
        patient.price_segment = criteria.price_segment
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Failed to update search criteria for patient {patient.id}")
            raise InternalFailureError("Failed to update search criteria") from exc
        self.db.refresh(patient)
        return patient

    def ingest_plan(self, intake: PlanIntake) -> TreatmentPlan:
        """Store a freshly generated plan for a scan.

        Items are written once here and never modified afterwards. The
        ``requires_*`` flags follow from the specializations present in the
        items; cost ranges come from the analysis estimates.
        """
        try:
            scan = self.db.query(CTScan).filter(
                CTScan.id == intake.ct_scan_id,
                CTScan.not_deleted()
            ).with_for_update().first()
            if not scan:
                raise NotFoundError("Scan not found")

            existing = self.db.query(TreatmentPlan.id).filter(
                TreatmentPlan.ct_scan_id == scan.id
            ).first()
            if existing:
                raise AlreadyExistsError("Scan already has a treatment plan")

            required = {item.specialization for item in intake.items}
            plan = TreatmentPlan(
                patient_id=scan.patient_id,
                ct_scan_id=scan.id,
                status=PlanStatus.GENERATED,
            )
            for spec in Specialization:
                setattr(plan, f"requires_{spec.value}", spec in required)
                estimate = intake.estimates.get(spec)
                if estimate is not None:
                    setattr(plan, f"{spec.value}_min_cost", estimate.min_cost)
                    setattr(plan, f"{spec.value}_max_cost", estimate.max_cost)

            self.db.add(plan)
            self.db.flush()

            self.db.add_all([
                TreatmentItem(treatment_plan_id=plan.id, **item.model_dump())
                for item in intake.items
            ])

            scan.status = ScanStatus.COMPLETED
            scan.ai_processed = True

            self.db.commit()

        except DomainError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            raise AlreadyExistsError("Scan already has a treatment plan") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Failed to store treatment plan for scan {intake.ct_scan_id}")
            raise InternalFailureError("Failed to store treatment plan") from exc

        logger.info(f"Treatment plan {plan.id} generated for scan {intake.ct_scan_id}")
        return self._plan_query().filter(TreatmentPlan.id == plan.id).one()

    def _plan_query(self):
        return self.db.query(TreatmentPlan).options(
            selectinload(TreatmentPlan.items),
            selectinload(
                TreatmentPlan.offers.and_(ClinicOffer.status != OfferStatus.PENDING)
            ).joinedload(ClinicOffer.clinic),
        ).filter(TreatmentPlan.not_deleted()).populate_existing()
