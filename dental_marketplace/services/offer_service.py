"""
Offer/plan lifecycle.

A treatment plan moves ``generated -> offers_received`` when the first clinic
bids on it and ``offers_received -> offer_selected`` when the patient accepts
one of the bids. Accepting is a single transaction: the chosen offer becomes
accepted, every competing offer is rejected, the plan is closed and one
appointment is booked. The plan row is locked (``SELECT ... FOR UPDATE``) and
claimed with a compare-and-set update, so concurrent accepts on the same plan
cannot both commit.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from ..core.config import settings
from ..core.exceptions import (
    AlreadyExistsError, ConflictError, DomainError,
    InternalFailureError, NotFoundError
)
from ..models.appointment import Appointment, AppointmentStatus
from ..models.clinic import Clinic
from ..models.offer import ClinicOffer, OfferStatus
from ..models.treatment import TreatmentPlan, PlanStatus, PRE_OFFER_STATUSES
from ..schemas.offer import OfferCreate

logger = logging.getLogger(__name__)

INITIAL_APPOINTMENT_NOTES = "Initial consultation"


class OfferService:
    def __init__(self, db: Session, appointment_lead: Optional[timedelta] = None):
        self.db = db
        self.appointment_lead = appointment_lead or timedelta(
            days=settings.APPOINTMENT_LEAD_DAYS
        )

    def submit_offer(self, clinic_id: int, offer_data: OfferCreate) -> ClinicOffer:
        """Record a clinic's bid on a plan and open the plan for selection."""
        try:
            plan = self._lock_plan(offer_data.treatment_plan_id)
            if plan is None:
                raise NotFoundError("Treatment plan not found")

            if plan.status == PlanStatus.OFFER_SELECTED:
                raise ConflictError("Treatment plan already has a selected offer")

            existing = self.db.query(ClinicOffer.id).filter(
                ClinicOffer.treatment_plan_id == plan.id,
                ClinicOffer.clinic_id == clinic_id,
                ClinicOffer.not_deleted()
            ).first()
            if existing:
                raise AlreadyExistsError(
                    "Clinic has already submitted an offer for this treatment plan"
                )

            offer = ClinicOffer(
                **offer_data.model_dump(),
                clinic_id=clinic_id,
                status=OfferStatus.SENT,
            )

            # The clinic's total is stored as submitted
            if offer.component_total != offer.total_cost:
                logger.warning(
                    f"Offer from clinic {clinic_id} on plan {plan.id} has total_cost "
                    f"{offer.total_cost} but components sum to {offer.component_total}"
                )

            self.db.add(offer)

            if plan.status in PRE_OFFER_STATUSES:
                logger.info(
                    f"Plan {plan.id}: {plan.status.value} -> {PlanStatus.OFFERS_RECEIVED.value}"
                )
                plan.status = PlanStatus.OFFERS_RECEIVED

            self.db.commit()

        except DomainError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Failed to create offer for plan {offer_data.treatment_plan_id}")
            raise InternalFailureError("Failed to create offer") from exc

        self.db.refresh(offer)
        logger.info(f"Clinic {clinic_id} submitted offer {offer.id} on plan {offer.treatment_plan_id}")
        return offer

    def list_incoming_plans(
        self,
        clinic_id: int,
        status: Optional[PlanStatus] = None
    ) -> List[TreatmentPlan]:
        """Plans this clinic has not bid on yet, newest first.

        Each plan carries only the requesting clinic's own offers; competing
        bids are never loaded.
        """
        offered_plan_ids = select(ClinicOffer.treatment_plan_id).where(
            ClinicOffer.clinic_id == clinic_id,
            ClinicOffer.not_deleted()
        )

        query = self.db.query(TreatmentPlan).options(
            selectinload(TreatmentPlan.items),
            selectinload(TreatmentPlan.offers.and_(ClinicOffer.clinic_id == clinic_id)),
        ).filter(
            TreatmentPlan.not_deleted(),
            TreatmentPlan.id.not_in(offered_plan_ids)
        )

        if status is not None:
            query = query.filter(TreatmentPlan.status == status)

        return (
            query.order_by(TreatmentPlan.created_at.desc(), TreatmentPlan.id.desc())
            .populate_existing()
            .all()
        )

    def list_offers_for_plan(
        self,
        plan_id: int,
        patient_id: Optional[int] = None
    ) -> List[ClinicOffer]:
        """Offers a patient may compare: everything but pending, cheapest first."""
        if patient_id is not None:
            plan = self.db.query(TreatmentPlan.id).filter(
                TreatmentPlan.id == plan_id,
                TreatmentPlan.patient_id == patient_id,
                TreatmentPlan.not_deleted()
            ).first()
            if not plan:
                raise NotFoundError("Treatment plan not found")

        return self.db.query(ClinicOffer).options(
            joinedload(ClinicOffer.clinic)
        ).filter(
            ClinicOffer.treatment_plan_id == plan_id,
            ClinicOffer.status != OfferStatus.PENDING,
            ClinicOffer.not_deleted()
        ).order_by(
            ClinicOffer.total_cost.asc(),
            ClinicOffer.id.asc()
        ).all()

    def accept_offer(self, offer_id: int, patient_id: int) -> Appointment:
        """Accept an offer, reject its competitors, close the plan and book a visit.

        Raises NotFoundError when the offer does not exist or belongs to another
        patient's plan, ConflictError when the plan already has a selected offer
        and InternalFailureError for everything else. Nothing is committed
        unless every step succeeds.
        """
        try:
            offer = self.db.query(ClinicOffer).filter(
                ClinicOffer.id == offer_id,
                ClinicOffer.not_deleted()
            ).first()
            if offer is None:
                raise NotFoundError("Offer not found")

            plan = self._lock_plan(offer.treatment_plan_id)
            if plan is None:
                raise InternalFailureError(
                    f"Treatment plan {offer.treatment_plan_id} referenced by offer {offer.id} is missing"
                )

            if plan.patient_id != patient_id:
                raise NotFoundError("Offer not found")

            clinic = self.db.query(Clinic.id).filter(
                Clinic.id == offer.clinic_id,
                Clinic.not_deleted()
            ).first()
            if clinic is None:
                raise InternalFailureError(
                    f"Clinic {offer.clinic_id} referenced by offer {offer.id} is missing"
                )

            if plan.status == PlanStatus.OFFER_SELECTED:
                raise ConflictError("An offer has already been selected for this treatment plan")

            claimed = self.db.execute(
                update(TreatmentPlan)
                .where(
                    TreatmentPlan.id == plan.id,
                    TreatmentPlan.status != PlanStatus.OFFER_SELECTED
                )
                .values(status=PlanStatus.OFFER_SELECTED)
                .execution_options(synchronize_session=False)
            ).rowcount
            if claimed != 1:
                raise ConflictError("An offer has already been selected for this treatment plan")

            offer.status = OfferStatus.ACCEPTED

            rejected = self.db.query(ClinicOffer).filter(
                ClinicOffer.treatment_plan_id == plan.id,
                ClinicOffer.id != offer.id,
                ClinicOffer.not_deleted()
            ).update(
                {ClinicOffer.status: OfferStatus.REJECTED},
                synchronize_session=False
            )

            appointment = Appointment(
                patient_id=patient_id,
                clinic_id=offer.clinic_id,
                treatment_plan_id=plan.id,
                clinic_offer_id=offer.id,
                appointment_date=datetime.utcnow() + self.appointment_lead,
                status=AppointmentStatus.SCHEDULED,
                notes=INITIAL_APPOINTMENT_NOTES,
            )
            self.db.add(appointment)

            self.db.commit()

        except DomainError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Failed to accept offer {offer_id}")
            raise InternalFailureError("Failed to accept offer") from exc

        self.db.refresh(appointment)
        logger.info(
            f"Patient {patient_id} accepted offer {offer_id} on plan {appointment.treatment_plan_id}; "
            f"{rejected} competing offer(s) rejected, appointment {appointment.id} scheduled"
        )
        return appointment

    def _lock_plan(self, plan_id: int) -> Optional[TreatmentPlan]:
        """Load a plan with a row lock held until the transaction ends."""
        return self.db.query(TreatmentPlan).filter(
            TreatmentPlan.id == plan_id,
            TreatmentPlan.not_deleted()
        ).with_for_update().populate_existing().first()
