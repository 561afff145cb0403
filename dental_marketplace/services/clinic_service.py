import logging
from datetime import date, datetime, time
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import DomainError, InternalFailureError, NotFoundError
from ..models.appointment import Appointment, AppointmentStatus
from ..models.clinic import PriceList
from ..models.offer import ClinicOffer, OfferStatus
from ..models.treatment import Specialization, TreatmentPlan
from ..schemas.appointment import AppointmentUpdate
from ..schemas.clinic import ClinicDashboardResponse, PriceListItemIn
from ..schemas.offer import LeadResponse, OfferResponse
from ..schemas.profile import PatientResponse

logger = logging.getLogger(__name__)


class ClinicService:
    """Everything a clinic manages on its own: price list, appointments, leads."""

    def __init__(self, db: Session):
        self.db = db

    def dashboard_metrics(
        self,
        clinic_id: int,
        period: str,
        start: date,
        end: date
    ) -> ClinicDashboardResponse:
        range_start = datetime.combine(start, time.min)
        range_end = datetime.combine(end, time.max)

        new_plans = self.db.query(func.count(TreatmentPlan.id)).filter(
            TreatmentPlan.created_at.between(range_start, range_end),
            TreatmentPlan.not_deleted()
        ).scalar() or 0

        offers_sent = self.db.query(func.count(ClinicOffer.id)).filter(
            ClinicOffer.clinic_id == clinic_id,
            ClinicOffer.created_at.between(range_start, range_end),
            ClinicOffer.not_deleted()
        ).scalar() or 0

        leads, potential_revenue = self.db.query(
            func.count(ClinicOffer.id),
            func.coalesce(func.sum(ClinicOffer.total_cost), 0)
        ).filter(
            ClinicOffer.clinic_id == clinic_id,
            ClinicOffer.status == OfferStatus.ACCEPTED,
            ClinicOffer.not_deleted()
        ).one()

        if offers_sent > 0:
            conversion_rate = f"{leads / offers_sent * 100:.1f}%"
        else:
            conversion_rate = "0%"

        return ClinicDashboardResponse(
            period=period,
            new_plans=new_plans,
            offers_sent=offers_sent,
            leads=leads,
            potential_revenue=int(potential_revenue),
            conversion_rate=conversion_rate,
        )

    def list_offers(self, clinic_id: int, status: Optional[OfferStatus] = None) -> List[ClinicOffer]:
        query = self.db.query(ClinicOffer).filter(
            ClinicOffer.clinic_id == clinic_id,
            ClinicOffer.not_deleted()
        )
        if status is not None:
            query = query.filter(ClinicOffer.status == status)
        return query.order_by(ClinicOffer.created_at.desc(), ClinicOffer.id.desc()).all()

    def list_leads(self, clinic_id: int) -> List[LeadResponse]:
        """Accepted offers of this clinic with the patient behind each one."""
        offers = self.db.query(ClinicOffer).options(
            joinedload(ClinicOffer.treatment_plan).joinedload(TreatmentPlan.patient)
        ).filter(
            ClinicOffer.clinic_id == clinic_id,
            ClinicOffer.status == OfferStatus.ACCEPTED,
            ClinicOffer.not_deleted()
        ).order_by(ClinicOffer.created_at.desc(), ClinicOffer.id.desc()).all()

        leads = []
        for offer in offers:
            patient = offer.treatment_plan.patient if offer.treatment_plan else None
            leads.append(LeadResponse(
                offer=OfferResponse.model_validate(offer),
                patient=PatientResponse.model_validate(patient) if patient else None,
            ))
        return leads

    def list_appointments(
        self,
        clinic_id: int,
        status: Optional[AppointmentStatus] = None
    ) -> List[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.clinic_id == clinic_id,
            Appointment.not_deleted()
        )
        if status is not None:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.appointment_date.desc(), Appointment.id.desc()).all()

    def update_appointment(
        self,
        clinic_id: int,
        appointment_id: int,
        update_data: AppointmentUpdate
    ) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.clinic_id == clinic_id,
            Appointment.not_deleted()
        ).first()
        if not appointment:
            raise NotFoundError("Appointment not found")

        appointment.status = update_data.status
        if update_data.notes is not None:
            appointment.notes = update_data.notes

        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Failed to update appointment {appointment_id}")
            raise InternalFailureError("Failed to update appointment") from exc

        self.db.refresh(appointment)
        logger.info(f"Appointment {appointment.id} is now {appointment.status.value}")
        return appointment

    def get_price_list(
        self,
        clinic_id: int,
        specialization: Optional[Specialization] = None
    ) -> List[PriceList]:
        query = self.db.query(PriceList).filter(
            PriceList.clinic_id == clinic_id,
            PriceList.not_deleted()
        )
        if specialization is not None:
            query = query.filter(PriceList.specialization == specialization)
        return query.order_by(PriceList.specialization, PriceList.service_name).all()

    def upsert_price_list(self, clinic_id: int, items: List[PriceListItemIn]) -> List[PriceList]:
        """Create items without an id and update the rest; all or nothing."""
        try:
            for item in items:
                values = item.model_dump(exclude={"id"})
                if item.id is None:
                    self.db.add(PriceList(clinic_id=clinic_id, **values))
                    continue

                existing = self.db.query(PriceList).filter(
                    PriceList.id == item.id,
                    PriceList.clinic_id == clinic_id,
                    PriceList.not_deleted()
                ).first()
                if not existing:
                    raise NotFoundError(f"Price list item {item.id} not found")
                for key, value in values.items():
                    setattr(existing, key, value)

            self.db.commit()

        except DomainError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Failed to update price list for clinic {clinic_id}")
            raise InternalFailureError("Failed to update price list") from exc

        logger.info(f"Clinic {clinic_id} price list updated ({len(items)} item(s))")
        return self.get_price_list(clinic_id)

    def delete_price_item(self, clinic_id: int, item_id: int) -> None:
        item = self.db.query(PriceList).filter(
            PriceList.id == item_id,
            PriceList.clinic_id == clinic_id,
            PriceList.not_deleted()
        ).first()
        if not item:
            raise NotFoundError("Price list item not found")

        item.deleted_at = datetime.utcnow()
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Failed to delete price list item {item_id}")
            raise InternalFailureError("Failed to delete price list item") from exc
