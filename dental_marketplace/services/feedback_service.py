import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import DomainError, InternalFailureError, NotFoundError
from ..models.clinic import Clinic
from ..models.feedback import Complaint, ComplaintStatus, Review
from ..schemas.feedback import ComplaintCreate, ReviewCreate

logger = logging.getLogger(__name__)


class FeedbackService:
    def __init__(self, db: Session):
        self.db = db

    def create_review(self, patient_id: int, review_data: ReviewCreate) -> Review:
        """Store a review and recompute the clinic's rating in the same transaction.

        The rating is always the mean over every current review of the clinic,
        never an incremental update.
        """
        try:
            clinic = self._get_clinic(review_data.clinic_id, for_update=True)

            review = Review(
                patient_id=patient_id,
                clinic_id=clinic.id,
                rating=review_data.rating,
                comment=review_data.comment,
                is_public=False,
            )
            self.db.add(review)
            self.db.flush()

            self._recompute_rating(clinic)

            self.db.commit()

        except DomainError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Failed to create review for clinic {review_data.clinic_id}")
            raise InternalFailureError("Failed to create review") from exc

        self.db.refresh(review)
        logger.info(
            f"Clinic {clinic.id} rating recomputed: {clinic.rating:.2f} "
            f"over {clinic.review_count} review(s)"
        )
        return review

    def create_complaint(self, patient_id: int, complaint_data: ComplaintCreate) -> Complaint:
        try:
            clinic = self._get_clinic(complaint_data.clinic_id)

            complaint = Complaint(
                patient_id=patient_id,
                clinic_id=clinic.id,
                subject=complaint_data.subject,
                description=complaint_data.description,
                status=ComplaintStatus.OPEN,
            )
            self.db.add(complaint)
            self.db.commit()

        except DomainError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Failed to create complaint for clinic {complaint_data.clinic_id}")
            raise InternalFailureError("Failed to create complaint") from exc

        self.db.refresh(complaint)
        logger.info(f"Complaint {complaint.id} filed against clinic {complaint.clinic_id}")
        return complaint

    def list_complaints(self, status: Optional[ComplaintStatus] = None) -> List[Complaint]:
        query = self.db.query(Complaint).filter(Complaint.not_deleted())
        if status is not None:
            query = query.filter(Complaint.status == status)
        return query.order_by(Complaint.created_at.desc(), Complaint.id.desc()).all()

    def _recompute_rating(self, clinic: Clinic):
        average, count = self.db.query(
            func.avg(Review.rating),
            func.count(Review.id)
        ).filter(
            Review.clinic_id == clinic.id,
            Review.not_deleted()
        ).one()

        clinic.rating = float(average) if average is not None else 0.0
        clinic.review_count = count

    def _get_clinic(self, clinic_id: int, for_update: bool = False) -> Clinic:
        query = self.db.query(Clinic).filter(
            Clinic.id == clinic_id,
            Clinic.not_deleted()
        )
        if for_update:
            query = query.with_for_update()
        clinic = query.first()
        if not clinic:
            raise NotFoundError("Clinic not found")
        return clinic
