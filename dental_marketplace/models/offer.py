from sqlalchemy import Column, Integer, String, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from .mixins import TimestampMixin


class OfferStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ClinicOffer(TimestampMixin, Base):
    __tablename__ = "clinic_offers"

    treatment_plan_id = Column(Integer, ForeignKey("treatment_plans.id"), nullable=False, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    status = Column(SQLEnum(OfferStatus), default=OfferStatus.PENDING, nullable=False, index=True)

    # Costs by specialization
    therapy_cost = Column(Integer, default=0)
    orthopedics_cost = Column(Integer, default=0)
    surgery_cost = Column(Integer, default=0)
    hygiene_cost = Column(Integer, default=0)
    periodontics_cost = Column(Integer, default=0)
    # Stored as submitted by the clinic
    total_cost = Column(Integer, nullable=False, index=True)

    # Terms
    estimated_duration = Column(String(100), nullable=True)  # e.g. "2-3 months"
    installment_months = Column(Integer, default=0)
    warranty_details = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    clinic = relationship("Clinic", back_populates="offers")
    treatment_plan = relationship("TreatmentPlan")

    @property
    def component_total(self) -> int:
        return sum((
            self.therapy_cost or 0,
            self.orthopedics_cost or 0,
            self.surgery_cost or 0,
            self.hygiene_cost or 0,
            self.periodontics_cost or 0,
        ))

    def __repr__(self):
        return f"<ClinicOffer(id={self.id}, plan_id={self.treatment_plan_id}, clinic_id={self.clinic_id}, status='{self.status}')>"
