from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from .mixins import TimestampMixin


class Specialization(str, enum.Enum):
    THERAPY = "therapy"
    ORTHOPEDICS = "orthopedics"
    SURGERY = "surgery"
    HYGIENE = "hygiene"
    PERIODONTICS = "periodontics"


class ScanStatus(str, enum.Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class PlanStatus(str, enum.Enum):
    GENERATED = "generated"
    # Declared for completeness; no operation moves a plan into it
    OFFERS_REQUESTED = "offers_requested"
    OFFERS_RECEIVED = "offers_received"
    OFFER_SELECTED = "offer_selected"


# Plan states in which a first offer moves the plan to OFFERS_RECEIVED
PRE_OFFER_STATUSES = (PlanStatus.GENERATED, PlanStatus.OFFERS_REQUESTED)


class CTScan(TimestampMixin, Base):
    __tablename__ = "ct_scans"

    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    upload_date = Column(DateTime, nullable=True)
    file_url = Column(String(500), nullable=True)
    status = Column(SQLEnum(ScanStatus), default=ScanStatus.UPLOADED, nullable=False)
    ai_processed = Column(Boolean, default=False)

    patient = relationship("Patient", back_populates="ct_scans")
    treatment_plan = relationship(
        "TreatmentPlan",
        primaryjoin="and_(CTScan.id == TreatmentPlan.ct_scan_id, TreatmentPlan.deleted_at.is_(None))",
        uselist=False,
        viewonly=True,
    )

    def __repr__(self):
        return f"<CTScan(id={self.id}, patient_id={self.patient_id}, status='{self.status}')>"


class TreatmentPlan(TimestampMixin, Base):
    __tablename__ = "treatment_plans"

    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    ct_scan_id = Column(Integer, ForeignKey("ct_scans.id"), unique=True, nullable=False)
    status = Column(SQLEnum(PlanStatus), default=PlanStatus.GENERATED, nullable=False, index=True)

    # Summary by specialization
    requires_therapy = Column(Boolean, default=False)
    requires_orthopedics = Column(Boolean, default=False)
    requires_surgery = Column(Boolean, default=False)
    requires_hygiene = Column(Boolean, default=False)
    requires_periodontics = Column(Boolean, default=False)

    # Estimated cost ranges
    therapy_min_cost = Column(Integer, default=0)
    therapy_max_cost = Column(Integer, default=0)
    orthopedics_min_cost = Column(Integer, default=0)
    orthopedics_max_cost = Column(Integer, default=0)
    surgery_min_cost = Column(Integer, default=0)
    surgery_max_cost = Column(Integer, default=0)
    hygiene_min_cost = Column(Integer, default=0)
    hygiene_max_cost = Column(Integer, default=0)
    periodontics_min_cost = Column(Integer, default=0)
    periodontics_max_cost = Column(Integer, default=0)

    # Relationships
    patient = relationship("Patient", back_populates="treatment_plans")
    items = relationship(
        "TreatmentItem",
        primaryjoin="and_(TreatmentPlan.id == TreatmentItem.treatment_plan_id, TreatmentItem.deleted_at.is_(None))",
        order_by="TreatmentItem.id",
        viewonly=True,
    )
    offers = relationship(
        "ClinicOffer",
        primaryjoin="and_(TreatmentPlan.id == ClinicOffer.treatment_plan_id, ClinicOffer.deleted_at.is_(None))",
        order_by="ClinicOffer.id",
        viewonly=True,
    )

    def __repr__(self):
        return f"<TreatmentPlan(id={self.id}, patient_id={self.patient_id}, status='{self.status}')>"


class TreatmentItem(TimestampMixin, Base):
    """A single diagnosed procedure; written once at plan intake and never updated."""

    __tablename__ = "treatment_items"

    treatment_plan_id = Column(Integer, ForeignKey("treatment_plans.id"), nullable=False, index=True)
    specialization = Column(SQLEnum(Specialization), nullable=False)
    tooth_number = Column(String(10), nullable=True)  # FDI notation: 11-48
    diagnosis = Column(Text, nullable=True)
    procedure = Column(Text, nullable=True)
    urgency = Column(String(20), nullable=True)  # high, medium, low
    estimated_cost = Column(Integer, default=0)

    def __repr__(self):
        return f"<TreatmentItem(id={self.id}, plan_id={self.treatment_plan_id}, tooth='{self.tooth_number}')>"
