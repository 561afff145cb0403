from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from .mixins import TimestampMixin


class ComplaintStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Review(TimestampMixin, Base):
    __tablename__ = "reviews"

    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)
    is_public = Column(Boolean, default=False)

    patient = relationship("Patient", back_populates="reviews")
    clinic = relationship("Clinic", back_populates="reviews")

    def __repr__(self):
        return f"<Review(id={self.id}, clinic_id={self.clinic_id}, rating={self.rating})>"


class Complaint(TimestampMixin, Base):
    __tablename__ = "complaints"

    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(SQLEnum(ComplaintStatus), default=ComplaintStatus.OPEN, nullable=False)
    resolution = Column(Text, nullable=True)

    patient = relationship("Patient")
    clinic = relationship("Clinic")

    def __repr__(self):
        return f"<Complaint(id={self.id}, clinic_id={self.clinic_id}, status='{self.status}')>"
