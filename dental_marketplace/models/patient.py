from sqlalchemy import Column, Integer, String, ForeignKey, Date
from sqlalchemy.orm import relationship

from ..core.database import Base
from .mixins import TimestampMixin


class Patient(TimestampMixin, Base):
    __tablename__ = "patients"

    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Personal information
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)

    # Clinic search criteria
    city = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    price_segment = Column(String(50), nullable=True)  # economy, medium, premium

    # Relationships
    user = relationship("User", back_populates="patient")
    ct_scans = relationship("CTScan", back_populates="patient")
    treatment_plans = relationship("TreatmentPlan", back_populates="patient")
    appointments = relationship("Appointment", back_populates="patient")
    reviews = relationship("Review", back_populates="patient")

    def __repr__(self):
        return f"<Patient(id={self.id}, name='{self.first_name} {self.last_name}')>"
