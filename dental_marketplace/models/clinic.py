from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, Float, Enum as SQLEnum
from sqlalchemy.orm import relationship

from ..core.database import Base
from .mixins import TimestampMixin
from .treatment import Specialization


class Clinic(TimestampMixin, Base):
    __tablename__ = "clinics"

    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    name = Column(String(255), nullable=False)
    license_number = Column(String(50), unique=True, nullable=True)
    year_established = Column(Integer, nullable=True)

    # Derived from reviews, recomputed on every new review
    rating = Column(Float, default=0, nullable=False)
    review_count = Column(Integer, default=0, nullable=False)

    # Location
    city = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    address = Column(String(255), nullable=True)

    # Capabilities
    has_therapy = Column(Boolean, default=True)
    has_orthopedics = Column(Boolean, default=True)
    has_surgery = Column(Boolean, default=True)
    has_hygiene = Column(Boolean, default=True)
    has_periodontics = Column(Boolean, default=True)

    # Services
    offers_installment = Column(Boolean, default=False)
    offers_insurance = Column(Boolean, default=False)

    # Relationships
    user = relationship("User", back_populates="clinic")
    price_list = relationship("PriceList", back_populates="clinic")
    offers = relationship("ClinicOffer", back_populates="clinic")
    appointments = relationship("Appointment", back_populates="clinic")
    reviews = relationship("Review", back_populates="clinic")

    def __repr__(self):
        return f"<Clinic(id={self.id}, name='{self.name}', rating={self.rating})>"


class PriceList(TimestampMixin, Base):
    __tablename__ = "price_lists"

    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    specialization = Column(SQLEnum(Specialization), nullable=False)
    service_name = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False)
    warranty_years = Column(Integer, default=0)

    clinic = relationship("Clinic", back_populates="price_list")

    def __repr__(self):
        return f"<PriceList(id={self.id}, clinic_id={self.clinic_id}, service='{self.service_name}')>"
