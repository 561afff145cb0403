from sqlalchemy import Column, Integer, ForeignKey, Date, Float

from ..core.database import Base
from .mixins import TimestampMixin


class Statistics(TimestampMixin, Base):
    """Daily fact row. Rows without a clinic are regional aggregates."""

    __tablename__ = "statistics"

    date = Column(Date, nullable=False, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=True, index=True)

    # Metrics
    treatment_plans_generated = Column(Integer, default=0, nullable=False)
    appointments_scheduled = Column(Integer, default=0, nullable=False)
    appointments_completed = Column(Integer, default=0, nullable=False)
    total_revenue = Column(Integer, default=0, nullable=False)
    patient_count = Column(Integer, default=0, nullable=False)

    # Disease counters
    caries_count = Column(Integer, default=0, nullable=False)
    pulpitis_count = Column(Integer, default=0, nullable=False)
    periodontitis_count = Column(Integer, default=0, nullable=False)
    gingivitis_count = Column(Integer, default=0, nullable=False)
    parodontitis_count = Column(Integer, default=0, nullable=False)

    # Averages
    average_wait_days = Column(Float, default=0, nullable=False)
    average_treatment_cost = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<Statistics(date='{self.date}', clinic_id={self.clinic_id})>"
