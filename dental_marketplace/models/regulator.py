from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from ..core.database import Base
from .mixins import TimestampMixin


class Regulator(TimestampMixin, Base):
    __tablename__ = "regulators"

    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    organization = Column(String(255), nullable=True)
    region = Column(String(100), nullable=True)
    position = Column(String(100), nullable=True)

    user = relationship("User", back_populates="regulator")

    def __repr__(self):
        return f"<Regulator(id={self.id}, region='{self.region}')>"
