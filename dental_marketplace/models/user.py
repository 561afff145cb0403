from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum as SQLEnum
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..core.security import UserRole
from .mixins import TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    phone = Column(String(30), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, index=True)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime, nullable=True)

    # Exactly one of these is populated, matching the role
    patient = relationship("Patient", back_populates="user", uselist=False)
    clinic = relationship("Clinic", back_populates="user", uselist=False)
    regulator = relationship("Regulator", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"


class RefreshToken(TimestampMixin, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(Integer, nullable=False, index=True)
    token_hash = Column(String(255), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    is_revoked = Column(Boolean, default=False)

    def __repr__(self):
        return f"<RefreshToken(id={self.id}, user_id={self.user_id})>"
