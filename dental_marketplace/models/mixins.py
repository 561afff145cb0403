from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.sql import func


class TimestampMixin:
    """Primary key, timestamps and the soft-delete marker shared by every table."""

    id = Column(Integer, primary_key=True, index=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    # Rows are never physically removed; default queries filter on this
    deleted_at = Column(DateTime, nullable=True, index=True)

    @classmethod
    def not_deleted(cls):
        """Criterion selecting rows that are not soft-deleted."""
        return cls.deleted_at.is_(None)
