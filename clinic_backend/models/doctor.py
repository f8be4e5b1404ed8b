"""Doctor model definitions."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, func

from clinic_backend.database import Base


class DoctorStatus(str, Enum):
    ACTIVE = 'Active'
    INACTIVE = 'Inactive'


class Doctor(Base):
    """A doctor that patients can book. Only read by the booking engine."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    phone = Column(String(15))
    specialization = Column(String(100))
    status = Column(String(10), nullable=False, default=DoctorStatus.ACTIVE.value)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
