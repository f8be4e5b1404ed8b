"""Availability window model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, Time, func

from clinic_backend.database import Base


class AvailabilityWindow(Base):
    """A doctor's bookable hours on one date, with an optional break."""
    __tablename__ = "doctor_schedule"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False)
    available_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    break_start = Column(Time)
    break_end = Column(Time)
    # Bumped by every booking so the row doubles as the per-date booking lock.
    booking_version = Column(Integer, nullable=False, default=0, server_default='0')
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('uq_doctor_schedule_doctor_date', 'doctor_id', 'available_date', unique=True),
    )
