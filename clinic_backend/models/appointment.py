"""Appointment model definitions."""

from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, Time, func, text

from clinic_backend.database import Base


class AppointmentStatus(str, Enum):
    PENDING = 'Pending'
    ACCEPTED = 'Accepted'
    REJECTED = 'Rejected'
    CONFIRMED = 'Confirmed'
    CANCELLED = 'Cancelled'


# Statuses that occupy a slot and count toward the hourly cap.
ACTIVE_STATUSES = frozenset({
    AppointmentStatus.PENDING.value,
    AppointmentStatus.ACCEPTED.value,
    AppointmentStatus.CONFIRMED.value,
})
ACTIVE_STATUS_VALUES = sorted(ACTIVE_STATUSES)
ACTIVE_SLOT_INDEX = 'uq_appointments_active_slot'

_ACTIVE_SLOT_FILTER = text(
    "status IN ({})".format(', '.join(f"'{value}'" for value in ACTIVE_STATUS_VALUES))
)


class Appointment(Base):
    """A patient's request for one doctor at one date and time."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    patient_name = Column(String(100), nullable=False)
    patient_age = Column(String(10))
    patient_email = Column(String(100))
    patient_phone = Column(String(15))
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    status = Column(String(10), nullable=False, default=AppointmentStatus.PENDING.value)
    reason = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index(
            ACTIVE_SLOT_INDEX,
            'doctor_id',
            'appointment_date',
            'appointment_time',
            unique=True,
            postgresql_where=_ACTIVE_SLOT_FILTER,
            sqlite_where=_ACTIVE_SLOT_FILTER,
        ),
        Index('idx_appointments_doctor_date_time', 'doctor_id', 'appointment_date', 'appointment_time'),
        Index('idx_appointments_status_date', 'status', 'appointment_date'),
    )
