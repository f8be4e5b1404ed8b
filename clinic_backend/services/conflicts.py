from datetime import date, time

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_backend.core import errors
from clinic_backend.models.appointment import ACTIVE_SLOT_INDEX, ACTIVE_STATUS_VALUES, Appointment

# SQLite names the columns instead of the index when a unique index is violated.
_SQLITE_ACTIVE_SLOT_MESSAGE = (
    'UNIQUE constraint failed: appointments.doctor_id, appointments.appointment_date, appointments.appointment_time'
)


def is_slot_taken(
    db: Session,
    doctor_id: int,
    appointment_date: date,
    appointment_time: time,
    exclude_appointment_id: int | None = None,
) -> bool:
    query = db.query(Appointment.id).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == appointment_date,
        Appointment.appointment_time == appointment_time,
        Appointment.status.in_(ACTIVE_STATUS_VALUES),
    )
    if exclude_appointment_id is not None:
        query = query.filter(Appointment.id != exclude_appointment_id)

    return query.first() is not None


def ensure_slot_free(
    db: Session,
    doctor_id: int,
    appointment_date: date,
    appointment_time: time,
    exclude_appointment_id: int | None = None,
) -> None:
    if is_slot_taken(db, doctor_id, appointment_date, appointment_time, exclude_appointment_id):
        raise errors.SlotTakenError('Appointment slot already booked.')


def is_active_slot_violation(exc: IntegrityError) -> bool:
    """Tell whether an insert or update lost the race for an active slot."""
    message = str(exc.orig)
    return ACTIVE_SLOT_INDEX in message or _SQLITE_ACTIVE_SLOT_MESSAGE in message
