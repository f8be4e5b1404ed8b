from collections import Counter
from datetime import date, time

from sqlalchemy import func
from sqlalchemy.orm import Session

from clinic_backend.core import errors
from clinic_backend.models.appointment import ACTIVE_STATUS_VALUES, Appointment
from clinic_backend.services.slots import HOURLY_APPOINTMENT_CAP, hour_bounds


def count_active_in_hour(
    db: Session,
    doctor_id: int,
    appointment_date: date,
    hour: int,
    exclude_appointment_id: int | None = None,
) -> int:
    hour_start, hour_end = hour_bounds(hour)
    query = db.query(func.count(Appointment.id)).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == appointment_date,
        Appointment.appointment_time >= hour_start,
        Appointment.appointment_time <= hour_end,
        Appointment.status.in_(ACTIVE_STATUS_VALUES),
    )
    if exclude_appointment_id is not None:
        query = query.filter(Appointment.id != exclude_appointment_id)

    return query.scalar() or 0


def is_hour_at_capacity(
    db: Session,
    doctor_id: int,
    appointment_date: date,
    hour: int,
    exclude_appointment_id: int | None = None,
) -> bool:
    count = count_active_in_hour(db, doctor_id, appointment_date, hour, exclude_appointment_id)
    return count >= HOURLY_APPOINTMENT_CAP


def ensure_hour_has_capacity(
    db: Session,
    doctor_id: int,
    appointment_date: date,
    appointment_time: time,
    exclude_appointment_id: int | None = None,
) -> None:
    if is_hour_at_capacity(db, doctor_id, appointment_date, appointment_time.hour, exclude_appointment_id):
        raise errors.CapacityExceededError(
            f'Maximum {HOURLY_APPOINTMENT_CAP} appointments per hour limit reached for this time slot.'
        )


def get_active_times(db: Session, doctor_id: int, appointment_date: date) -> list[time]:
    rows = db.query(Appointment.appointment_time).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == appointment_date,
        Appointment.status.in_(ACTIVE_STATUS_VALUES),
    ).all()
    return [appointment_time for (appointment_time,) in rows]


def count_active_by_hour(active_times: list[time]) -> dict[int, int]:
    return dict(Counter(active_time.hour for active_time in active_times))
