"""Appointment lookups, listings and removal."""

import logging
import math
from datetime import date

from sqlalchemy.orm import Session

from clinic_backend.core import errors
from clinic_backend.models.appointment import Appointment, AppointmentStatus
from clinic_backend.models.doctor import Doctor

logger = logging.getLogger(__name__)


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        raise errors.NotFoundError('Appointment not found.')
    return appointment


def delete_appointment(db: Session, appointment_id: int) -> None:
    appointment = get_appointment(db, appointment_id)
    db.delete(appointment)
    db.commit()
    logger.info('Deleted appointment %s', appointment_id)


def _newest_first(query):
    return query.order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())


def _filter(query, appointment_date: date | None, status: AppointmentStatus | None):
    if appointment_date is not None:
        query = query.filter(Appointment.appointment_date == appointment_date)
    if status is not None:
        query = query.filter(Appointment.status == AppointmentStatus(status).value)
    return query


def list_doctor_appointments(
    db: Session,
    doctor_id: int,
    appointment_date: date | None = None,
    status: AppointmentStatus | None = None,
) -> list[Appointment]:
    query = db.query(Appointment).filter(Appointment.doctor_id == doctor_id)
    return _newest_first(_filter(query, appointment_date, status)).all()


def list_all_appointments(db: Session) -> list[Appointment]:
    return _newest_first(db.query(Appointment)).all()


def list_appointments_with_doctor(
    db: Session,
    page: int,
    limit: int,
    appointment_date: date | None = None,
    status: AppointmentStatus | None = None,
) -> tuple[list[tuple[Appointment, Doctor]], int, int]:
    """Return one page of (appointment, doctor) rows, the total and the page count."""
    query = _filter(
        db.query(Appointment, Doctor).join(Doctor, Appointment.doctor_id == Doctor.id),
        appointment_date,
        status,
    )
    total = query.count()
    rows = _newest_first(query).offset((page - 1) * limit).limit(limit).all()
    return rows, total, math.ceil(total / limit)
