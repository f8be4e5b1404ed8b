"""Booking engine: validates a requested slot and commits it atomically.

The validation chain runs in a fixed order and stops at the first failure:
required input, active doctor, availability window, time inside the window,
hourly capacity, exact-slot conflict. Capacity and conflict are read after
the window row has been write-locked in the same transaction as the insert,
and the partial unique index on active slots catches anything that still
slips through.
"""

import logging
from datetime import date, time
from typing import NamedTuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_backend.core import config, errors
from clinic_backend.models.appointment import Appointment, AppointmentStatus
from clinic_backend.models.availability import AvailabilityWindow
from clinic_backend.schemas import CreateAppointmentRequest, UpdateAppointmentRequest
from clinic_backend.services.appointments import get_appointment
from clinic_backend.services.capacity import count_active_by_hour, ensure_hour_has_capacity, get_active_times
from clinic_backend.services.conflicts import ensure_slot_free, is_active_slot_violation
from clinic_backend.services.doctors import get_active_doctor
from clinic_backend.services.schedules import get_window, lock_window
from clinic_backend.services.slots import (
    SLOT_INCREMENT_MINUTES,
    Slot,
    classify_slots,
    is_bookable_time,
    is_break_time,
    is_on_slot_grid,
    normalize_slot_time,
)
from clinic_backend.services.status import ensure_transition_allowed, occupies_slot, reactivates_slot

logger = logging.getLogger(__name__)

REQUIRED_APPOINTMENT_FIELDS = ('patient_name', 'appointment_date', 'appointment_time')


class SlotReport(NamedTuple):
    window: AvailabilityWindow
    slots: list[Slot]


def validate_booking_target(
    db: Session,
    doctor_id: int,
    appointment_date: date,
    appointment_time: time,
    strict_alignment: bool | None = None,
) -> AvailabilityWindow:
    """Run the read-only part of the chain and return the matching window."""
    if strict_alignment is None:
        strict_alignment = config.STRICT_SLOT_ALIGNMENT

    if strict_alignment and not is_on_slot_grid(appointment_time):
        raise errors.ValidationError(f'Appointments must start on {SLOT_INCREMENT_MINUTES}-minute boundaries.')

    get_active_doctor(db, doctor_id)
    window = get_window(db, doctor_id, appointment_date)

    if not is_bookable_time(window, appointment_time):
        if is_break_time(window, appointment_time):
            raise errors.OutOfHoursError('Appointment time falls within the doctor\'s break.')
        raise errors.OutOfHoursError('Appointment time outside doctor availability hours.')

    return window


def reserve_slot(
    db: Session,
    window_id: int,
    doctor_id: int,
    appointment_date: date,
    appointment_time: time,
    exclude_appointment_id: int | None = None,
) -> None:
    lock_window(db, window_id)

    ensure_hour_has_capacity(db, doctor_id, appointment_date, appointment_time, exclude_appointment_id)
    ensure_slot_free(db, doctor_id, appointment_date, appointment_time, exclude_appointment_id)


def book_appointment(
    db: Session,
    data: CreateAppointmentRequest,
    strict_alignment: bool | None = None,
) -> Appointment:
    appointment_time = normalize_slot_time(data.appointment_time)

    try:
        if not data.patient_name or not data.patient_name.strip():
            raise errors.ValidationError('patient_name is required.')

        window = validate_booking_target(
            db,
            data.doctor_id,
            data.appointment_date,
            appointment_time,
            strict_alignment,
        )
        reserve_slot(db, window.id, data.doctor_id, data.appointment_date, appointment_time)

        appointment = Appointment(
            patient_name=data.patient_name,
            patient_email=data.patient_email,
            patient_phone=data.patient_phone,
            patient_age=data.patient_age,
            doctor_id=data.doctor_id,
            appointment_date=data.appointment_date,
            appointment_time=appointment_time,
            status=AppointmentStatus.PENDING.value,
            reason=data.reason,
        )
        db.add(appointment)
        db.commit()
    except errors.ClinicError as exc:
        db.rollback()
        logger.info(
            'Booking rejected for doctor %s on %s at %s: %s',
            data.doctor_id,
            data.appointment_date,
            appointment_time,
            exc.message,
        )
        raise
    except IntegrityError as exc:
        db.rollback()
        if not is_active_slot_violation(exc):
            raise
        logger.info(
            'Booking lost a concurrent race for doctor %s on %s at %s',
            data.doctor_id,
            data.appointment_date,
            appointment_time,
        )
        raise errors.SlotTakenError('Appointment slot already booked.') from exc

    db.refresh(appointment)
    logger.info(
        'Booked appointment %s for doctor %s on %s at %s',
        appointment.id,
        appointment.doctor_id,
        appointment.appointment_date,
        appointment.appointment_time,
    )
    return appointment


def get_slot_report(db: Session, doctor_id: int, available_date: date) -> SlotReport:
    window = get_window(db, doctor_id, available_date)
    active_times = get_active_times(db, doctor_id, available_date)
    slots = classify_slots(window, active_times, count_active_by_hour(active_times))
    return SlotReport(window=window, slots=slots)


def update_appointment_status(
    db: Session,
    appointment_id: int,
    new_status: AppointmentStatus | str,
    strict: bool | None = None,
) -> Appointment:
    new_status = AppointmentStatus(new_status)
    appointment = get_appointment(db, appointment_id)
    current_status = appointment.status

    ensure_transition_allowed(current_status, new_status, strict)
    if current_status == new_status.value:
        return appointment

    try:
        if reactivates_slot(current_status, new_status):
            window = validate_booking_target(
                db,
                appointment.doctor_id,
                appointment.appointment_date,
                appointment.appointment_time,
            )
            reserve_slot(
                db,
                window.id,
                appointment.doctor_id,
                appointment.appointment_date,
                appointment.appointment_time,
                exclude_appointment_id=appointment.id,
            )

        appointment.status = new_status.value
        db.commit()
    except errors.ClinicError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        if not is_active_slot_violation(exc):
            raise
        raise errors.SlotTakenError('Appointment slot already booked.') from exc

    db.refresh(appointment)
    logger.info('Appointment %s status %s -> %s', appointment.id, current_status, new_status.value)
    return appointment


def update_appointment(
    db: Session,
    appointment_id: int,
    patch: UpdateAppointmentRequest,
    strict_alignment: bool | None = None,
) -> Appointment:
    appointment = get_appointment(db, appointment_id)

    changes = patch.model_dump(exclude_unset=True)
    if not changes:
        raise errors.ValidationError('No data provided for update.')

    for field in REQUIRED_APPOINTMENT_FIELDS:
        if field in changes and changes[field] is None:
            raise errors.ValidationError(f'{field} cannot be cleared.')

    if 'appointment_time' in changes:
        changes['appointment_time'] = normalize_slot_time(changes['appointment_time'])

    new_date = changes.get('appointment_date', appointment.appointment_date)
    new_time = changes.get('appointment_time', appointment.appointment_time)
    moved = (new_date, new_time) != (appointment.appointment_date, appointment.appointment_time)

    try:
        if moved:
            window = validate_booking_target(db, appointment.doctor_id, new_date, new_time, strict_alignment)
            if occupies_slot(appointment.status):
                reserve_slot(
                    db,
                    window.id,
                    appointment.doctor_id,
                    new_date,
                    new_time,
                    exclude_appointment_id=appointment.id,
                )

        for field, value in changes.items():
            setattr(appointment, field, value)
        db.commit()
    except errors.ClinicError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        if not is_active_slot_violation(exc):
            raise
        raise errors.SlotTakenError('Appointment slot already booked.') from exc

    db.refresh(appointment)
    logger.info('Updated appointment %s (%s)', appointment.id, ', '.join(sorted(changes)))
    return appointment
