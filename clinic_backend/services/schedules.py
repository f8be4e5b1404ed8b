import logging
from datetime import date, time

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_backend.core import errors
from clinic_backend.models.availability import AvailabilityWindow
from clinic_backend.schemas import CreateScheduleRequest, UpdateScheduleRequest
from clinic_backend.services.doctors import get_active_doctor

logger = logging.getLogger(__name__)

WINDOW_FIELDS = ('available_date', 'start_time', 'end_time', 'break_start', 'break_end')


def validate_window_bounds(
    start_time: time,
    end_time: time,
    break_start: time | None = None,
    break_end: time | None = None,
) -> None:
    if start_time >= end_time:
        raise errors.ValidationError('start_time must be before end_time.')

    if (break_start is None) != (break_end is None):
        raise errors.ValidationError('break_start and break_end must be provided together.')

    if break_start is None:
        return

    if break_start >= break_end:
        raise errors.ValidationError('break_start must be before break_end.')

    if break_start < start_time or break_end > end_time:
        raise errors.ValidationError('Break must fall inside the availability window.')


def find_window(db: Session, doctor_id: int, available_date: date) -> AvailabilityWindow | None:
    return db.query(AvailabilityWindow).filter(
        AvailabilityWindow.doctor_id == doctor_id,
        AvailabilityWindow.available_date == available_date,
    ).first()


def get_window(db: Session, doctor_id: int, available_date: date) -> AvailabilityWindow:
    window = find_window(db, doctor_id, available_date)
    if window is None:
        raise errors.UnavailableError('Doctor not available on this date.')
    return window


def lock_window(db: Session, window_id: int) -> None:
    """Take a write lock on the window row for the rest of the transaction.

    Bookings for the same doctor and date queue up behind this statement,
    so the capacity and conflict reads that follow see committed data.
    """
    db.execute(
        update(AvailabilityWindow)
        .where(AvailabilityWindow.id == window_id)
        .values(
            booking_version=AvailabilityWindow.booking_version + 1,
            updated_at=AvailabilityWindow.updated_at,
        )
        .execution_options(synchronize_session=False)
    )


def list_windows(db: Session, doctor_id: int, available_date: date | None = None) -> list[AvailabilityWindow]:
    query = db.query(AvailabilityWindow).filter(AvailabilityWindow.doctor_id == doctor_id)
    if available_date is not None:
        query = query.filter(AvailabilityWindow.available_date == available_date)
    return query.order_by(AvailabilityWindow.available_date.asc()).all()


def create_window(db: Session, data: CreateScheduleRequest) -> AvailabilityWindow:
    validate_window_bounds(data.start_time, data.end_time, data.break_start, data.break_end)
    get_active_doctor(db, data.doctor_id)

    if find_window(db, data.doctor_id, data.available_date) is not None:
        raise errors.DuplicateScheduleError('Schedule already exists for this doctor on this date.')

    window = AvailabilityWindow(
        doctor_id=data.doctor_id,
        available_date=data.available_date,
        start_time=data.start_time,
        end_time=data.end_time,
        break_start=data.break_start,
        break_end=data.break_end,
    )
    db.add(window)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise errors.DuplicateScheduleError('Schedule already exists for this doctor on this date.') from exc

    db.refresh(window)
    logger.info('Created schedule %s for doctor %s on %s', window.id, window.doctor_id, window.available_date)
    return window


def update_window(db: Session, schedule_id: int, patch: UpdateScheduleRequest) -> AvailabilityWindow:
    window = db.query(AvailabilityWindow).filter(AvailabilityWindow.id == schedule_id).first()
    if window is None:
        raise errors.NotFoundError('Schedule not found.')

    changes = patch.model_dump(exclude_unset=True)
    if not changes:
        raise errors.ValidationError('No valid fields provided for update.')

    for field in ('available_date', 'start_time', 'end_time'):
        if field in changes and changes[field] is None:
            raise errors.ValidationError(f'{field} cannot be cleared.')

    merged = {field: changes.get(field, getattr(window, field)) for field in WINDOW_FIELDS}
    validate_window_bounds(merged['start_time'], merged['end_time'], merged['break_start'], merged['break_end'])

    if merged['available_date'] != window.available_date:
        existing = find_window(db, window.doctor_id, merged['available_date'])
        if existing is not None and existing.id != window.id:
            raise errors.DuplicateScheduleError('Schedule already exists for this doctor on this date.')

    for field in WINDOW_FIELDS:
        setattr(window, field, merged[field])

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise errors.DuplicateScheduleError('Schedule already exists for this doctor on this date.') from exc

    db.refresh(window)
    logger.info('Updated schedule %s (%s)', window.id, ', '.join(sorted(changes)))
    return window


def delete_window(db: Session, schedule_id: int) -> None:
    window = db.query(AvailabilityWindow).filter(AvailabilityWindow.id == schedule_id).first()
    if window is None:
        raise errors.NotFoundError('Schedule not found.')

    db.delete(window)
    db.commit()
    logger.info('Deleted schedule %s', schedule_id)
