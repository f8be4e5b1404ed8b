import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.core import config, errors
from clinic_backend.dependencies import get_db
from clinic_backend.models.appointment import AppointmentStatus
from clinic_backend.schemas import (
    AdminAppointmentListResponse,
    AppointmentResponse,
    AppointmentWithDoctorResponse,
    BookingResponse,
    CreateAppointmentRequest,
    MessageResponse,
    PaginationResponse,
    ScheduleHoursResponse,
    SlotAvailabilityResponse,
    SlotResponse,
    SlotSummaryResponse,
    StatusUpdateResponse,
    UpdateAppointmentRequest,
    UpdateAppointmentStatusRequest,
)
from clinic_backend.services import appointments, booking
from clinic_backend.services.slots import Slot, group_slots_by_hour, summarize_slots

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)


def database_failure(db: Session, message: str) -> HTTPException:
    db.rollback()
    logger.exception(message)
    return errors.InternalError(message).to_http_exception()


def to_slot_response(slot: Slot) -> SlotResponse:
    return SlotResponse(
        time=slot.display_time,
        full_time=slot.full_time,
        status=slot.status,
        reason=slot.reason,
    )


def build_slot_availability_response(
    doctor_id: int,
    available_date: date,
    report: booking.SlotReport,
) -> SlotAvailabilityResponse:
    window = report.window
    grouped = group_slots_by_hour(report.slots)

    return SlotAvailabilityResponse(
        date=available_date,
        doctor_id=doctor_id,
        schedule=ScheduleHoursResponse(
            start_time=window.start_time,
            end_time=window.end_time,
            break_start=window.break_start,
            break_end=window.break_end,
        ),
        summary=SlotSummaryResponse(**summarize_slots(report.slots)),
        hourly_summary={hour: SlotSummaryResponse(**summarize_slots(slots)) for hour, slots in grouped.items()},
        slots_by_hour={hour: [to_slot_response(slot) for slot in slots] for hour, slots in grouped.items()},
        all_slots=[to_slot_response(slot) for slot in report.slots],
    )


@router.post('/book', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(data: CreateAppointmentRequest, db: Session = Depends(get_db)):
    try:
        appointment = booking.book_appointment(db, data)
    except errors.ClinicError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not book appointment.') from exc

    return BookingResponse.model_validate(appointment)


@router.get('/available-slots/{doctor_id}/{available_date}', response_model=SlotAvailabilityResponse)
def get_available_slots(doctor_id: int, available_date: date, db: Session = Depends(get_db)):
    try:
        report = booking.get_slot_report(db, doctor_id, available_date)
    except errors.ClinicError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not fetch available slots.') from exc

    return build_slot_availability_response(doctor_id, available_date, report)


@router.put('/book/{appointment_id}/status', response_model=StatusUpdateResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateAppointmentStatusRequest,
    db: Session = Depends(get_db),
):
    try:
        appointment = booking.update_appointment_status(db, appointment_id, data.status)
    except errors.ClinicError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not update appointment status.') from exc

    return StatusUpdateResponse(message='Appointment status updated', status=appointment.status)


@router.get('/doctor/{doctor_id}', response_model=list[AppointmentResponse])
def list_doctor_appointments(
    doctor_id: int,
    appointment_date: date | None = Query(default=None, alias='date'),
    appointment_status: AppointmentStatus | None = Query(default=None, alias='status'),
    db: Session = Depends(get_db),
):
    try:
        return appointments.list_doctor_appointments(db, doctor_id, appointment_date, appointment_status)
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not fetch doctor appointments.') from exc


@router.get('/admin/all', response_model=AdminAppointmentListResponse)
def list_appointments_with_doctor(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=config.DEFAULT_PAGE_LIMIT, ge=1, le=config.MAX_PAGE_LIMIT),
    appointment_date: date | None = Query(default=None, alias='date'),
    appointment_status: AppointmentStatus | None = Query(default=None, alias='status'),
    db: Session = Depends(get_db),
):
    try:
        rows, total, pages = appointments.list_appointments_with_doctor(
            db,
            page=page,
            limit=limit,
            appointment_date=appointment_date,
            status=appointment_status,
        )
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not fetch all appointments.') from exc

    return AdminAppointmentListResponse(
        appointments=[
            AppointmentWithDoctorResponse(
                **AppointmentResponse.model_validate(appointment).model_dump(),
                doctor_name=doctor.full_name,
                doctor_email=doctor.email,
                specialization=doctor.specialization,
                doctor_phone=doctor.phone,
            )
            for appointment, doctor in rows
        ],
        pagination=PaginationResponse(page=page, limit=limit, total=total, pages=pages),
    )


@router.get('/', response_model=list[AppointmentResponse])
def list_all_appointments(db: Session = Depends(get_db)):
    try:
        return appointments.list_all_appointments(db)
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not fetch appointments.') from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    try:
        return appointments.get_appointment(db, appointment_id)
    except errors.ClinicError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not fetch appointment.') from exc


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    db: Session = Depends(get_db),
):
    try:
        return booking.update_appointment(db, appointment_id, data)
    except errors.ClinicError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not update appointment.') from exc


@router.delete('/{appointment_id}', response_model=MessageResponse)
def delete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    try:
        appointments.delete_appointment(db, appointment_id)
    except errors.ClinicError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not delete appointment.') from exc

    return MessageResponse(message='Appointment deleted')
