from datetime import date, time

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from clinic_backend.models.appointment import AppointmentStatus
from clinic_backend.models.doctor import DoctorStatus
from clinic_backend.routes import appointment_routes
from clinic_backend.routes.appointment_routes import (
    book_appointment,
    delete_appointment,
    get_available_slots,
    list_all_appointments,
    list_appointments_with_doctor,
    list_doctor_appointments,
    update_appointment,
    update_appointment_status,
)
from clinic_backend.schemas import (
    CreateAppointmentRequest,
    UpdateAppointmentRequest,
    UpdateAppointmentStatusRequest,
)

CLINIC_DAY = date(2026, 1, 5)


@pytest.fixture
def doctor(make_doctor, make_window):
    doctor = make_doctor(full_name='Dr. Rivera', phone='555-0100')
    make_window(doctor)
    return doctor


def _booking(doctor_id: int, appointment_time: time, **fields) -> CreateAppointmentRequest:
    return CreateAppointmentRequest(
        patient_name=fields.pop('patient_name', 'Jordan Patient'),
        doctor_id=doctor_id,
        appointment_date=fields.pop('appointment_date', CLINIC_DAY),
        appointment_time=appointment_time,
        **fields,
    )


def test_create_appointment_request_normalizes_fields() -> None:
    request = CreateAppointmentRequest(
        patient_name='  Jordan Patient ',
        doctor_id=1,
        appointment_date=CLINIC_DAY,
        appointment_time=time(9, 0),
        patient_email=' JORDAN@EXAMPLE.COM ',
        patient_age=34,
        reason='   ',
    )

    assert request.patient_name == 'Jordan Patient'
    assert request.patient_email == 'jordan@example.com'
    assert request.patient_age == '34'
    assert request.reason is None


@pytest.mark.parametrize(
    'fields',
    [
        {'patient_name': '   '},
        {'patient_email': 'not-an-email'},
        {'reason': 'x' * 601},
        {'unexpected': 'field'},
    ],
)
def test_create_appointment_request_rejects_bad_input(fields) -> None:
    payload = {
        'patient_name': 'Jordan Patient',
        'doctor_id': 1,
        'appointment_date': CLINIC_DAY,
        'appointment_time': time(9, 0),
    }
    payload.update(fields)

    with pytest.raises(ValidationError):
        CreateAppointmentRequest(**payload)


def test_status_request_normalizes_case_and_rejects_unknown() -> None:
    assert UpdateAppointmentStatusRequest(status=' confirmed ').status == AppointmentStatus.CONFIRMED

    with pytest.raises(ValidationError):
        UpdateAppointmentStatusRequest(status='Completed')


def test_book_appointment_returns_record_with_success_flag(db, doctor) -> None:
    response = book_appointment(data=_booking(doctor.id, time(9, 0)), db=db)

    assert response.id > 0
    assert response.success is True
    assert response.message == 'Appointment booked successfully'
    assert response.status == 'Pending'
    assert response.appointment_time == time(9, 0)


@pytest.mark.parametrize(
    ('appointment_time', 'appointment_date', 'status_code', 'detail'),
    [
        (time(12, 30), CLINIC_DAY, 400, 'Appointment time falls within the doctor\'s break.'),
        (time(18, 0), CLINIC_DAY, 400, 'Appointment time outside doctor availability hours.'),
        (time(9, 0), date(2026, 1, 6), 400, 'Doctor not available on this date.'),
    ],
)
def test_book_appointment_maps_rejections_to_http_errors(
    db,
    doctor,
    appointment_time,
    appointment_date,
    status_code,
    detail,
) -> None:
    with pytest.raises(HTTPException) as exception_info:
        book_appointment(data=_booking(doctor.id, appointment_time, appointment_date=appointment_date), db=db)

    assert exception_info.value.status_code == status_code
    assert exception_info.value.detail == detail


def test_book_appointment_conflicts_return_409(db, doctor) -> None:
    for minute in (0, 15, 30, 45):
        book_appointment(data=_booking(doctor.id, time(9, minute)), db=db)

    with pytest.raises(HTTPException) as capacity_info:
        book_appointment(data=_booking(doctor.id, time(9, 50)), db=db)
    book_appointment(data=_booking(doctor.id, time(10, 0)), db=db)
    with pytest.raises(HTTPException) as taken_info:
        book_appointment(data=_booking(doctor.id, time(10, 0)), db=db)

    assert capacity_info.value.status_code == 409
    assert capacity_info.value.detail == 'Maximum 4 appointments per hour limit reached for this time slot.'
    assert taken_info.value.status_code == 409
    assert taken_info.value.detail == 'Appointment slot already booked.'


def test_book_appointment_inactive_doctor_returns_404(db, make_doctor) -> None:
    inactive = make_doctor(status=DoctorStatus.INACTIVE)

    with pytest.raises(HTTPException) as exception_info:
        book_appointment(data=_booking(inactive.id, time(9, 0)), db=db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Doctor not found or inactive.'


def test_book_appointment_database_failure_is_generic_500(db, doctor, monkeypatch) -> None:
    def _fail(*args, **kwargs):
        raise OperationalError('INSERT', {}, Exception('disk I/O error'))

    monkeypatch.setattr(appointment_routes.booking, 'book_appointment', _fail)

    with pytest.raises(HTTPException) as exception_info:
        book_appointment(data=_booking(doctor.id, time(9, 0)), db=db)

    assert exception_info.value.status_code == 500
    assert exception_info.value.detail == 'Could not book appointment.'


def test_get_available_slots_builds_summary(db, doctor, make_appointment) -> None:
    make_appointment(doctor, time(9, 0))
    make_appointment(doctor, time(9, 15), status=AppointmentStatus.CANCELLED)

    response = get_available_slots(doctor_id=doctor.id, available_date=CLINIC_DAY, db=db)

    assert response.summary.total_slots == 32
    assert response.summary.booked_count == 1
    assert response.summary.break_count == 4
    assert response.summary.available_count == 27
    assert response.summary.unavailable_count == 0
    assert response.schedule.break_start == time(12, 0)
    assert response.hourly_summary['12'].break_count == 4
    assert response.slots_by_hour['09'][0].time == '09:00'
    assert response.slots_by_hour['09'][0].reason == 'Already booked'
    assert response.all_slots[1].full_time == '09:15:00'
    assert response.all_slots[1].status == 'available'


def test_get_available_slots_without_window(db, doctor) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_available_slots(doctor_id=doctor.id, available_date=date(2026, 1, 9), db=db)

    assert exception_info.value.detail == 'Doctor not available on this date.'


def test_update_status_route_acknowledges(db, doctor, make_appointment) -> None:
    appointment = make_appointment(doctor, time(9, 0))

    response = update_appointment_status(
        appointment_id=appointment.id,
        data=UpdateAppointmentStatusRequest(status='Confirmed'),
        db=db,
    )

    assert response.message == 'Appointment status updated'
    assert response.status == 'Confirmed'


def test_update_status_route_missing_appointment(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_appointment_status(
            appointment_id=77,
            data=UpdateAppointmentStatusRequest(status='Confirmed'),
            db=db,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Appointment not found.'


def test_update_appointment_route_rejects_move_into_break(db, doctor, make_appointment) -> None:
    appointment = make_appointment(doctor, time(9, 0))

    with pytest.raises(HTTPException) as exception_info:
        update_appointment(
            appointment_id=appointment.id,
            data=UpdateAppointmentRequest(appointment_time=time(12, 0)),
            db=db,
        )

    assert exception_info.value.status_code == 400


def test_delete_appointment_route(db, doctor, make_appointment) -> None:
    appointment = make_appointment(doctor, time(9, 0))

    response = delete_appointment(appointment_id=appointment.id, db=db)

    assert response.message == 'Appointment deleted'
    with pytest.raises(HTTPException) as exception_info:
        delete_appointment(appointment_id=appointment.id, db=db)
    assert exception_info.value.status_code == 404


def test_list_doctor_appointments_filters(db, doctor, make_appointment) -> None:
    make_appointment(doctor, time(9, 0))
    make_appointment(doctor, time(10, 0), status=AppointmentStatus.CANCELLED)
    make_appointment(doctor, time(11, 0), appointment_date=date(2026, 1, 6))

    everything = list_doctor_appointments(
        doctor_id=doctor.id,
        appointment_date=None,
        appointment_status=None,
        db=db,
    )
    cancelled = list_doctor_appointments(
        doctor_id=doctor.id,
        appointment_date=CLINIC_DAY,
        appointment_status=AppointmentStatus.CANCELLED,
        db=db,
    )

    assert [(item.appointment_date, item.appointment_time) for item in everything] == [
        (date(2026, 1, 6), time(11, 0)),
        (CLINIC_DAY, time(10, 0)),
        (CLINIC_DAY, time(9, 0)),
    ]
    assert [item.appointment_time for item in cancelled] == [time(10, 0)]


def test_list_all_appointments(db, doctor, make_appointment) -> None:
    make_appointment(doctor, time(9, 0))
    make_appointment(doctor, time(9, 15))

    assert len(list_all_appointments(db=db)) == 2


def test_list_appointments_with_doctor_paginates(db, doctor, make_appointment) -> None:
    for minute in (0, 15, 30):
        make_appointment(doctor, time(9, minute))
    make_appointment(doctor, time(10, 0), status=AppointmentStatus.REJECTED)

    first_page = list_appointments_with_doctor(
        page=1,
        limit=2,
        appointment_date=None,
        appointment_status=None,
        db=db,
    )
    pending_only = list_appointments_with_doctor(
        page=2,
        limit=2,
        appointment_date=CLINIC_DAY,
        appointment_status=AppointmentStatus.PENDING,
        db=db,
    )

    assert first_page.pagination.total == 4
    assert first_page.pagination.pages == 2
    assert [item.appointment_time for item in first_page.appointments] == [time(10, 0), time(9, 30)]
    assert first_page.appointments[0].doctor_name == 'Dr. Rivera'
    assert first_page.appointments[0].doctor_phone == '555-0100'
    assert pending_only.pagination.total == 3
    assert [item.appointment_time for item in pending_only.appointments] == [time(9, 0)]
