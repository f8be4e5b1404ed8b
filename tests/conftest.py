from datetime import date, time

import pytest

from clinic_backend.database import Database
from clinic_backend.models.appointment import Appointment, AppointmentStatus
from clinic_backend.models.availability import AvailabilityWindow
from clinic_backend.models.doctor import Doctor, DoctorStatus

CLINIC_DAY = date(2026, 1, 5)


@pytest.fixture
def database():
    handle = Database('sqlite://')
    handle.create_all()
    try:
        yield handle
    finally:
        handle.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_doctor(db):
    counter = {'value': 0}

    def _make_doctor(status: DoctorStatus = DoctorStatus.ACTIVE, **fields) -> Doctor:
        counter['value'] += 1
        doctor = Doctor(
            full_name=fields.pop('full_name', f'Dr. Example {counter["value"]}'),
            email=fields.pop('email', f'doctor{counter["value"]}@clinic.test'),
            specialization=fields.pop('specialization', 'General Practice'),
            status=status.value,
            **fields,
        )
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    return _make_doctor


@pytest.fixture
def make_window(db):
    def _make_window(
        doctor: Doctor,
        available_date: date = CLINIC_DAY,
        start_time: time = time(9, 0),
        end_time: time = time(17, 0),
        break_start: time | None = time(12, 0),
        break_end: time | None = time(13, 0),
    ) -> AvailabilityWindow:
        window = AvailabilityWindow(
            doctor_id=doctor.id,
            available_date=available_date,
            start_time=start_time,
            end_time=end_time,
            break_start=break_start,
            break_end=break_end,
        )
        db.add(window)
        db.commit()
        db.refresh(window)
        return window

    return _make_window


@pytest.fixture
def make_appointment(db):
    def _make_appointment(
        doctor: Doctor,
        appointment_time: time,
        appointment_date: date = CLINIC_DAY,
        status: AppointmentStatus = AppointmentStatus.PENDING,
        patient_name: str = 'Jordan Patient',
    ) -> Appointment:
        appointment = Appointment(
            patient_name=patient_name,
            doctor_id=doctor.id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            status=status.value,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make_appointment
