from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.core import errors
from clinic_backend.dependencies import get_db
from clinic_backend.routes.appointment_routes import database_failure
from clinic_backend.schemas import CreateScheduleRequest, ScheduleResponse, UpdateScheduleRequest
from clinic_backend.services import schedules

router = APIRouter(tags=['schedules'])


@router.post('/', response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(data: CreateScheduleRequest, db: Session = Depends(get_db)):
    try:
        return schedules.create_window(db, data)
    except errors.ClinicError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not create schedule.') from exc


@router.put('/{schedule_id}', response_model=ScheduleResponse)
def update_schedule(schedule_id: int, data: UpdateScheduleRequest, db: Session = Depends(get_db)):
    try:
        return schedules.update_window(db, schedule_id, data)
    except errors.ClinicError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not update schedule.') from exc


@router.delete('/{schedule_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(schedule_id: int, db: Session = Depends(get_db)):
    try:
        schedules.delete_window(db, schedule_id)
    except errors.ClinicError as exc:
        raise exc.to_http_exception() from exc
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not delete schedule.') from exc


@router.get('/doctor/{doctor_id}', response_model=list[ScheduleResponse])
def list_doctor_schedules(doctor_id: int, db: Session = Depends(get_db)):
    try:
        return schedules.list_windows(db, doctor_id)
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not fetch schedules.') from exc


@router.get('/doctor/{doctor_id}/date/{available_date}', response_model=list[ScheduleResponse])
def list_doctor_schedules_on_date(doctor_id: int, available_date: date, db: Session = Depends(get_db)):
    try:
        return schedules.list_windows(db, doctor_id, available_date)
    except SQLAlchemyError as exc:
        raise database_failure(db, 'Could not fetch schedules.') from exc
