from sqlalchemy.orm import Session

from clinic_backend.core import errors
from clinic_backend.models.doctor import Doctor, DoctorStatus


def get_active_doctor(db: Session, doctor_id: int) -> Doctor:
    doctor = db.query(Doctor).filter(
        Doctor.id == doctor_id,
        Doctor.status == DoctorStatus.ACTIVE.value,
    ).first()

    if doctor is None:
        raise errors.NotFoundError('Doctor not found or inactive.')

    return doctor
