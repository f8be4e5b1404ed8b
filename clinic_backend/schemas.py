from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field, field_validator

from clinic_backend.models.appointment import AppointmentStatus

MAX_REASON_LENGTH = 600
MAX_PATIENT_NAME_LENGTH = 100
MAX_PHONE_LENGTH = 15
MAX_AGE_LENGTH = 10


def _normalize_optional(value: str | None, max_length: int, field_name: str) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > max_length:
        raise ValueError(f'{field_name} must be {max_length} characters or fewer.')

    return normalized


def _normalize_patient_name(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('patient_name is required.')
    if len(normalized) > MAX_PATIENT_NAME_LENGTH:
        raise ValueError(f'patient_name must be {MAX_PATIENT_NAME_LENGTH} characters or fewer.')
    return normalized


def _normalize_email(value: str | None) -> str | None:
    normalized = _normalize_optional(value, 100, 'patient_email')
    if normalized is None:
        return None
    if '@' not in normalized:
        raise ValueError('patient_email must be a valid email address.')
    return normalized.lower()


def _coerce_age(value):
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0:
            raise ValueError('patient_age must not be negative.')
        return str(value)
    return value


class PatientFields(BaseModel):
    model_config = ConfigDict(extra='forbid')

    patient_email: str | None = None
    patient_phone: str | None = None
    patient_age: str | None = None
    reason: str | None = None

    @field_validator('patient_email')
    @classmethod
    def validate_patient_email(cls, value: str | None) -> str | None:
        return _normalize_email(value)

    @field_validator('patient_phone')
    @classmethod
    def validate_patient_phone(cls, value: str | None) -> str | None:
        return _normalize_optional(value, MAX_PHONE_LENGTH, 'patient_phone')

    @field_validator('patient_age', mode='before')
    @classmethod
    def validate_patient_age(cls, value):
        value = _coerce_age(value)
        if isinstance(value, str):
            return _normalize_optional(value, MAX_AGE_LENGTH, 'patient_age')
        return value

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_optional(value, MAX_REASON_LENGTH, 'reason')


class CreateAppointmentRequest(PatientFields):
    patient_name: str
    doctor_id: int = Field(gt=0)
    appointment_date: date
    appointment_time: time

    @field_validator('patient_name')
    @classmethod
    def validate_patient_name(cls, value: str) -> str:
        return _normalize_patient_name(value)


class UpdateAppointmentRequest(PatientFields):
    """Patch for an existing appointment. Status changes go through the status endpoint."""
    patient_name: str | None = None
    appointment_date: date | None = None
    appointment_time: time | None = None

    @field_validator('patient_name')
    @classmethod
    def validate_patient_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _normalize_patient_name(value)


class UpdateAppointmentStatusRequest(BaseModel):
    status: AppointmentStatus

    @field_validator('status', mode='before')
    @classmethod
    def validate_status(cls, value):
        if not isinstance(value, str):
            raise ValueError('Invalid status.')

        normalized = value.strip().capitalize()
        if normalized not in {item.value for item in AppointmentStatus}:
            raise ValueError('Invalid status.')

        return normalized


class AppointmentResponse(BaseModel):
    id: int
    patient_name: str
    patient_email: str | None = None
    patient_phone: str | None = None
    patient_age: str | None = None
    doctor_id: int
    appointment_date: date
    appointment_time: time
    status: str
    reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class BookingResponse(AppointmentResponse):
    success: bool = True
    message: str = 'Appointment booked successfully'


class AppointmentWithDoctorResponse(AppointmentResponse):
    doctor_name: str | None = None
    doctor_email: str | None = None
    specialization: str | None = None
    doctor_phone: str | None = None


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class AdminAppointmentListResponse(BaseModel):
    appointments: list[AppointmentWithDoctorResponse]
    pagination: PaginationResponse


class StatusUpdateResponse(BaseModel):
    message: str
    status: str


class MessageResponse(BaseModel):
    message: str


class CreateScheduleRequest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    doctor_id: int = Field(gt=0)
    available_date: date
    start_time: time
    end_time: time
    break_start: time | None = None
    break_end: time | None = None


class UpdateScheduleRequest(BaseModel):
    """Patch for a window. An explicit null clears the break."""
    model_config = ConfigDict(extra='forbid')

    available_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    break_start: time | None = None
    break_end: time | None = None


class ScheduleResponse(BaseModel):
    id: int
    doctor_id: int
    available_date: date
    start_time: time
    end_time: time
    break_start: time | None = None
    break_end: time | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class ScheduleHoursResponse(BaseModel):
    start_time: time
    end_time: time
    break_start: time | None = None
    break_end: time | None = None


class SlotResponse(BaseModel):
    time: str
    full_time: str
    status: str
    reason: str | None = None


class SlotSummaryResponse(BaseModel):
    total_slots: int
    available_count: int
    booked_count: int
    break_count: int
    unavailable_count: int


class SlotAvailabilityResponse(BaseModel):
    date: date
    doctor_id: int
    schedule: ScheduleHoursResponse
    summary: SlotSummaryResponse
    hourly_summary: dict[str, SlotSummaryResponse]
    slots_by_hour: dict[str, list[SlotResponse]]
    all_slots: list[SlotResponse]
