"""Error taxonomy for the booking engine.

Every error carries a user-facing message and the HTTP status code the
routes answer with. Only ``InternalError`` hides its cause from the caller.
"""

from fastapi import HTTPException, status


class ClinicError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class ValidationError(ClinicError):
    """Missing or malformed input."""


class NotFoundError(ClinicError):
    """Doctor, appointment or schedule is missing, or the doctor is inactive."""
    status_code = status.HTTP_404_NOT_FOUND


class UnavailableError(ClinicError):
    """The doctor has no availability window on the requested date."""


class OutOfHoursError(ClinicError):
    """The requested time is outside the window or inside its break."""


class CapacityExceededError(ClinicError):
    status_code = status.HTTP_409_CONFLICT


class SlotTakenError(ClinicError):
    status_code = status.HTTP_409_CONFLICT


class DuplicateScheduleError(ClinicError):
    status_code = status.HTTP_409_CONFLICT


class StatusTransitionError(ClinicError):
    status_code = status.HTTP_409_CONFLICT


class InternalError(ClinicError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
