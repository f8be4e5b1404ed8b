"""Appointment lifecycle rules."""

from clinic_backend.core import config, errors
from clinic_backend.models.appointment import ACTIVE_STATUSES, AppointmentStatus

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.ACCEPTED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.ACCEPTED: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.CANCELLED}),
    AppointmentStatus.REJECTED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


def occupies_slot(status: AppointmentStatus | str) -> bool:
    return AppointmentStatus(status).value in ACTIVE_STATUSES


def can_transition(current: AppointmentStatus | str, new: AppointmentStatus | str) -> bool:
    current = AppointmentStatus(current)
    new = AppointmentStatus(new)
    return current == new or new in ALLOWED_TRANSITIONS[current]


def ensure_transition_allowed(
    current: AppointmentStatus | str,
    new: AppointmentStatus | str,
    strict: bool | None = None,
) -> None:
    if strict is None:
        strict = config.STRICT_STATUS_TRANSITIONS

    if strict and not can_transition(current, new):
        raise errors.StatusTransitionError(
            f'Cannot change appointment status from {AppointmentStatus(current).value} '
            f'to {AppointmentStatus(new).value}.'
        )


def reactivates_slot(current: AppointmentStatus | str, new: AppointmentStatus | str) -> bool:
    return not occupies_slot(current) and occupies_slot(new)
