"""Slot generation and classification for one availability window.

Everything here is pure: the functions take a window-like object (anything
with ``start_time``, ``end_time``, ``break_start`` and ``break_end``) plus
already-fetched booking data, and never touch the database.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, NamedTuple

SLOT_INCREMENT_MINUTES = 15
HOURLY_APPOINTMENT_CAP = 4

SLOT_AVAILABLE = 'available'
SLOT_BOOKED = 'booked'
SLOT_BREAK = 'break'
SLOT_UNAVAILABLE = 'unavailable'

_ANCHOR_DATE = date(2000, 1, 1)


class Slot(NamedTuple):
    start: time
    status: str
    reason: str | None = None

    @property
    def display_time(self) -> str:
        return self.start.strftime('%H:%M')

    @property
    def full_time(self) -> str:
        return self.start.strftime('%H:%M:%S')


def normalize_slot_time(value: time) -> time:
    return value.replace(microsecond=0, tzinfo=None)


def is_on_slot_grid(value: time) -> bool:
    return value.second == 0 and value.microsecond == 0 and value.minute % SLOT_INCREMENT_MINUTES == 0


def is_break_time(window, value: time) -> bool:
    if window.break_start is None or window.break_end is None:
        return False
    return window.break_start <= value < window.break_end


def is_within_window(window, value: time) -> bool:
    return window.start_time <= value < window.end_time


def is_bookable_time(window, value: time) -> bool:
    return is_within_window(window, value) and not is_break_time(window, value)


def generate_slot_starts(window) -> list[time]:
    """Return every slot start whose full slot fits inside the window.

    Break slots are included; callers decide how to treat them.
    """
    step = timedelta(minutes=SLOT_INCREMENT_MINUTES)
    current = datetime.combine(_ANCHOR_DATE, window.start_time)
    window_end = datetime.combine(_ANCHOR_DATE, window.end_time)

    slots: list[time] = []
    while current + step <= window_end:
        slots.append(current.time())
        current += step

    return slots


def hour_bounds(hour: int) -> tuple[time, time]:
    return time(hour, 0, 0), time(hour, 59, 59)


def classify_slots(
    window,
    booked_times: Iterable[time],
    hourly_counts: dict[int, int],
    cap: int = HOURLY_APPOINTMENT_CAP,
) -> list[Slot]:
    booked = {normalize_slot_time(booked_time) for booked_time in booked_times}
    slots: list[Slot] = []

    for slot_start in generate_slot_starts(window):
        if is_break_time(window, slot_start):
            slots.append(Slot(slot_start, SLOT_BREAK, 'Break time'))
        elif slot_start in booked:
            slots.append(Slot(slot_start, SLOT_BOOKED, 'Already booked'))
        elif hourly_counts.get(slot_start.hour, 0) >= cap:
            slots.append(Slot(slot_start, SLOT_UNAVAILABLE, f'Hour limit reached ({cap} max)'))
        else:
            slots.append(Slot(slot_start, SLOT_AVAILABLE))

    return slots


def summarize_slots(slots: Iterable[Slot]) -> dict[str, int]:
    summary = {
        'total_slots': 0,
        'available_count': 0,
        'booked_count': 0,
        'break_count': 0,
        'unavailable_count': 0,
    }
    for slot in slots:
        summary['total_slots'] += 1
        summary[f'{slot.status}_count'] += 1
    return summary


def group_slots_by_hour(slots: Iterable[Slot]) -> dict[str, list[Slot]]:
    grouped: dict[str, list[Slot]] = {}
    for slot in slots:
        grouped.setdefault(f'{slot.start.hour:02d}', []).append(slot)
    return grouped
