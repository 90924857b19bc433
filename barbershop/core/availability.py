# barbershop/core/availability.py
"""
Slot classification for one barber on one day.

Inputs are duck-typed so the resolver works on the SQLModel rows directly:

- ``schedule``: ``is_working``, ``start_time``, ``end_time`` (or ``None`` when
  the barber has no row for that weekday)
- ``breaks``: ``day_of_week``, ``start_time``, ``end_time``, ``description``
- ``time_off``: ``start_date``, ``end_date``, ``start_time``, ``end_time``,
  ``is_active``, ``type``
- ``appointments``: ``id``, ``start_time``, ``end_time``, ``status``

All boundaries are compared as minutes since midnight on half-open
``[start, end)`` intervals.
"""
from dataclasses import dataclass
from datetime import date, time
from typing import Iterable, List, Optional, Sequence, Tuple

from barbershop.core import overlaps, to_minutes
from barbershop.core.errors import InvalidRange, SlotUnavailable
from barbershop.core.states import AppointmentStatus, SlotKind, TimeOffType

DAY_MINUTES = 24 * 60


@dataclass
class SlotStatus:
    time: time
    kind: SlotKind
    appointment_id: Optional[int] = None
    label: Optional[str] = None


def _shift_window(schedule) -> Optional[Tuple[int, int]]:
    if schedule is None or not schedule.is_working:
        return None
    return to_minutes(schedule.start_time), to_minutes(schedule.end_time)


def _break_windows(day: date, breaks) -> List[Tuple[int, int, str]]:
    weekday = day.weekday()
    return [
        (to_minutes(b.start_time), to_minutes(b.end_time), b.description)
        for b in breaks
        if b.day_of_week == weekday
    ]


def time_off_windows(day: date, time_off) -> List[Tuple[int, int, object]]:
    """Active time-off intervals touching ``day``; overlapping entries are all kept."""
    windows = []
    for t in time_off:
        if not t.is_active or not (t.start_date <= day <= t.end_date):
            continue
        if t.start_time is None or t.end_time is None:
            windows.append((0, DAY_MINUTES, t))
        else:
            windows.append((to_minutes(t.start_time), to_minutes(t.end_time), t))
    return windows


def _live(appointments) -> list:
    return [a for a in appointments if a.status != AppointmentStatus.cancelled]


def resolve_day(
    day: date,
    grid: Sequence[time],
    schedule,
    breaks: Iterable = (),
    time_off: Iterable = (),
    appointments: Iterable = (),
) -> List[SlotStatus]:
    """Classify every grid slot.

    Precedence: non_working > blocked > appointment start > break > occupied > available.
    A booked start stays visible even if a break was added over it later.
    """
    shift = _shift_window(schedule)
    break_windows = _break_windows(day, breaks)
    blocks = time_off_windows(day, time_off)
    booked = [(to_minutes(a.start_time), to_minutes(a.end_time), a) for a in _live(appointments)]

    slots = []
    for t in grid:
        m = to_minutes(t)

        if shift is None or not (shift[0] <= m < shift[1]):
            slots.append(SlotStatus(t, SlotKind.non_working))
            continue

        block = next((w for w in blocks if w[0] <= m < w[1]), None)
        if block is not None:
            slots.append(SlotStatus(t, SlotKind.blocked, label=TimeOffType(block[2].type).value))
            continue

        starting = next((a for start, _, a in booked if start == m), None)
        if starting is not None:
            slots.append(SlotStatus(t, SlotKind.appointment, appointment_id=starting.id))
            continue

        brk = next((w for w in break_windows if w[0] <= m < w[1]), None)
        if brk is not None:
            slots.append(SlotStatus(t, SlotKind.lunch_break, label=brk[2]))
            continue

        inside = next((a for start, end, a in booked if start < m < end), None)
        if inside is not None:
            slots.append(SlotStatus(t, SlotKind.occupied, appointment_id=inside.id))
            continue

        slots.append(SlotStatus(t, SlotKind.available))
    return slots


def find_conflict(
    day: date,
    start: time,
    duration_minutes: int,
    schedule,
    breaks: Iterable = (),
    time_off: Iterable = (),
    appointments: Iterable = (),
    exclude_appointment_id: Optional[int] = None,
) -> Optional[Tuple[str, dict]]:
    """First reason ``[start, start + duration)`` cannot be booked, or None when free."""
    if duration_minutes <= 0:
        raise InvalidRange("duration must be positive", duration_minutes=duration_minutes)

    begin = to_minutes(start)
    end = begin + duration_minutes

    shift = _shift_window(schedule)
    if shift is None:
        return "Barber is not scheduled to work that day", {"reason": "non_working", "date": day.isoformat()}
    if begin < shift[0] or end > shift[1]:
        return "Appointment must be within working hours", {
            "reason": "outside_shift",
            "shift_start": schedule.start_time.isoformat(),
            "shift_end": schedule.end_time.isoformat(),
        }

    for w_start, w_end, t in time_off_windows(day, time_off):
        if overlaps(begin, end, w_start, w_end):
            return "Barber is unavailable (time off)", {
                "reason": "time_off",
                "time_off_id": t.id,
                "type": TimeOffType(t.type).value,
            }

    for w_start, w_end, label in _break_windows(day, breaks):
        if overlaps(begin, end, w_start, w_end):
            return "Appointment overlaps a break", {"reason": "break", "label": label}

    for a in _live(appointments):
        if a.id is not None and a.id == exclude_appointment_id:
            continue
        if overlaps(begin, end, to_minutes(a.start_time), to_minutes(a.end_time)):
            return "Appointment overlaps an existing appointment", {
                "reason": "appointment",
                "conflicting_appointment_id": a.id,
                "conflicting_status": AppointmentStatus(a.status).value,
            }
    return None


def ensure_range_free(day: date, start: time, duration_minutes: int, schedule, breaks=(), time_off=(),
                      appointments=(), exclude_appointment_id: Optional[int] = None) -> None:
    conflict = find_conflict(day, start, duration_minutes, schedule, breaks, time_off, appointments,
                             exclude_appointment_id)
    if conflict is not None:
        detail, context = conflict
        raise SlotUnavailable(detail, **context)


def available_starts(day: date, grid: Sequence[time], duration_minutes: int, schedule, breaks=(), time_off=(),
                     appointments=()) -> List[time]:
    """Grid slots where a service of ``duration_minutes`` fits entirely."""
    breaks, time_off, appointments = list(breaks), list(time_off), list(appointments)
    return [
        t for t in grid
        if find_conflict(day, t, duration_minutes, schedule, breaks, time_off, appointments) is None
    ]
