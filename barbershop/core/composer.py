# barbershop/core/composer.py
"""
Line items attached to one appointment.

The original line is written at booking time; extras are appended by an
admin. Prices, durations and points are captured when a line is attached,
so later catalogue edits never change historical totals. ``end_time`` and
the total price are only ever derived here.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable

from barbershop.core.errors import InvalidRange, OriginalLineItemImmutable


def service_points(service) -> int:
    if service.points_per_completion is not None:
        return service.points_per_completion
    return service.duration_minutes


def line_values(service) -> dict:
    """Snapshot of the billable values of ``service`` for a new line item."""
    if service.duration_minutes is None or service.duration_minutes <= 0:
        raise InvalidRange(
            "Service duration must be positive",
            service_id=service.id,
            duration_minutes=service.duration_minutes,
        )
    return {
        "service_id": service.id,
        "price_at_time": service.price,
        "duration_minutes": service.duration_minutes,
        "points": service_points(service),
    }


def total_duration(lines: Iterable) -> int:
    return sum(line.duration_minutes for line in lines)


def total_price(lines: Iterable) -> float:
    return sum(line.price_at_time for line in lines)


def total_points(lines: Iterable) -> int:
    return sum(line.points for line in lines)


def compute_end_time(day: date, start_time: time, lines: Iterable) -> time:
    minutes = total_duration(lines)
    if minutes <= 0:
        raise InvalidRange("An appointment needs at least one timed service", start_time=start_time.isoformat())
    end = datetime.combine(day, start_time) + timedelta(minutes=minutes)
    if end.date() != day:
        raise InvalidRange("Appointment cannot run past midnight", start_time=start_time.isoformat(), minutes=minutes)
    return end.time()


def check_removable(line) -> None:
    if line.is_original:
        raise OriginalLineItemImmutable(
            "The original service of an appointment cannot be removed",
            appointment_id=line.appointment_id,
            line_item_id=line.id,
        )
