# barbershop/core/points.py

import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Tuple

from barbershop.core.composer import total_duration, total_points
from barbershop.core.errors import InvalidRange
from barbershop.core.states import AppointmentStatus

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


@dataclass
class BarberPoints:
    barber_id: int
    month: str
    total_points: int = 0
    total_appointments: int = 0
    total_minutes: int = 0


def month_bounds(month: str) -> Tuple[date, date]:
    """First day of ``month`` (YYYY-MM) and first day of the following month."""
    if not MONTH_RE.match(month or ""):
        raise InvalidRange("month must use the YYYY-MM format", month=month)
    year, mon = int(month[:4]), int(month[5:])
    first = date(year, mon, 1)
    following = date(year + 1, 1, 1) if mon == 12 else date(year, mon + 1, 1)
    return first, following


def month_of(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def compute_points(month: str, appointments: Iterable[Tuple[object, list]]) -> List[BarberPoints]:
    """Points snapshot per barber from ``(appointment, line_items)`` pairs.

    Only completed appointments with a service dated inside ``month`` count.
    Result is ordered by points descending, then barber id.
    """
    first, following = month_bounds(month)
    by_barber: Dict[int, BarberPoints] = {}

    for appointment, lines in appointments:
        if appointment.status != AppointmentStatus.completed or appointment.service_id is None:
            continue
        if not (first <= appointment.appointment_date < following):
            continue
        row = by_barber.setdefault(appointment.barber_id, BarberPoints(appointment.barber_id, month))
        row.total_points += total_points(lines)
        row.total_minutes += total_duration(lines)
        row.total_appointments += 1

    return sorted(by_barber.values(), key=lambda p: (-p.total_points, p.barber_id))
