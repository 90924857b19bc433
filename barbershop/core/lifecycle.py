# barbershop/core/lifecycle.py

from datetime import date, datetime, time, timedelta
from typing import Optional

from barbershop.core.errors import InvalidTransition
from barbershop.core.states import TRANSITIONS, AppointmentStatus


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return AppointmentStatus(target) in TRANSITIONS[AppointmentStatus(current)]


def check_transition(appointment, target: AppointmentStatus) -> AppointmentStatus:
    """Validate ``appointment.status -> target`` against the transition table."""
    current = AppointmentStatus(appointment.status)
    target = AppointmentStatus(target)
    if not can_transition(current, target):
        raise InvalidTransition(
            f"Cannot move appointment from {current.value} to {target.value}",
            appointment_id=appointment.id,
            current_status=current.value,
            requested_status=target.value,
        )
    return target


def late_cancellation_penalty(appointment_date: date, start_time: time, now: datetime, policy) -> Optional[datetime]:
    """Return when the booking restriction ends, or None if the cancellation is on time.

    Cancelling within ``cancellation_tolerance_minutes`` of the start (or after it)
    is allowed but restricts the client for ``penalty_duration_hours``.
    """
    if policy.penalty_duration_hours <= 0:
        return None
    starts_at = datetime.combine(appointment_date, start_time)
    if starts_at - now >= timedelta(minutes=policy.cancellation_tolerance_minutes):
        return None
    return now + timedelta(hours=policy.penalty_duration_hours)
