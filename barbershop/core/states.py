# barbershop/core/states.py

from enum import Enum


class UserRole(str, Enum):
    admin = "admin"
    barber = "barber"
    client = "client"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


OPEN_STATUSES = frozenset({AppointmentStatus.pending, AppointmentStatus.confirmed})

TRANSITIONS = {
    AppointmentStatus.pending: frozenset({AppointmentStatus.confirmed, AppointmentStatus.cancelled}),
    AppointmentStatus.confirmed: frozenset({AppointmentStatus.completed, AppointmentStatus.cancelled}),
    AppointmentStatus.completed: frozenset(),
    AppointmentStatus.cancelled: frozenset(),
}


class TimeOffType(str, Enum):
    day_off = "day_off"
    vacation = "vacation"
    block = "block"


class SlotKind(str, Enum):
    available = "available"
    appointment = "appointment"
    occupied = "occupied"
    lunch_break = "break"
    blocked = "blocked"
    non_working = "non_working"


class SubscriptionStatus(str, Enum):
    active = "active"
    cancelled = "cancelled"


class SubscriptionEvent(str, Enum):
    activated = "activated"
    cancelled = "cancelled"
    payment_failed = "payment_failed"
