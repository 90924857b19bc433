# barbershop/core/__init__.py

from datetime import time


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    # half-open intervals: [start, end)
    return start_a < end_b and start_b < end_a


def to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def from_minutes(minutes: int) -> time:
    if not (0 <= minutes < 24 * 60):
        raise ValueError(f"{minutes} minutes is outside a single day")
    return time(minutes // 60, minutes % 60)
