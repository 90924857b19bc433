# barbershop/core/calendar.py

from datetime import time
from typing import List

from barbershop.core import from_minutes, to_minutes
from barbershop.core.errors import InvalidRange


def time_grid(open_time: time, close_time: time, slot_minutes: int) -> List[time]:
    """Slot start times for one business day, opening inclusive, closing exclusive."""
    if slot_minutes <= 0:
        raise InvalidRange("slot_minutes must be positive", slot_minutes=slot_minutes)
    start = to_minutes(open_time)
    end = to_minutes(close_time)
    if end <= start:
        raise InvalidRange(
            "close_time must be after open_time",
            open_time=open_time.isoformat(),
            close_time=close_time.isoformat(),
        )
    return [from_minutes(m) for m in range(start, end, slot_minutes)]


def is_on_grid(t: time, open_time: time, slot_minutes: int) -> bool:
    return (to_minutes(t) - to_minutes(open_time)) % slot_minutes == 0 and t.second == 0
