# tests/test_availability.py

from datetime import date, time

import pytest

from barbershop.core.availability import available_starts, ensure_range_free, resolve_day
from barbershop.core.calendar import time_grid
from barbershop.core.errors import InvalidRange, SlotUnavailable
from barbershop.core.states import AppointmentStatus, SlotKind, TimeOffType
from barbershop.models import Appointment, BarberBreak, BarberSchedule, BarberTimeOff

MONDAY = date(2030, 1, 7)
GRID = time_grid(time(9, 0), time(19, 0), 15)


def shift(start=time(9, 0), end=time(18, 0), working=True):
    return BarberSchedule(barber_id=1, day_of_week=0, is_working=working, start_time=start, end_time=end)


def lunch(start=time(13, 0), end=time(15, 0), weekday=0):
    return BarberBreak(barber_id=1, day_of_week=weekday, start_time=start, end_time=end, description="Lunch")


def appt(id, start, end, status=AppointmentStatus.confirmed):
    return Appointment(id=id, barber_id=1, appointment_date=MONDAY, start_time=start, end_time=end, status=status)


def kinds(slots):
    return {s.time: s for s in slots}


def test_break_slot_and_free_morning():
    slots = kinds(resolve_day(MONDAY, GRID, shift(), breaks=[lunch()]))

    assert slots[time(13, 0)].kind == SlotKind.lunch_break
    assert slots[time(13, 0)].label == "Lunch"
    assert slots[time(14, 45)].kind == SlotKind.lunch_break
    assert slots[time(15, 0)].kind == SlotKind.available
    assert slots[time(9, 0)].kind == SlotKind.available


def test_appointment_start_occupied_and_end():
    slots = kinds(resolve_day(MONDAY, GRID, shift(), appointments=[appt(7, time(10, 0), time(10, 30))]))

    assert slots[time(10, 0)].kind == SlotKind.appointment
    assert slots[time(10, 0)].appointment_id == 7
    assert slots[time(10, 15)].kind == SlotKind.occupied
    assert slots[time(10, 15)].appointment_id == 7
    assert slots[time(10, 30)].kind == SlotKind.available


def test_cancelled_appointments_are_ignored():
    slots = kinds(resolve_day(
        MONDAY, GRID, shift(),
        appointments=[appt(7, time(10, 0), time(10, 30), AppointmentStatus.cancelled)],
    ))

    assert slots[time(10, 0)].kind == SlotKind.available
    assert slots[time(10, 15)].kind == SlotKind.available


def test_slots_outside_shift_are_non_working():
    slots = kinds(resolve_day(MONDAY, GRID, shift(end=time(18, 0))))

    assert slots[time(17, 45)].kind == SlotKind.available
    assert slots[time(18, 0)].kind == SlotKind.non_working
    assert slots[time(18, 45)].kind == SlotKind.non_working


def test_day_not_working_overrides_everything():
    slots = resolve_day(
        MONDAY, GRID, shift(working=False),
        breaks=[lunch()],
        appointments=[appt(1, time(10, 0), time(10, 30))],
    )
    assert {s.kind for s in slots} == {SlotKind.non_working}

    assert {s.kind for s in resolve_day(MONDAY, GRID, None)} == {SlotKind.non_working}


def test_time_off_overrides_break_and_appointments():
    vacation = BarberTimeOff(id=3, barber_id=1, start_date=date(2030, 1, 1), end_date=date(2030, 1, 10),
                             type=TimeOffType.vacation, is_active=True)
    slots = kinds(resolve_day(
        MONDAY, GRID, shift(),
        breaks=[lunch()],
        time_off=[vacation],
        appointments=[appt(1, time(10, 0), time(10, 30))],
    ))

    assert slots[time(10, 0)].kind == SlotKind.blocked
    assert slots[time(13, 0)].kind == SlotKind.blocked
    assert slots[time(13, 0)].label == "vacation"


def test_partial_block_and_inactive_time_off():
    block = BarberTimeOff(id=1, barber_id=1, start_date=MONDAY, end_date=MONDAY, start_time=time(11, 0),
                          end_time=time(12, 0), type=TimeOffType.block, is_active=True)
    cancelled_day_off = BarberTimeOff(id=2, barber_id=1, start_date=MONDAY, end_date=MONDAY,
                                      type=TimeOffType.day_off, is_active=False)
    slots = kinds(resolve_day(MONDAY, GRID, shift(), time_off=[block, cancelled_day_off]))

    assert slots[time(10, 45)].kind == SlotKind.available
    assert slots[time(11, 0)].kind == SlotKind.blocked
    assert slots[time(11, 45)].kind == SlotKind.blocked
    assert slots[time(12, 0)].kind == SlotKind.available


def test_overlapping_time_off_entries_are_all_honoured():
    first = BarberTimeOff(id=1, barber_id=1, start_date=MONDAY, end_date=MONDAY, start_time=time(9, 0),
                          end_time=time(10, 0), type=TimeOffType.block, is_active=True)
    second = BarberTimeOff(id=2, barber_id=1, start_date=MONDAY, end_date=MONDAY, start_time=time(9, 30),
                           end_time=time(11, 0), type=TimeOffType.block, is_active=True)
    slots = kinds(resolve_day(MONDAY, GRID, shift(), time_off=[first, second]))

    assert [slots[time(h, m)].kind for h, m in [(9, 0), (9, 45), (10, 30), (11, 0)]] == [
        SlotKind.blocked, SlotKind.blocked, SlotKind.blocked, SlotKind.available,
    ]


def test_break_outranks_a_running_appointment():
    slots = kinds(resolve_day(MONDAY, GRID, shift(), breaks=[lunch()],
                              appointments=[appt(9, time(12, 45), time(13, 15))]))

    assert slots[time(12, 45)].kind == SlotKind.appointment
    assert slots[time(13, 0)].kind == SlotKind.lunch_break


def test_appointment_start_shows_through_a_later_break():
    slots = kinds(resolve_day(MONDAY, GRID, shift(), breaks=[lunch()],
                              appointments=[appt(11, time(13, 0), time(13, 30))]))

    assert slots[time(13, 0)].kind == SlotKind.appointment
    assert slots[time(13, 0)].appointment_id == 11
    assert slots[time(13, 15)].kind == SlotKind.lunch_break


def test_break_on_other_weekday_does_not_apply():
    slots = kinds(resolve_day(MONDAY, GRID, shift(), breaks=[lunch(weekday=1)]))

    assert slots[time(13, 0)].kind == SlotKind.available


def test_booking_right_after_another_is_free():
    existing = [appt(1, time(10, 0), time(10, 30))]

    ensure_range_free(MONDAY, time(10, 30), 30, shift(), appointments=existing)
    ensure_range_free(MONDAY, time(9, 30), 30, shift(), appointments=existing)


def test_overlapping_booking_reports_the_conflict():
    existing = [appt(1, time(10, 0), time(10, 30))]

    with pytest.raises(SlotUnavailable) as exc:
        ensure_range_free(MONDAY, time(9, 45), 30, shift(), appointments=existing)

    assert exc.value.context["conflicting_appointment_id"] == 1
    assert exc.value.context["conflicting_status"] == "confirmed"


def test_amended_appointment_does_not_conflict_with_itself():
    existing = [appt(1, time(10, 0), time(10, 30))]

    ensure_range_free(MONDAY, time(10, 0), 45, shift(), appointments=existing, exclude_appointment_id=1)


@pytest.mark.parametrize("start,duration,reason", [
    (time(8, 45), 30, "outside_shift"),
    (time(17, 45), 30, "outside_shift"),
    (time(12, 45), 30, "break"),
    (time(14, 45), 15, "break"),
])
def test_range_rejections(start, duration, reason):
    with pytest.raises(SlotUnavailable) as exc:
        ensure_range_free(MONDAY, start, duration, shift(), breaks=[lunch()])
    assert exc.value.context["reason"] == reason


def test_range_on_day_off():
    with pytest.raises(SlotUnavailable) as exc:
        ensure_range_free(MONDAY, time(10, 0), 30, shift(working=False))
    assert exc.value.context["reason"] == "non_working"


def test_zero_duration_is_an_invalid_range():
    with pytest.raises(InvalidRange):
        ensure_range_free(MONDAY, time(10, 0), 0, shift())


def test_available_starts_fit_the_whole_service():
    starts = available_starts(
        MONDAY, GRID, 45, shift(),
        breaks=[lunch()],
        appointments=[appt(1, time(10, 0), time(10, 30))],
    )

    assert time(9, 0) not in starts  # would run into 10:00
    assert time(9, 15) in starts
    assert time(10, 30) in starts
    assert time(12, 15) in starts
    assert time(12, 30) not in starts
    assert time(15, 0) in starts
    assert time(17, 15) in starts
    assert time(17, 30) not in starts
