# tests/test_subscriptions.py

from datetime import datetime
from types import SimpleNamespace

import pytest

from barbershop.core.errors import SubscriptionLimitExceeded
from barbershop.core.states import AppointmentStatus, SubscriptionStatus
from barbershop.core.subscriptions import (
    add_months,
    check_booking_allowed,
    check_restrictions,
    is_current,
    record_cut,
    start_period,
)

NOW = datetime(2030, 1, 7, 8, 0)


def subscription(**overrides):
    values = dict(
        id=9,
        status=SubscriptionStatus.active,
        current_period_start=datetime(2030, 1, 1),
        current_period_end=datetime(2030, 2, 1),
        cuts_used_this_period=0,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_add_months_clamps_to_month_end():
    assert add_months(datetime(2030, 1, 31, 10, 0), 1) == datetime(2030, 2, 28, 10, 0)
    assert add_months(datetime(2030, 12, 15), 1) == datetime(2031, 1, 15)
    assert add_months(datetime(2032, 1, 31), 1) == datetime(2032, 2, 29)


def test_current_only_inside_active_period():
    assert is_current(subscription(), NOW)
    assert not is_current(subscription(status=SubscriptionStatus.cancelled), NOW)
    assert not is_current(subscription(current_period_end=NOW), NOW)
    assert not is_current(None, NOW)


def test_start_period_resets_counter():
    sub = subscription(cuts_used_this_period=4, status=SubscriptionStatus.cancelled)

    start_period(sub, NOW)

    assert sub.status == SubscriptionStatus.active
    assert sub.current_period_start == NOW
    assert sub.current_period_end == datetime(2030, 2, 7, 8, 0)
    assert sub.cuts_used_this_period == 0


def test_open_booking_blocks_another_one():
    open_one = SimpleNamespace(id=55, status=AppointmentStatus.pending)

    with pytest.raises(SubscriptionLimitExceeded) as exc:
        check_booking_allowed(subscription(), SimpleNamespace(cuts_per_period=None), [open_one])

    assert exc.value.context["reason"] == "open_booking"
    assert exc.value.context["open_appointment_id"] == 55
    assert exc.value.context["open_appointment_status"] == "pending"


def test_finished_bookings_do_not_block():
    done = [SimpleNamespace(id=1, status=AppointmentStatus.completed),
            SimpleNamespace(id=2, status=AppointmentStatus.cancelled)]

    check_booking_allowed(subscription(), SimpleNamespace(cuts_per_period=None), done)


def test_quota_is_enforced_per_period():
    plan = SimpleNamespace(cuts_per_period=2)
    sub = subscription(cuts_used_this_period=1)

    check_booking_allowed(sub, plan, [])
    assert record_cut(sub) == 2

    with pytest.raises(SubscriptionLimitExceeded) as exc:
        check_booking_allowed(sub, plan, [])
    assert exc.value.context["reason"] == "quota_exhausted"
    assert exc.value.context["cuts_per_period"] == 2


def test_unlimited_plan_never_runs_out():
    check_booking_allowed(subscription(cuts_used_this_period=500), SimpleNamespace(cuts_per_period=None), [])


def test_active_restriction_blocks_booking():
    restrictions = [
        SimpleNamespace(restricted_until=datetime(2030, 1, 6)),
        SimpleNamespace(restricted_until=datetime(2030, 1, 8, 9, 0)),
    ]

    with pytest.raises(SubscriptionLimitExceeded) as exc:
        check_restrictions(restrictions, NOW)

    assert exc.value.context == {
        "reason": "late_cancellation_penalty",
        "restricted_until": "2030-01-08T09:00:00",
    }


def test_expired_restrictions_are_ignored():
    check_restrictions([SimpleNamespace(restricted_until=NOW)], NOW)
