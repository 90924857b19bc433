# barbershop/core/subscriptions.py

import calendar
from datetime import datetime
from typing import Iterable, Optional

from barbershop.core.errors import SubscriptionLimitExceeded
from barbershop.core.states import OPEN_STATUSES, AppointmentStatus, SubscriptionStatus


def add_months(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` later, clamped to the last day of the target month."""
    index = moment.month - 1 + months
    year, month = moment.year + index // 12, index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def is_current(subscription, now: datetime) -> bool:
    """Active and inside its paid period."""
    return (
        subscription is not None
        and subscription.status == SubscriptionStatus.active
        and subscription.current_period_start <= now < subscription.current_period_end
    )


def start_period(subscription, now: datetime) -> None:
    subscription.status = SubscriptionStatus.active
    subscription.current_period_start = now
    subscription.current_period_end = add_months(now, 1)
    subscription.cuts_used_this_period = 0


def check_restrictions(restrictions: Iterable, now: datetime) -> None:
    active = [r for r in restrictions if r.restricted_until > now]
    if active:
        latest = max(active, key=lambda r: r.restricted_until)
        raise SubscriptionLimitExceeded(
            "Bookings are temporarily restricted after a late cancellation",
            reason="late_cancellation_penalty",
            restricted_until=latest.restricted_until.isoformat(),
        )


def check_booking_allowed(subscription, plan, open_appointments: Iterable) -> None:
    """Gate a new booking for a client holding a current subscription.

    One open (pending/confirmed) booking at a time, and the period quota when
    the plan has one (``cuts_per_period is None`` means unlimited).
    """
    open_appointments = [a for a in open_appointments if a.status in OPEN_STATUSES]
    if open_appointments:
        existing = open_appointments[0]
        raise SubscriptionLimitExceeded(
            "Client already has an open booking",
            reason="open_booking",
            subscription_id=subscription.id,
            open_appointment_id=existing.id,
            open_appointment_status=AppointmentStatus(existing.status).value,
        )

    cap: Optional[int] = plan.cuts_per_period if plan is not None else None
    if cap is not None and subscription.cuts_used_this_period >= cap:
        raise SubscriptionLimitExceeded(
            "Subscription quota for this period is used up",
            reason="quota_exhausted",
            subscription_id=subscription.id,
            cuts_used=subscription.cuts_used_this_period,
            cuts_per_period=cap,
        )


def record_cut(subscription) -> int:
    subscription.cuts_used_this_period += 1
    return subscription.cuts_used_this_period
