# barbershop/booking.py
"""
Booking, lifecycle and amendment operations over the database.

Availability checks and the writes they guard run under one in-process lock
per ``(barber_id, appointment_date)`` and are committed before the lock is
released, so two requests claiming overlapping time for the same barber can
never both succeed. Subscriber bookings additionally hold a per-client lock
(always taken before the barber lock) to keep their single open booking.
"""
import logging
import threading
from contextlib import ExitStack, contextmanager
from datetime import date, datetime, time, timedelta
from typing import Dict, Hashable, List, Optional

from sqlmodel import Session, col, select

from barbershop.core import availability, composer, lifecycle, subscriptions
from barbershop.core.calendar import is_on_grid, time_grid
from barbershop.core.errors import InvalidRange, InvalidTransition, NotFound
from barbershop.core.states import OPEN_STATUSES, AppointmentStatus
from barbershop.models import (
    Appointment,
    AppointmentService,
    Barber,
    BarberBreak,
    BarberSchedule,
    BarberTimeOff,
    BookingRestriction,
    ClientSubscription,
    Guest,
    Service,
    SubscriptionPlan,
)

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
_locks: Dict[Hashable, threading.Lock] = {}


@contextmanager
def keyed_lock(key: Hashable):
    with _registry_lock:
        lock = _locks.setdefault(key, threading.Lock())
    with lock:
        yield


def booking_lock(barber_id: int, day: date):
    return keyed_lock(("barber", barber_id, day))


# ---------- loading ----------

def get_barber(session: Session, barber_id: int, active_only: bool = True) -> Barber:
    barber = session.get(Barber, barber_id)
    if barber is None or (active_only and not barber.is_active):
        raise NotFound("Barber not found", barber_id=barber_id)
    return barber


def get_service(session: Session, service_id: int) -> Service:
    service = session.get(Service, service_id)
    if service is None or not service.is_active:
        raise NotFound("Service not available", service_id=service_id)
    return service


def get_appointment(session: Session, appointment_id: int) -> Appointment:
    appointment = session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFound("Appointment not found", appointment_id=appointment_id)
    return appointment


def line_items(session: Session, appointment_id: int) -> List[AppointmentService]:
    return list(session.exec(
        select(AppointmentService)
        .where(AppointmentService.appointment_id == appointment_id)
        .order_by(AppointmentService.id)
    ).all())


def load_day(session: Session, barber_id: int, day: date) -> dict:
    """Everything the availability resolver needs for one barber and day."""
    schedule = session.exec(
        select(BarberSchedule)
        .where(BarberSchedule.barber_id == barber_id)
        .where(BarberSchedule.day_of_week == day.weekday())
    ).first()
    breaks = session.exec(
        select(BarberBreak)
        .where(BarberBreak.barber_id == barber_id)
        .where(BarberBreak.day_of_week == day.weekday())
    ).all()
    time_off = session.exec(
        select(BarberTimeOff)
        .where(BarberTimeOff.barber_id == barber_id)
        .where(BarberTimeOff.is_active == True)  # noqa: E712
        .where(BarberTimeOff.start_date <= day)
        .where(BarberTimeOff.end_date >= day)
    ).all()
    appointments = session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.appointment_date == day)
        .where(Appointment.status != AppointmentStatus.cancelled)
        .order_by(Appointment.start_time)
    ).all()
    return {
        "schedule": schedule,
        "breaks": list(breaks),
        "time_off": list(time_off),
        "appointments": list(appointments),
    }


def day_slots(session: Session, barber_id: int, day: date, policy) -> List[availability.SlotStatus]:
    get_barber(session, barber_id, active_only=False)
    grid = time_grid(policy.open_time, policy.close_time, policy.slot_minutes)
    return availability.resolve_day(day, grid, **load_day(session, barber_id, day))


def free_starts(session: Session, barber_id: int, day: date, service_id: int, policy) -> List[time]:
    get_barber(session, barber_id)
    service = get_service(session, service_id)
    grid = time_grid(policy.open_time, policy.close_time, policy.slot_minutes)
    return availability.available_starts(day, grid, service.duration_minutes, **load_day(session, barber_id, day))


def current_subscription(session: Session, client_id: int, now: datetime) -> Optional[ClientSubscription]:
    candidates = session.exec(
        select(ClientSubscription)
        .where(ClientSubscription.client_id == client_id)
        .order_by(ClientSubscription.current_period_end.desc())
    ).all()
    return next((s for s in candidates if subscriptions.is_current(s, now)), None)


def open_appointments_for_client(session: Session, client_id: int) -> List[Appointment]:
    return list(session.exec(
        select(Appointment)
        .where(Appointment.client_id == client_id)
        .where(col(Appointment.status).in_(sorted(OPEN_STATUSES)))
    ).all())


# ---------- creation ----------

def _check_start(start_time: time, policy) -> None:
    if not is_on_grid(start_time, policy.open_time, policy.slot_minutes):
        raise InvalidRange(
            f"Start time must be in {policy.slot_minutes}-minute increments",
            start_time=start_time.isoformat(),
        )


def _insert(session: Session, *, barber: Barber, service: Service, day: date, start_time: time,
            status: AppointmentStatus, **fields) -> Appointment:
    """Check the day and write appointment + original line item. Caller holds the barber lock."""
    # rows read before the lock was taken may be stale
    session.expire_all()
    values = composer.line_values(service)
    end_time = composer.compute_end_time(day, start_time, [AppointmentService(**values)])

    availability.ensure_range_free(
        day, start_time, values["duration_minutes"], **load_day(session, barber.id, day)
    )

    appointment = Appointment(
        barber_id=barber.id,
        service_id=service.id,
        appointment_date=day,
        start_time=start_time,
        end_time=end_time,
        status=status,
        **fields,
    )
    session.add(appointment)
    session.flush()
    session.add(AppointmentService(appointment_id=appointment.id, is_original=True, **values))
    session.commit()
    session.refresh(appointment)
    return appointment


def book_for_client(session: Session, client: dict, barber_id: int, service_id: int, day: date,
                    start_time: time, policy, now: datetime, notes: Optional[str] = None) -> Appointment:
    barber = get_barber(session, barber_id)
    service = get_service(session, service_id)
    _check_start(start_time, policy)

    starts_at = datetime.combine(day, start_time)
    if starts_at < now:
        raise InvalidRange("Cannot book an appointment in the past", starts_at=starts_at.isoformat())
    if starts_at < now + timedelta(minutes=policy.min_lead_minutes):
        raise InvalidRange(
            f"Appointments must be booked at least {policy.min_lead_minutes} minutes in advance",
            starts_at=starts_at.isoformat(),
            min_lead_minutes=policy.min_lead_minutes,
        )

    restrictions = session.exec(
        select(BookingRestriction).where(BookingRestriction.client_id == client["id"])
    ).all()
    subscriptions.check_restrictions(restrictions, now)

    subscription = current_subscription(session, client["id"], now)
    if subscription is None and day > now.date() + timedelta(days=policy.non_subscriber_window_days):
        raise InvalidRange(
            f"Bookings can be made at most {policy.non_subscriber_window_days} days in advance",
            reason="beyond_booking_window",
            non_subscriber_window_days=policy.non_subscriber_window_days,
        )

    with ExitStack() as stack:
        if subscription is not None:
            stack.enter_context(keyed_lock(("client", client["id"])))
            plan = session.get(SubscriptionPlan, subscription.plan_id)
            subscriptions.check_booking_allowed(
                subscription, plan, open_appointments_for_client(session, client["id"])
            )
        stack.enter_context(booking_lock(barber.id, day))
        appointment = _insert(
            session,
            barber=barber,
            service=service,
            day=day,
            start_time=start_time,
            status=AppointmentStatus.pending,
            client_id=client["id"],
            client_name_at_booking=client.get("full_name") or client["email"],
            is_subscription_booking=subscription is not None,
            subscription_id=subscription.id if subscription is not None else None,
            notes=notes,
        )

    logger.info(
        f"Client {client['id']} booked appointment {appointment.id} with barber {barber.id} "
        f"on {day} {start_time} (subscription={appointment.is_subscription_booking})"
    )
    return appointment


def book_walk_in(session: Session, barber_id: int, service_id: int, day: date, start_time: time,
                 guest_name: str, guest_phone: str, policy, guest_email: Optional[str] = None,
                 notes: Optional[str] = None) -> Appointment:
    """Admin booking for an anonymous guest; created already confirmed."""
    barber = get_barber(session, barber_id)
    service = get_service(session, service_id)
    _check_start(start_time, policy)

    with booking_lock(barber.id, day):
        guest = Guest(full_name=guest_name, phone=guest_phone, email=guest_email)
        session.add(guest)
        session.flush()
        appointment = _insert(
            session,
            barber=barber,
            service=service,
            day=day,
            start_time=start_time,
            status=AppointmentStatus.confirmed,
            guest_id=guest.id,
            client_name_at_booking=guest_name,
            notes=notes,
        )

    logger.info(f"Walk-in appointment {appointment.id} for guest {appointment.guest_id} with barber {barber.id}")
    return appointment


# ---------- lifecycle ----------

@contextmanager
def locked_appointment(session: Session, appointment_id: int):
    """Yield the appointment re-read under its barber/day lock.

    Everything that checks the current status and writes a new one must run
    inside this block and commit before leaving it.
    """
    appointment = get_appointment(session, appointment_id)
    with booking_lock(appointment.barber_id, appointment.appointment_date):
        session.refresh(appointment)
        yield appointment


def confirm_appointment(session: Session, appointment_id: int) -> Appointment:
    with locked_appointment(session, appointment_id) as appointment:
        appointment.status = lifecycle.check_transition(appointment, AppointmentStatus.confirmed)
        session.add(appointment)
        session.commit()
        session.refresh(appointment)
    logger.info(f"Appointment {appointment.id} confirmed")
    return appointment


def complete_appointment(session: Session, appointment_id: int) -> Appointment:
    with locked_appointment(session, appointment_id) as appointment:
        appointment.status = lifecycle.check_transition(appointment, AppointmentStatus.completed)
        session.add(appointment)

        if appointment.is_subscription_booking and appointment.subscription_id is not None:
            subscription = session.get(ClientSubscription, appointment.subscription_id)
            if subscription is not None:
                session.refresh(subscription)
                used = subscriptions.record_cut(subscription)
                session.add(subscription)
                logger.info(f"Subscription {subscription.id} used {used} cut(s) this period")

        session.commit()
        session.refresh(appointment)
    logger.info(f"Appointment {appointment.id} completed")
    return appointment


def cancel_appointment(session: Session, appointment_id: int, policy, now: datetime,
                       by_client: bool = False) -> Appointment:
    with locked_appointment(session, appointment_id) as appointment:
        appointment.status = lifecycle.check_transition(appointment, AppointmentStatus.cancelled)
        session.add(appointment)

        if by_client and appointment.client_id is not None:
            until = lifecycle.late_cancellation_penalty(
                appointment.appointment_date, appointment.start_time, now, policy
            )
            if until is not None:
                session.add(BookingRestriction(
                    client_id=appointment.client_id,
                    restricted_until=until,
                    appointment_id=appointment.id,
                ))
                logger.info(f"Late cancellation of appointment {appointment.id}: client {appointment.client_id} "
                            f"restricted until {until}")

        session.commit()
        session.refresh(appointment)
    logger.info(f"Appointment {appointment.id} cancelled")
    return appointment


# ---------- line items ----------

def _require_open(appointment: Appointment) -> None:
    if appointment.status not in OPEN_STATUSES:
        raise InvalidTransition(
            "Services can only be changed on pending or confirmed appointments",
            appointment_id=appointment.id,
            current_status=AppointmentStatus(appointment.status).value,
        )


def add_line_item(session: Session, appointment_id: int, service_id: int) -> Appointment:
    service = get_service(session, service_id)

    with locked_appointment(session, appointment_id) as appointment:
        _require_open(appointment)

        line = AppointmentService(appointment_id=appointment.id, is_original=False, **composer.line_values(service))
        lines = line_items(session, appointment.id) + [line]
        end_time = composer.compute_end_time(appointment.appointment_date, appointment.start_time, lines)

        availability.ensure_range_free(
            appointment.appointment_date,
            appointment.start_time,
            composer.total_duration(lines),
            exclude_appointment_id=appointment.id,
            **load_day(session, appointment.barber_id, appointment.appointment_date),
        )

        session.add(line)
        appointment.end_time = end_time
        session.add(appointment)
        session.commit()
        session.refresh(appointment)

    logger.info(f"Added service {service.id} to appointment {appointment.id}; ends at {appointment.end_time}")
    return appointment


def remove_line_item(session: Session, appointment_id: int, line_id: int) -> Appointment:
    with locked_appointment(session, appointment_id) as appointment:
        line = session.get(AppointmentService, line_id)
        if line is None or line.appointment_id != appointment.id:
            raise NotFound("Line item not found", appointment_id=appointment_id, line_item_id=line_id)
        composer.check_removable(line)
        _require_open(appointment)

        remaining = [li for li in line_items(session, appointment.id) if li.id != line.id]
        appointment.end_time = composer.compute_end_time(
            appointment.appointment_date, appointment.start_time, remaining
        )
        session.delete(line)
        session.add(appointment)
        session.commit()
        session.refresh(appointment)

    logger.info(f"Removed line item {line_id} from appointment {appointment.id}")
    return appointment
