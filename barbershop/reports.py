# barbershop/reports.py

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlmodel import Session, col, select

from barbershop.core import commission, points
from barbershop.core.errors import InvalidRange, NotFound
from barbershop.core.states import AppointmentStatus
from barbershop.models import Appointment, AppointmentService, Barber, ManualCommissionEntry, RevenuePool

logger = logging.getLogger(__name__)


def completed_with_lines(session: Session, start: date, end: date) -> List[Tuple[Appointment, List[AppointmentService]]]:
    """Completed appointments dated in ``[start, end)`` paired with their line items."""
    appointments = session.exec(
        select(Appointment)
        .where(Appointment.status == AppointmentStatus.completed)
        .where(Appointment.appointment_date >= start)
        .where(Appointment.appointment_date < end)
        .order_by(Appointment.id)
    ).all()
    if not appointments:
        return []

    ids = [a.id for a in appointments]
    lines = session.exec(
        select(AppointmentService)
        .where(col(AppointmentService.appointment_id).in_(ids))
        .order_by(AppointmentService.id)
    ).all()
    by_appointment = {}
    for line in lines:
        by_appointment.setdefault(line.appointment_id, []).append(line)
    return [(a, by_appointment.get(a.id, [])) for a in appointments]


def month_points(session: Session, month: str) -> List[points.BarberPoints]:
    first, following = points.month_bounds(month)
    return points.compute_points(month, completed_with_lines(session, first, following))


def get_pool(session: Session, month: str, policy) -> RevenuePool:
    points.month_bounds(month)
    pool = session.get(RevenuePool, month)
    if pool is None:
        return RevenuePool(month=month, total_revenue=0.0,
                           distribution_percentage=policy.default_distribution_percentage)
    return pool


def update_pool(session: Session, month: str, policy, total_revenue: Optional[float] = None,
                distribution_percentage: Optional[float] = None) -> RevenuePool:
    """Upsert the month's pool; last writer wins."""
    points.month_bounds(month)
    pool = session.get(RevenuePool, month)
    if pool is None:
        pool = RevenuePool(month=month, total_revenue=0.0,
                           distribution_percentage=policy.default_distribution_percentage)
    if total_revenue is None:
        total_revenue = pool.total_revenue
    if distribution_percentage is None:
        distribution_percentage = pool.distribution_percentage
    commission.validate_pool(total_revenue, distribution_percentage)

    pool.total_revenue = total_revenue
    pool.distribution_percentage = distribution_percentage
    pool.updated_at = datetime.utcnow()
    session.add(pool)
    session.commit()
    session.refresh(pool)
    logger.info(f"Revenue pool {month}: total={pool.total_revenue} distribution={pool.distribution_percentage}%")
    return pool


def manual_entries_between(session: Session, start: date, end: date) -> List[ManualCommissionEntry]:
    return list(session.exec(
        select(ManualCommissionEntry)
        .where(ManualCommissionEntry.date >= start)
        .where(ManualCommissionEntry.date < end)
        .order_by(ManualCommissionEntry.id)
    ).all())


def month_commissions(session: Session, month: str, policy) -> commission.CommissionSummary:
    first, following = points.month_bounds(month)
    pool = get_pool(session, month, policy)
    return commission.distribute(
        month,
        month_points(session, month),
        pool.total_revenue,
        pool.distribution_percentage,
        manual_entries_between(session, first, following),
    )


def service_commission_report(session: Session, start: date, end: date) -> List[commission.ServiceCommission]:
    """Commission on billed services for ``start``..``end`` inclusive."""
    if end < start:
        raise InvalidRange("end must not be before start", start=start.isoformat(), end=end.isoformat())
    following = date.fromordinal(end.toordinal() + 1)
    percentages = {b.id: b.commission_percentage for b in session.exec(select(Barber)).all()}
    return commission.service_commissions(
        completed_with_lines(session, start, following),
        percentages,
        manual_entries_between(session, start, following),
    )


def barber_names(session: Session) -> dict:
    return {b.id: b.name for b in session.exec(select(Barber)).all()}


# ---------- manual entries ----------

def _check_entry(minutes: int) -> None:
    if minutes < 0:
        raise InvalidRange("minutes cannot be negative", minutes=minutes)


def add_manual_entry(session: Session, policy, barber_id: int, entry_date: date, minutes: int,
                     description: str = "", amount: Optional[float] = None,
                     created_by: Optional[int] = None) -> ManualCommissionEntry:
    if session.get(Barber, barber_id) is None:
        raise NotFound("Barber not found", barber_id=barber_id)
    _check_entry(minutes)
    entry = ManualCommissionEntry(
        barber_id=barber_id,
        date=entry_date,
        minutes=minutes,
        description=description,
        amount=commission.manual_amount(minutes, policy, amount),
        created_by=created_by,
    )
    session.add(entry)
    session.commit()
    session.refresh(entry)
    logger.info(f"Manual commission entry {entry.id} for barber {barber_id}: {entry.minutes} min, {entry.amount}")
    return entry


def update_manual_entry(session: Session, policy, entry_id: int, **changes) -> ManualCommissionEntry:
    entry = session.get(ManualCommissionEntry, entry_id)
    if entry is None:
        raise NotFound("Manual entry not found", entry_id=entry_id)
    if changes.get("barber_id") is not None and session.get(Barber, changes["barber_id"]) is None:
        raise NotFound("Barber not found", barber_id=changes["barber_id"])

    for field in ("barber_id", "date", "minutes", "description"):
        if changes.get(field) is not None:
            setattr(entry, field, changes[field])
    _check_entry(entry.minutes)
    if changes.get("amount") is not None:
        entry.amount = changes["amount"]
    elif changes.get("minutes") is not None:
        entry.amount = commission.manual_amount(entry.minutes, policy)

    session.add(entry)
    session.commit()
    session.refresh(entry)
    logger.info(f"Manual commission entry {entry.id} updated")
    return entry


def delete_manual_entry(session: Session, entry_id: int) -> None:
    entry = session.get(ManualCommissionEntry, entry_id)
    if entry is None:
        raise NotFound("Manual entry not found", entry_id=entry_id)
    session.delete(entry)
    session.commit()
    logger.info(f"Manual commission entry {entry_id} deleted")
