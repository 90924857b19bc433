# barbershop/core/commission.py
"""
Monthly revenue-pool distribution.

For a month with pool ``R`` and distribution percentage ``d``::

    D        = R * d / 100          # paid out
    reserved = R - D                # withheld
    share_b  = points_b / P_total * D

Manual commission entries are added on top of the automatic share. Their
minutes show up in a barber's displayed minutes but never in the points
ratio, so adding a manual entry cannot shift money between other barbers.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from barbershop.core.composer import total_duration, total_price
from barbershop.core.errors import DistributionInputInvalid
from barbershop.core.points import BarberPoints
from barbershop.core.states import AppointmentStatus


@dataclass
class BarberCommission:
    barber_id: int
    total_points: int = 0
    total_appointments: int = 0
    total_minutes: int = 0
    manual_minutes: int = 0
    points_percentage: float = 0.0
    automatic_share: float = 0.0
    manual_amount: float = 0.0
    manual_entry_ids: List[int] = field(default_factory=list)

    @property
    def total_commission(self) -> float:
        return self.automatic_share + self.manual_amount


@dataclass
class CommissionSummary:
    month: str
    total_revenue: float
    distribution_percentage: float
    distributable_amount: float
    reserved_amount: float
    total_points: int
    barbers: List[BarberCommission]


def validate_pool(total_revenue: float, distribution_percentage: float) -> None:
    # error context goes out as JSON, which has no inf/nan
    if total_revenue is None or not math.isfinite(total_revenue):
        raise DistributionInputInvalid("total_revenue must be a finite number", total_revenue=str(total_revenue))
    if total_revenue < 0:
        raise DistributionInputInvalid("total_revenue cannot be negative", total_revenue=total_revenue)
    if distribution_percentage is None or not math.isfinite(distribution_percentage):
        raise DistributionInputInvalid(
            "distribution_percentage must be a finite number",
            distribution_percentage=str(distribution_percentage),
        )
    if not (0 <= distribution_percentage <= 100):
        raise DistributionInputInvalid(
            "distribution_percentage must be between 0 and 100",
            distribution_percentage=distribution_percentage,
        )


def distribute(
    month: str,
    points: Iterable[BarberPoints],
    total_revenue: float,
    distribution_percentage: float,
    manual_entries: Iterable = (),
) -> CommissionSummary:
    validate_pool(total_revenue, distribution_percentage)

    distributable = total_revenue * (distribution_percentage / 100)
    reserved = total_revenue - distributable

    rows: Dict[int, BarberCommission] = {}
    for p in points:
        rows[p.barber_id] = BarberCommission(
            barber_id=p.barber_id,
            total_points=p.total_points,
            total_appointments=p.total_appointments,
            total_minutes=p.total_minutes,
        )
    points_total = sum(r.total_points for r in rows.values())

    for row in rows.values():
        if points_total > 0:
            ratio = row.total_points / points_total
            row.points_percentage = round(ratio * 100, 2)
            row.automatic_share = ratio * distributable

    for entry in manual_entries:
        row = rows.setdefault(entry.barber_id, BarberCommission(barber_id=entry.barber_id))
        row.manual_minutes += entry.minutes
        row.total_minutes += entry.minutes
        row.manual_amount += entry.amount
        row.manual_entry_ids.append(entry.id)

    ordered = sorted(rows.values(), key=lambda r: (-r.total_points, r.barber_id))
    return CommissionSummary(
        month=month,
        total_revenue=total_revenue,
        distribution_percentage=distribution_percentage,
        distributable_amount=distributable,
        reserved_amount=reserved,
        total_points=points_total,
        barbers=ordered,
    )


def manual_amount(minutes: int, policy, amount: Optional[float] = None) -> float:
    if amount is not None:
        return amount
    return round(minutes * policy.price_per_minute, 2)


@dataclass
class ServiceCommission:
    barber_id: int
    commission_percentage: float
    total_appointments: int = 0
    total_minutes: int = 0
    gross_revenue: float = 0.0
    commission_amount: float = 0.0
    manual_amount: float = 0.0

    @property
    def total_commission(self) -> float:
        return self.commission_amount + self.manual_amount


def service_commissions(
    appointments: Iterable[Tuple[object, list]],
    commission_percentages: Mapping[int, float],
    manual_entries: Iterable = (),
) -> List[ServiceCommission]:
    """Per-barber commission on billed services: gross * barber.commission_percentage / 100."""
    rows: Dict[int, ServiceCommission] = {}

    def row_for(barber_id):
        if barber_id not in rows:
            rows[barber_id] = ServiceCommission(barber_id, commission_percentages.get(barber_id, 0.0))
        return rows[barber_id]

    for appointment, lines in appointments:
        if appointment.status != AppointmentStatus.completed or appointment.service_id is None:
            continue
        row = row_for(appointment.barber_id)
        gross = total_price(lines)
        row.total_appointments += 1
        row.total_minutes += total_duration(lines)
        row.gross_revenue += gross
        row.commission_amount += gross * row.commission_percentage / 100

    for entry in manual_entries:
        row = row_for(entry.barber_id)
        row.total_minutes += entry.minutes
        row.manual_amount += entry.amount

    return sorted(rows.values(), key=lambda r: (-r.total_commission, r.barber_id))
