# tests/test_points_commission.py

from datetime import date
from types import SimpleNamespace

import pytest

from barbershop.core.commission import distribute, manual_amount, service_commissions, validate_pool
from barbershop.core.errors import DistributionInputInvalid, InvalidRange
from barbershop.core.points import BarberPoints, compute_points, month_bounds, month_of
from barbershop.core.states import AppointmentStatus
from conftest import POLICY


def visit(barber_id, day, minutes, price=10.0, status=AppointmentStatus.completed, points=None):
    appointment = SimpleNamespace(barber_id=barber_id, appointment_date=day, status=status, service_id=1)
    lines = [SimpleNamespace(duration_minutes=minutes, price_at_time=price,
                             points=minutes if points is None else points)]
    return appointment, lines


def entry(id, barber_id, minutes, amount):
    return SimpleNamespace(id=id, barber_id=barber_id, minutes=minutes, amount=amount)


def test_month_bounds():
    assert month_bounds("2030-01") == (date(2030, 1, 1), date(2030, 2, 1))
    assert month_bounds("2030-12") == (date(2030, 12, 1), date(2031, 1, 1))
    assert month_of(date(2030, 3, 9)) == "2030-03"


@pytest.mark.parametrize("month", ["2030-13", "2030-1", "january", "", None])
def test_month_bounds_rejects_garbage(month):
    with pytest.raises(InvalidRange):
        month_bounds(month)


def test_only_completed_visits_in_month_count():
    visits = [
        visit(1, date(2030, 1, 5), 30),
        visit(1, date(2030, 1, 31), 45),
        visit(1, date(2030, 2, 1), 30),
        visit(1, date(2030, 1, 10), 30, status=AppointmentStatus.cancelled),
        visit(1, date(2030, 1, 10), 30, status=AppointmentStatus.confirmed),
        visit(2, date(2030, 1, 12), 15, points=40),
    ]

    result = compute_points("2030-01", visits)

    assert [(p.barber_id, p.total_points, p.total_appointments, p.total_minutes) for p in result] == [
        (1, 75, 2, 75),
        (2, 40, 1, 15),
    ]


def test_appointments_without_service_are_skipped():
    appointment, lines = visit(1, date(2030, 1, 5), 30)
    appointment.service_id = None

    assert compute_points("2030-01", [(appointment, lines)]) == []


def test_ties_are_ordered_by_barber_id():
    result = compute_points("2030-01", [visit(5, date(2030, 1, 2), 30), visit(2, date(2030, 1, 3), 30)])

    assert [p.barber_id for p in result] == [2, 5]


def test_pool_split_by_points():
    points = [BarberPoints(1, "2030-01", total_points=300), BarberPoints(2, "2030-01", total_points=700)]

    summary = distribute("2030-01", points, 1000.0, 70.0)
    shares = {b.barber_id: b for b in summary.barbers}

    assert summary.distributable_amount == pytest.approx(700.0)
    assert summary.reserved_amount == pytest.approx(300.0)
    assert shares[1].automatic_share == pytest.approx(210.0)
    assert shares[2].automatic_share == pytest.approx(490.0)
    assert shares[1].points_percentage == 30.0
    assert shares[2].points_percentage == 70.0
    assert [b.barber_id for b in summary.barbers] == [2, 1]


def test_shares_and_reserve_sum_to_the_pool():
    points = [BarberPoints(i, "2030-01", total_points=p) for i, p in enumerate([17, 23, 61], start=1)]

    summary = distribute("2030-01", points, 1234.56, 83.0)

    paid = sum(b.automatic_share for b in summary.barbers)
    assert paid == pytest.approx(summary.distributable_amount)
    assert paid + summary.reserved_amount == pytest.approx(1234.56)


def test_distribution_is_repeatable():
    points = [BarberPoints(1, "2030-01", total_points=300), BarberPoints(2, "2030-01", total_points=700)]

    first = distribute("2030-01", points, 1000.0, 70.0)
    second = distribute("2030-01", points, 1000.0, 70.0)

    assert first == second


def test_no_points_pays_nothing_automatically():
    summary = distribute("2030-01", [], 500.0, 100.0)

    assert summary.barbers == []
    assert summary.total_points == 0
    assert summary.distributable_amount == 500.0


def test_manual_entries_add_on_top_without_shifting_shares():
    points = [BarberPoints(1, "2030-01", total_points=300, total_minutes=300),
              BarberPoints(2, "2030-01", total_points=700, total_minutes=700)]
    manual = [entry(11, 1, 60, 232.2), entry(12, 3, 30, 116.1)]

    summary = distribute("2030-01", points, 1000.0, 70.0, manual)
    rows = {b.barber_id: b for b in summary.barbers}

    assert rows[1].automatic_share == pytest.approx(210.0)
    assert rows[1].manual_amount == pytest.approx(232.2)
    assert rows[1].total_commission == pytest.approx(442.2)
    assert rows[1].total_minutes == 360
    assert rows[1].manual_minutes == 60
    assert rows[1].manual_entry_ids == [11]
    assert rows[2].automatic_share == pytest.approx(490.0)
    assert rows[3].total_points == 0
    assert rows[3].automatic_share == 0.0
    assert rows[3].total_commission == pytest.approx(116.1)
    assert summary.total_points == 1000


@pytest.mark.parametrize("revenue,percentage", [
    (-1.0, 50.0),
    (100.0, -5.0),
    (100.0, 100.5),
    (float("inf"), 50.0),
    (float("nan"), 50.0),
    (100.0, float("nan")),
])
def test_invalid_pool_inputs(revenue, percentage):
    with pytest.raises(DistributionInputInvalid):
        validate_pool(revenue, percentage)


def test_pool_edges_are_valid():
    validate_pool(0.0, 0.0)
    validate_pool(10.0, 100.0)


def test_manual_amount_defaults_to_price_per_minute():
    assert manual_amount(60, POLICY) == pytest.approx(232.2)
    assert manual_amount(60, POLICY, amount=50.0) == 50.0


def test_service_commission_uses_barber_percentage():
    visits = [
        visit(1, date(2030, 1, 5), 30, price=15.0),
        visit(1, date(2030, 1, 6), 15, price=8.0),
        visit(2, date(2030, 1, 6), 45, price=20.0),
        visit(2, date(2030, 1, 7), 45, price=20.0, status=AppointmentStatus.cancelled),
    ]

    rows = {r.barber_id: r for r in service_commissions(visits, {1: 40.0, 2: 50.0}, [entry(1, 2, 10, 5.0)])}

    assert rows[1].gross_revenue == pytest.approx(23.0)
    assert rows[1].commission_amount == pytest.approx(9.2)
    assert rows[1].total_appointments == 2
    assert rows[2].commission_amount == pytest.approx(10.0)
    assert rows[2].total_commission == pytest.approx(15.0)
    assert rows[2].total_minutes == 55
