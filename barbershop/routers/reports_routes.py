# barbershop/routers/reports_routes.py

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from barbershop import reports
from barbershop.auth import get_current_user
from barbershop.core.policy import BookingPolicy
from barbershop.db import get_session
from barbershop.deps import get_policy, require_role
from barbershop.schemas import (
    BarberPointsPublic,
    CommissionReport,
    ManualEntryCreate,
    ManualEntryPublic,
    ManualEntryUpdate,
    RevenuePoolPublic,
    RevenuePoolUpdate,
    ServiceCommissionPublic,
)

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
)


@router.get("/points/{month}", response_model=List[BarberPointsPublic])
def points_report(
    month: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    names = reports.barber_names(session)
    return [
        {
            "barber_id": p.barber_id,
            "barber_name": names.get(p.barber_id, ""),
            "month": p.month,
            "total_points": p.total_points,
            "total_appointments": p.total_appointments,
            "total_minutes": p.total_minutes,
        }
        for p in reports.month_points(session, month)
    ]


@router.get("/commissions/{month}", response_model=CommissionReport)
def commission_report(
    month: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    policy: BookingPolicy = Depends(get_policy),
):
    require_role(current_user, "admin")
    summary = reports.month_commissions(session, month, policy)
    names = reports.barber_names(session)
    return {
        "month": summary.month,
        "total_revenue": summary.total_revenue,
        "distribution_percentage": summary.distribution_percentage,
        "distributable_amount": summary.distributable_amount,
        "reserved_amount": summary.reserved_amount,
        "total_points": summary.total_points,
        "barbers": [
            {
                "barber_id": b.barber_id,
                "barber_name": names.get(b.barber_id, ""),
                "total_points": b.total_points,
                "total_appointments": b.total_appointments,
                "total_minutes": b.total_minutes,
                "manual_minutes": b.manual_minutes,
                "points_percentage": b.points_percentage,
                "automatic_share": b.automatic_share,
                "manual_amount": b.manual_amount,
                "total_commission": b.total_commission,
                "manual_entry_ids": b.manual_entry_ids,
            }
            for b in summary.barbers
        ],
    }


@router.get("/revenue-pool/{month}", response_model=RevenuePoolPublic)
def get_revenue_pool(
    month: str,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    policy: BookingPolicy = Depends(get_policy),
):
    require_role(current_user, "admin")
    return reports.get_pool(session, month, policy)


@router.put("/revenue-pool/{month}", response_model=RevenuePoolPublic)
def update_revenue_pool(
    month: str,
    pool: RevenuePoolUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    policy: BookingPolicy = Depends(get_policy),
):
    require_role(current_user, "admin")
    return reports.update_pool(
        session,
        month,
        policy,
        total_revenue=pool.total_revenue,
        distribution_percentage=pool.distribution_percentage,
    )


@router.post("/manual-entries", response_model=ManualEntryPublic, status_code=201)
def create_manual_entry(
    entry: ManualEntryCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    policy: BookingPolicy = Depends(get_policy),
):
    require_role(current_user, "admin")
    return reports.add_manual_entry(
        session,
        policy,
        barber_id=entry.barber_id,
        entry_date=entry.date,
        minutes=entry.minutes,
        description=entry.description,
        amount=entry.amount,
        created_by=current_user["id"],
    )


@router.put("/manual-entries/{entry_id}", response_model=ManualEntryPublic)
def edit_manual_entry(
    entry_id: int,
    entry: ManualEntryUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    policy: BookingPolicy = Depends(get_policy),
):
    require_role(current_user, "admin")
    return reports.update_manual_entry(session, policy, entry_id, **entry.model_dump(exclude_unset=True))


@router.delete("/manual-entries/{entry_id}", status_code=204)
def remove_manual_entry(
    entry_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    reports.delete_manual_entry(session, entry_id)
    return Response(status_code=204)


@router.get("/service-commissions", response_model=List[ServiceCommissionPublic])
def service_commission_report(
    start: date,
    end: date,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    names = reports.barber_names(session)
    return [
        {
            "barber_id": r.barber_id,
            "barber_name": names.get(r.barber_id, ""),
            "commission_percentage": r.commission_percentage,
            "total_appointments": r.total_appointments,
            "total_minutes": r.total_minutes,
            "gross_revenue": r.gross_revenue,
            "commission_amount": r.commission_amount,
            "manual_amount": r.manual_amount,
            "total_commission": r.total_commission,
        }
        for r in reports.service_commission_report(session, start, end)
    ]
