# barbershop/routers/appointments_routes.py

from datetime import datetime, date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop import booking
from barbershop.auth import get_current_user
from barbershop.core import composer
from barbershop.core.policy import BookingPolicy
from barbershop.core.states import AppointmentStatus
from barbershop.db import get_session
from barbershop.deps import get_now, get_policy, require_role
from barbershop.models import Appointment
from barbershop.schemas import (
    AppointmentDetail,
    AppointmentPublic,
    ClientAppointmentCreate,
    LineItemCreate,
    WalkInCreate,
)

router = APIRouter(
    tags=["appointments"],
)


def _detail(session: Session, appointment: Appointment) -> dict:
    lines = booking.line_items(session, appointment.id)
    return {
        **appointment.model_dump(),
        "services": [line.model_dump() for line in lines],
        "total_price": composer.total_price(lines),
    }


def _ensure_can_view(appointment: Appointment, user: dict):
    if user["role"] == "admin":
        return
    if user["role"] == "client" and appointment.client_id == user["id"]:
        return
    if user["role"] == "barber" and user["barber_id"] == appointment.barber_id:
        return
    raise HTTPException(status_code=403, detail="Forbidden")


@router.post("/barbers/{barber_id}/appointments", response_model=AppointmentPublic, status_code=201)
def client_create_appointment(
    barber_id: int,
    appt: ClientAppointmentCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    policy: BookingPolicy = Depends(get_policy),
    now: datetime = Depends(get_now),
):
    require_role(current_user, "client")
    return booking.book_for_client(
        session,
        current_user,
        barber_id=barber_id,
        service_id=appt.service_id,
        day=appt.date,
        start_time=appt.start_time,
        policy=policy,
        now=now,
        notes=appt.notes,
    )


@router.post("/appointments/walk-in", response_model=AppointmentPublic, status_code=201)
def create_walk_in(
    appt: WalkInCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    policy: BookingPolicy = Depends(get_policy),
):
    require_role(current_user, "admin")
    return booking.book_walk_in(
        session,
        barber_id=appt.barber_id,
        service_id=appt.service_id,
        day=appt.date,
        start_time=appt.start_time,
        guest_name=appt.guest_name,
        guest_phone=appt.guest_phone,
        guest_email=appt.guest_email,
        notes=appt.notes,
        policy=policy,
    )


@router.get("/appointments/{appt_id}", response_model=AppointmentDetail)
def get_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    appointment = booking.get_appointment(session, appt_id)
    _ensure_can_view(appointment, current_user)
    return _detail(session, appointment)


@router.patch("/appointments/{appt_id}/confirm", response_model=AppointmentPublic)
def confirm_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    return booking.confirm_appointment(session, appt_id)


@router.patch("/appointments/{appt_id}/complete", response_model=AppointmentPublic)
def complete_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    return booking.complete_appointment(session, appt_id)


@router.patch("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    policy: BookingPolicy = Depends(get_policy),
    now: datetime = Depends(get_now),
):
    target = booking.get_appointment(session, appt_id)

    # Authorization: admin, or the client who booked
    if current_user["role"] != "admin" and target.client_id != current_user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")

    return booking.cancel_appointment(
        session, appt_id, policy, now, by_client=current_user["role"] != "admin"
    )


@router.post("/appointments/{appt_id}/services", response_model=AppointmentDetail, status_code=201)
def add_appointment_service(
    appt_id: int,
    item: LineItemCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    appointment = booking.add_line_item(session, appt_id, item.service_id)
    return _detail(session, appointment)


@router.delete("/appointments/{appt_id}/services/{line_id}", response_model=AppointmentDetail)
def remove_appointment_service(
    appt_id: int,
    line_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    appointment = booking.remove_line_item(session, appt_id, line_id)
    return _detail(session, appointment)


def _status_filter(stmt, status: str):
    if status == "open":
        return stmt.where(Appointment.status != AppointmentStatus.cancelled) \
                   .where(Appointment.status != AppointmentStatus.completed)
    if status == "all":
        return stmt
    try:
        return stmt.where(Appointment.status == AppointmentStatus(status))
    except ValueError:
        raise HTTPException(
            status_code=422,
            detail="status must be 'open', 'all', 'pending', 'confirmed', 'completed' or 'cancelled'",
        )


@router.get("/barbers/{barber_id}/appointments", response_model=List[AppointmentPublic])
def list_barber_appointments(
    barber_id: int,
    status: str = "open",
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin", "barber")
    if current_user["role"] == "barber" and current_user["barber_id"] != barber_id:
        raise HTTPException(status_code=403, detail="Forbidden")

    stmt = select(Appointment).where(Appointment.barber_id == barber_id)
    if on_date is not None:
        stmt = stmt.where(Appointment.appointment_date == on_date)
    stmt = _status_filter(stmt, status)
    stmt = stmt.order_by(Appointment.appointment_date, Appointment.start_time)

    return session.exec(stmt).all()


@router.get("/clients/me/appointments", response_model=List[AppointmentPublic])
def list_my_appointments(
    status: str = "open",
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    stmt = select(Appointment).where(Appointment.client_id == current_user["id"])
    stmt = _status_filter(stmt, status)
    stmt = stmt.order_by(Appointment.appointment_date, Appointment.start_time)

    return session.exec(stmt).all()
