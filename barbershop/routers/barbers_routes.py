# barbershop/routers/barbers_routes.py

import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop import booking
from barbershop.auth import get_current_user
from barbershop.core.errors import InvalidRange, NotFound
from barbershop.core.policy import BookingPolicy
from barbershop.db import get_session
from barbershop.deps import get_policy, require_role
from barbershop.models import (
    Barber,
    BarberBreak as BarberBreakModel,
    BarberSchedule as BarberScheduleModel,
    BarberTimeOff as BarberTimeOffModel,
)
from barbershop.schemas import (
    AvailabilityResponse,
    AvailableStartsResponse,
    BarberCreate,
    BarberPublic,
    BarberSchedule as BarberScheduleSchema,
    BreakIn,
    BreakPublic,
    TimeOffCreate,
    TimeOffPublic,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


@router.post("", response_model=BarberPublic, status_code=201)
def create_barber(
    barber: BarberCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    db_barber = Barber(**barber.model_dump())
    session.add(db_barber)
    session.commit()
    session.refresh(db_barber)
    logger.info(f"Barber {db_barber.id} created")
    return db_barber


@router.get("", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    return session.exec(
        select(Barber).where(Barber.is_active == True).order_by(Barber.name)  # noqa: E712
    ).all()


@router.put("/{barber_id}/schedule", response_model=BarberScheduleSchema)
def set_schedule(
    barber_id: int,
    schedule: BarberScheduleSchema,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    booking.get_barber(session, barber_id, active_only=False)

    days = [d.day_of_week for d in schedule.days]
    if len(days) != len(set(days)):
        raise HTTPException(status_code=422, detail="day_of_week cannot contain duplicates")
    for d in schedule.days:
        if d.is_working and d.start_time >= d.end_time:
            raise InvalidRange("start_time must be before end_time", day_of_week=d.day_of_week)

    # Replace the whole week: one row per weekday
    existing = session.exec(
        select(BarberScheduleModel).where(BarberScheduleModel.barber_id == barber_id)
    ).all()
    for row in existing:
        session.delete(row)
    session.flush()
    for d in schedule.days:
        session.add(BarberScheduleModel(barber_id=barber_id, **d.model_dump()))
    session.commit()

    logger.info(f"Weekly schedule set for barber {barber_id}")
    return get_schedule(barber_id, session)


@router.get("/{barber_id}/schedule", response_model=BarberScheduleSchema)
def get_schedule(
    barber_id: int,
    session: Session = Depends(get_session),
):
    rows = session.exec(
        select(BarberScheduleModel)
        .where(BarberScheduleModel.barber_id == barber_id)
        .order_by(BarberScheduleModel.day_of_week)
    ).all()
    return {
        "days": [
            {
                "day_of_week": r.day_of_week,
                "is_working": r.is_working,
                "start_time": r.start_time,
                "end_time": r.end_time,
            }
            for r in rows
        ]
    }


@router.put("/{barber_id}/breaks", response_model=List[BreakPublic])
def set_breaks(
    barber_id: int,
    breaks: List[BreakIn],
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    booking.get_barber(session, barber_id, active_only=False)
    for b in breaks:
        if b.start_time >= b.end_time:
            raise InvalidRange(
                "Break must end after it starts",
                day_of_week=b.day_of_week,
                start_time=b.start_time.isoformat(),
                end_time=b.end_time.isoformat(),
            )

    for row in session.exec(select(BarberBreakModel).where(BarberBreakModel.barber_id == barber_id)).all():
        session.delete(row)
    session.flush()
    rows = [BarberBreakModel(barber_id=barber_id, **b.model_dump()) for b in breaks]
    session.add_all(rows)
    session.commit()
    for row in rows:
        session.refresh(row)

    logger.info(f"{len(rows)} break(s) set for barber {barber_id}")
    return rows


@router.post("/{barber_id}/time-off", response_model=TimeOffPublic, status_code=201)
def add_time_off(
    barber_id: int,
    time_off: TimeOffCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    booking.get_barber(session, barber_id, active_only=False)

    if time_off.end_date < time_off.start_date:
        raise InvalidRange("end_date cannot be before start_date",
                           start_date=time_off.start_date.isoformat(), end_date=time_off.end_date.isoformat())
    if (time_off.start_time is None) != (time_off.end_time is None):
        raise InvalidRange("start_time and end_time must be given together")
    if time_off.start_time is not None and time_off.start_time >= time_off.end_time:
        raise InvalidRange("end_time must be after start_time",
                           start_time=time_off.start_time.isoformat(), end_time=time_off.end_time.isoformat())

    db_time_off = BarberTimeOffModel(barber_id=barber_id, **time_off.model_dump())
    session.add(db_time_off)
    session.commit()
    session.refresh(db_time_off)
    logger.info(f"Time off {db_time_off.id} ({db_time_off.type}) added for barber {barber_id}")
    return db_time_off


@router.delete("/{barber_id}/time-off/{time_off_id}", response_model=TimeOffPublic)
def deactivate_time_off(
    barber_id: int,
    time_off_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    db_time_off = session.get(BarberTimeOffModel, time_off_id)
    if db_time_off is None or db_time_off.barber_id != barber_id:
        raise NotFound("Time off not found", time_off_id=time_off_id, barber_id=barber_id)
    db_time_off.is_active = False
    session.add(db_time_off)
    session.commit()
    session.refresh(db_time_off)
    return db_time_off


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: int,
    date: date,
    session: Session = Depends(get_session),
    policy: BookingPolicy = Depends(get_policy),
):
    slots = booking.day_slots(session, barber_id, date, policy)
    return {
        "barber_id": barber_id,
        "date": date,
        "policy_version": policy.version,
        "slots": [
            {
                "time": s.time.strftime("%H:%M"),
                "kind": s.kind,
                "appointment_id": s.appointment_id,
                "label": s.label,
            }
            for s in slots
        ],
    }


@router.get("/{barber_id}/availability/starts", response_model=AvailableStartsResponse)
def barber_available_starts(
    barber_id: int,
    date: date,
    service_id: int,
    session: Session = Depends(get_session),
    policy: BookingPolicy = Depends(get_policy),
):
    starts = booking.free_starts(session, barber_id, date, service_id, policy)
    return {
        "barber_id": barber_id,
        "date": date,
        "service_id": service_id,
        "available_starts": [t.strftime("%H:%M") for t in starts],
    }
