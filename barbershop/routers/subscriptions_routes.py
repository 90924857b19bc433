# barbershop/routers/subscriptions_routes.py

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop import billing, booking
from barbershop.auth import get_current_user
from barbershop.db import get_session
from barbershop.deps import get_now, require_role
from barbershop.models import SubscriptionPlan
from barbershop.schemas import PlanCreate, PlanPublic, SubscriptionNotification, SubscriptionPublic

router = APIRouter(
    prefix="/subscriptions",
    tags=["subscriptions"],
)


@router.post("/plans", response_model=PlanPublic, status_code=201)
def create_plan(
    plan: PlanCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    db_plan = SubscriptionPlan(**plan.model_dump())
    session.add(db_plan)
    session.commit()
    session.refresh(db_plan)
    return db_plan


@router.get("/plans", response_model=List[PlanPublic])
def list_plans(session: Session = Depends(get_session)):
    return session.exec(
        select(SubscriptionPlan).where(SubscriptionPlan.is_active == True)  # noqa: E712
    ).all()


# Called by the payment integration after it has verified the processor's webhook
@router.post("/events", response_model=SubscriptionPublic)
def subscription_event(
    notification: SubscriptionNotification,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    require_role(current_user, "admin")
    return billing.handle_event(
        session,
        notification.event,
        client_id=notification.client_id,
        now=now,
        plan_id=notification.plan_id,
        barber_id=notification.barber_id,
        external_id=notification.external_id,
    )


@router.get("/me", response_model=SubscriptionPublic)
def my_subscription(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    require_role(current_user, "client")
    subscription = booking.current_subscription(session, current_user["id"], now)
    if subscription is None:
        raise HTTPException(status_code=404, detail="No active subscription")
    return subscription
