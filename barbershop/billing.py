# barbershop/billing.py
"""
Reactions to the payment processor.

The processor only tells us two things: a subscription was activated (first
payment or renewal) or it stopped (cancelled / payment failed). We never
call out to it.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from barbershop.core import subscriptions
from barbershop.core.errors import NotFound
from barbershop.core.states import SubscriptionEvent, SubscriptionStatus, UserRole
from barbershop.models import Barber, ClientSubscription, SubscriptionPlan, User

logger = logging.getLogger(__name__)


def _find_subscription(session: Session, client_id: int, external_id: Optional[str]) -> Optional[ClientSubscription]:
    stmt = select(ClientSubscription).where(ClientSubscription.client_id == client_id)
    if external_id is not None:
        stmt = stmt.where(ClientSubscription.external_id == external_id)
    return session.exec(stmt.order_by(ClientSubscription.id.desc())).first()


def subscription_activated(session: Session, client_id: int, plan_id: int, now: datetime,
                           barber_id: Optional[int] = None, external_id: Optional[str] = None) -> ClientSubscription:
    """Start a one-month period; renewals reuse the client's row and reset the cut counter."""
    client = session.get(User, client_id)
    if client is None or client.role != UserRole.client:
        raise NotFound("Client not found", client_id=client_id)
    if session.get(SubscriptionPlan, plan_id) is None:
        raise NotFound("Subscription plan not found", plan_id=plan_id)
    if barber_id is not None and session.get(Barber, barber_id) is None:
        raise NotFound("Barber not found", barber_id=barber_id)

    subscription = _find_subscription(session, client_id, external_id)
    if subscription is None:
        subscription = ClientSubscription(
            client_id=client_id,
            plan_id=plan_id,
            external_id=external_id,
            current_period_start=now,
            current_period_end=subscriptions.add_months(now, 1),
        )
        action = "created"
    else:
        action = "renewed"

    subscription.plan_id = plan_id
    if barber_id is not None:
        subscription.barber_id = barber_id
    subscription.payment_status = "paid"
    subscriptions.start_period(subscription, now)

    session.add(subscription)
    session.commit()
    session.refresh(subscription)
    logger.info(f"Subscription {subscription.id} {action} for client {client_id} until {subscription.current_period_end}")
    return subscription


def subscription_stopped(session: Session, client_id: int, event: SubscriptionEvent,
                         external_id: Optional[str] = None) -> ClientSubscription:
    subscription = _find_subscription(session, client_id, external_id)
    if subscription is None:
        raise NotFound("Subscription not found", client_id=client_id, external_id=external_id)

    subscription.status = SubscriptionStatus.cancelled
    if event == SubscriptionEvent.payment_failed:
        subscription.payment_status = "failed"

    session.add(subscription)
    session.commit()
    session.refresh(subscription)
    logger.info(f"Subscription {subscription.id} cancelled ({SubscriptionEvent(event).value})")
    return subscription


def handle_event(session: Session, event: SubscriptionEvent, client_id: int, now: datetime,
                 plan_id: Optional[int] = None, barber_id: Optional[int] = None,
                 external_id: Optional[str] = None) -> ClientSubscription:
    if event == SubscriptionEvent.activated:
        if plan_id is None:
            raise NotFound("Subscription plan not found", plan_id=plan_id)
        return subscription_activated(session, client_id, plan_id, now, barber_id, external_id)
    return subscription_stopped(session, client_id, event, external_id)
