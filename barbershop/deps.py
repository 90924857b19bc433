# barbershop/deps.py

from datetime import datetime

from fastapi import Depends, HTTPException
from sqlmodel import Session, select

from barbershop.config import shop_now
from barbershop.core.policy import DEFAULT_POLICY, BookingPolicy
from barbershop.db import get_session
from barbershop.models import PolicySetting


def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_now() -> datetime:
    return shop_now()


def load_policy(session: Session) -> BookingPolicy:
    latest = session.exec(
        select(PolicySetting).order_by(PolicySetting.version.desc())
    ).first()
    if latest is None:
        return DEFAULT_POLICY
    return BookingPolicy(**{**latest.payload, "version": latest.version})


def get_policy(session: Session = Depends(get_session)) -> BookingPolicy:
    return load_policy(session)
