# barbershop/routers/settings_routes.py

import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barbershop.auth import get_current_user
from barbershop.core.policy import BookingPolicy
from barbershop.db import get_session
from barbershop.deps import get_policy, require_role
from barbershop.models import PolicySetting

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/settings",
    tags=["settings"],
)


@router.get("/policy", response_model=BookingPolicy)
def read_policy(policy: BookingPolicy = Depends(get_policy)):
    return policy


@router.put("/policy", response_model=BookingPolicy)
def publish_policy(
    policy: BookingPolicy,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    """Store ``policy`` as a new version; earlier versions are kept."""
    require_role(current_user, "admin")
    setting = PolicySetting(
        payload=policy.model_dump(mode="json", exclude={"version"}),
        created_by=current_user["id"],
    )
    session.add(setting)
    session.commit()
    session.refresh(setting)
    logger.info(f"Booking policy version {setting.version} published by user {current_user['id']}")
    return BookingPolicy(**{**setting.payload, "version": setting.version})
