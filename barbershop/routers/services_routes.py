# barbershop/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from barbershop.auth import get_current_user
from barbershop.core.errors import InvalidRange
from barbershop.db import get_session
from barbershop.deps import require_role
from barbershop.models import Service
from barbershop.schemas import ServiceCreate, ServicePublic

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    if service.duration_minutes <= 0:
        raise InvalidRange("duration_minutes must be positive", duration_minutes=service.duration_minutes)

    db_service = Service(**service.model_dump())
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service


@router.get("", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    return session.exec(
        select(Service).where(Service.is_active == True).order_by(Service.price)  # noqa: E712
    ).all()
