# barbershop/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.auth import get_current_user, hash_password
from barbershop.db import get_session
from barbershop.deps import require_role
from barbershop.models import User
from barbershop.schemas import UserCreate, UserPublic

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


def _public(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role,
    }


def _register(session: Session, user: UserCreate) -> User:
    # 1) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Create user in DB
    db_user = User(
        email=user.email,
        password_hash=hash_password(user.password),
        full_name=user.full_name,
        role=user.role.value,
    )
    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id
    logger.info(f"User {db_user.id} registered as {db_user.role}")
    return db_user


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return {
        "id": current_user["id"],
        "email": current_user["email"],
        "full_name": current_user["full_name"],
        "role": current_user["role"],
    }


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # Self-registration is for clients; the very first account may bootstrap the shop's admin
    if user.role.value != "client" and session.exec(select(User)).first() is not None:
        raise HTTPException(status_code=403, detail="Only an admin can create staff accounts")
    return _public(_register(session, user))


@router.post("/staff", status_code=201, response_model=UserPublic)
def create_staff_user(
    user: UserCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    return _public(_register(session, user))
