# barbershop/models.py

from typing import Optional
from datetime import datetime, date as Date, time

from sqlalchemy import UniqueConstraint
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

from barbershop.core.states import AppointmentStatus, SubscriptionStatus, TimeOffType


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    full_name: str = ""
    role: str  # admin, barber or client


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    user_id: Optional[int] = Field(default=None, foreign_key="user.id")
    is_active: bool = True
    commission_percentage: float = 0.0


class BarberSchedule(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("barber_id", "day_of_week", name="uq_barber_weekday"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    day_of_week: int  # 0=Mon ... 6=Sun
    is_working: bool = True
    start_time: time
    end_time: time


class BarberBreak(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    day_of_week: int
    start_time: time
    end_time: time
    description: str = "Lunch"


class BarberTimeOff(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    start_date: Date
    end_date: Date
    # both None = the whole day
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    type: TimeOffType = TimeOffType.day_off
    reason: str = ""
    is_active: bool = True


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    duration_minutes: int
    price: float
    is_active: bool = True
    points_per_completion: Optional[int] = None


class Guest(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str
    phone: str
    email: Optional[str] = None


class Appointment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    client_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    guest_id: Optional[int] = Field(default=None, foreign_key="guest.id")
    barber_id: int = Field(foreign_key="barber.id", index=True)
    service_id: Optional[int] = Field(default=None, foreign_key="service.id")
    appointment_date: Date = Field(index=True)
    start_time: time
    end_time: time
    status: AppointmentStatus = AppointmentStatus.pending
    is_subscription_booking: bool = False
    subscription_id: Optional[int] = Field(default=None, foreign_key="clientsubscription.id")
    client_name_at_booking: str = ""
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AppointmentService(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointment.id", index=True)
    service_id: int = Field(foreign_key="service.id")
    price_at_time: float
    duration_minutes: int
    points: int
    is_original: bool = False


class SubscriptionPlan(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    price: float = 0.0
    cuts_per_period: Optional[int] = None  # None = unlimited
    is_active: bool = True


class ClientSubscription(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="user.id", index=True)
    plan_id: int = Field(foreign_key="subscriptionplan.id")
    barber_id: Optional[int] = Field(default=None, foreign_key="barber.id")
    status: SubscriptionStatus = SubscriptionStatus.active
    payment_status: str = "paid"
    external_id: Optional[str] = Field(default=None, index=True)
    current_period_start: datetime
    current_period_end: datetime
    cuts_used_this_period: int = 0


class BookingRestriction(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="user.id", index=True)
    restricted_until: datetime
    reason: str = "late_cancellation"
    appointment_id: Optional[int] = Field(default=None, foreign_key="appointment.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class RevenuePool(SQLModel, table=True):
    month: str = Field(primary_key=True)  # YYYY-MM
    total_revenue: float = 0.0
    distribution_percentage: float = 100.0
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ManualCommissionEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    date: Date = Field(index=True)
    minutes: int = 0
    description: str = ""
    amount: float = 0.0
    created_by: Optional[int] = Field(default=None, foreign_key="user.id")


class PolicySetting(SQLModel, table=True):
    version: Optional[int] = Field(default=None, primary_key=True)
    payload: dict = Field(sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    created_by: Optional[int] = Field(default=None, foreign_key="user.id")
