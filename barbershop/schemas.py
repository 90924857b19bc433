# barbershop/schemas.py

from pydantic import BaseModel, Field, model_validator
from datetime import datetime, date, date as Date, time
from typing import List, Optional

from barbershop.core.states import (
    AppointmentStatus,
    SlotKind,
    SubscriptionEvent,
    SubscriptionStatus,
    TimeOffType,
    UserRole,
)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserPublic(BaseModel):
    id: int
    email: str
    full_name: str = ""
    role: UserRole


class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    full_name: str = ""
    role: UserRole = UserRole.client


# ---------- barbers ----------

class BarberCreate(BaseModel):
    name: str = Field(min_length=1)
    user_id: Optional[int] = None
    commission_percentage: float = Field(default=0.0, ge=0, le=100)


class BarberPublic(BaseModel):
    id: int
    name: str
    user_id: Optional[int] = None
    is_active: bool
    commission_percentage: float


class ScheduleDay(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Mon, 1=Tues....
    is_working: bool = True
    start_time: time
    end_time: time


class BarberSchedule(BaseModel):
    days: List[ScheduleDay]


class BreakIn(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    description: str = "Lunch"


class BreakPublic(BreakIn):
    id: int


class TimeOffCreate(BaseModel):
    start_date: date
    end_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    type: TimeOffType = TimeOffType.day_off
    reason: str = ""


class TimeOffPublic(TimeOffCreate):
    id: int
    barber_id: int
    is_active: bool


class SlotPublic(BaseModel):
    time: str
    kind: SlotKind
    appointment_id: Optional[int] = None
    label: Optional[str] = None


class AvailabilityResponse(BaseModel):
    barber_id: int
    date: date
    policy_version: int
    slots: List[SlotPublic]


class AvailableStartsResponse(BaseModel):
    barber_id: int
    date: date
    service_id: int
    available_starts: List[str]


# ---------- services ----------

class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    duration_minutes: int
    price: float = Field(ge=0)
    points_per_completion: Optional[int] = Field(default=None, ge=0)


class ServicePublic(BaseModel):
    id: int
    name: str
    duration_minutes: int
    price: float
    is_active: bool
    points_per_completion: Optional[int] = None


# ---------- appointments ----------

class ClientAppointmentCreate(BaseModel):
    service_id: int
    date: date
    start_time: time
    notes: Optional[str] = None


class WalkInCreate(BaseModel):
    barber_id: int
    service_id: int
    date: date
    start_time: time
    guest_name: str = Field(min_length=1)
    guest_phone: str = Field(min_length=1)
    guest_email: Optional[str] = None
    notes: Optional[str] = None


class LineItemCreate(BaseModel):
    service_id: int


class LineItemPublic(BaseModel):
    id: int
    service_id: int
    price_at_time: float
    duration_minutes: int
    points: int
    is_original: bool


class AppointmentPublic(BaseModel):
    id: int
    client_id: Optional[int] = None
    guest_id: Optional[int] = None
    barber_id: int
    service_id: Optional[int] = None
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    is_subscription_booking: bool
    client_name_at_booking: str
    notes: Optional[str] = None


class AppointmentDetail(AppointmentPublic):
    services: List[LineItemPublic]
    total_price: float


# ---------- subscriptions ----------

class PlanCreate(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(default=0.0, ge=0)
    cuts_per_period: Optional[int] = Field(default=None, ge=0)


class PlanPublic(PlanCreate):
    id: int
    is_active: bool


class SubscriptionNotification(BaseModel):
    event: SubscriptionEvent
    client_id: int
    plan_id: Optional[int] = None
    barber_id: Optional[int] = None
    external_id: Optional[str] = None

    @model_validator(mode="after")
    def plan_required_on_activation(self):
        if self.event == SubscriptionEvent.activated and self.plan_id is None:
            raise ValueError("plan_id is required when a subscription is activated")
        return self


class SubscriptionPublic(BaseModel):
    id: int
    client_id: int
    plan_id: int
    barber_id: Optional[int] = None
    status: SubscriptionStatus
    payment_status: str
    current_period_start: datetime
    current_period_end: datetime
    cuts_used_this_period: int


# ---------- reports ----------

class BarberPointsPublic(BaseModel):
    barber_id: int
    barber_name: str
    month: str
    total_points: int
    total_appointments: int
    total_minutes: int


class RevenuePoolUpdate(BaseModel):
    total_revenue: Optional[float] = None
    distribution_percentage: Optional[float] = None


class RevenuePoolPublic(BaseModel):
    month: str
    total_revenue: float
    distribution_percentage: float


class BarberCommissionPublic(BaseModel):
    barber_id: int
    barber_name: str
    total_points: int
    total_appointments: int
    total_minutes: int
    manual_minutes: int
    points_percentage: float
    automatic_share: float
    manual_amount: float
    total_commission: float
    manual_entry_ids: List[int]


class CommissionReport(BaseModel):
    month: str
    total_revenue: float
    distribution_percentage: float
    distributable_amount: float
    reserved_amount: float
    total_points: int
    barbers: List[BarberCommissionPublic]


class ManualEntryCreate(BaseModel):
    barber_id: int
    date: date
    minutes: int = 0
    description: str = ""
    amount: Optional[float] = None


class ManualEntryUpdate(BaseModel):
    barber_id: Optional[int] = None
    date: Optional[Date] = None
    minutes: Optional[int] = None
    description: Optional[str] = None
    amount: Optional[float] = None


class ManualEntryPublic(BaseModel):
    id: int
    barber_id: int
    date: date
    minutes: int
    description: str
    amount: float


class ServiceCommissionPublic(BaseModel):
    barber_id: int
    barber_name: str
    commission_percentage: float
    total_appointments: int
    total_minutes: int
    gross_revenue: float
    commission_amount: float
    manual_amount: float
    total_commission: float
