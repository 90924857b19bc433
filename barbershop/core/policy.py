# barbershop/core/policy.py

from datetime import time

from pydantic import BaseModel, ConfigDict, Field, model_validator

from barbershop import config


class BookingPolicy(BaseModel):
    """Versioned shop rules handed to the booking and commission components."""

    model_config = ConfigDict(frozen=True)

    version: int = 0  # 0 = built-in defaults, stored versions start at 1
    open_time: time = time.fromisoformat(config.OPEN_TIME)
    close_time: time = time.fromisoformat(config.CLOSE_TIME)
    slot_minutes: int = Field(default=config.SLOT_MINUTES, gt=0, le=240)
    cancellation_tolerance_minutes: int = Field(default=config.CANCELLATION_TOLERANCE_MINUTES, ge=0)
    penalty_duration_hours: int = Field(default=config.PENALTY_DURATION_HOURS, ge=0)
    min_lead_minutes: int = Field(default=config.MIN_LEAD_MINUTES, ge=0)
    non_subscriber_window_days: int = Field(default=config.NON_SUBSCRIBER_WINDOW_DAYS, ge=0)
    default_distribution_percentage: float = Field(default=config.DEFAULT_DISTRIBUTION_PERCENTAGE, ge=0, le=100)
    price_per_minute: float = Field(default=config.PRICE_PER_MINUTE, ge=0)

    @model_validator(mode="after")
    def check_business_hours(self):
        if self.open_time >= self.close_time:
            raise ValueError("open_time must be before close_time")
        return self


DEFAULT_POLICY = BookingPolicy()
