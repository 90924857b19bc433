# barbershop/config.py

import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barbershop.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn("SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2)
    SECRET_KEY = "change-me-later"
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

SHOP_TIMEZONE = os.getenv("SHOP_TIMEZONE", "Europe/Lisbon")

# Defaults for the first booking policy version; later versions live in the database
OPEN_TIME = os.getenv("OPEN_TIME", "09:00")
CLOSE_TIME = os.getenv("CLOSE_TIME", "19:00")
SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "15"))
CANCELLATION_TOLERANCE_MINUTES = int(os.getenv("CANCELLATION_TOLERANCE_MINUTES", "60"))
PENALTY_DURATION_HOURS = int(os.getenv("PENALTY_DURATION_HOURS", "24"))
MIN_LEAD_MINUTES = int(os.getenv("MIN_LEAD_MINUTES", "60"))
NON_SUBSCRIBER_WINDOW_DAYS = int(os.getenv("NON_SUBSCRIBER_WINDOW_DAYS", "7"))
DEFAULT_DISTRIBUTION_PERCENTAGE = float(os.getenv("DEFAULT_DISTRIBUTION_PERCENTAGE", "100"))
PRICE_PER_MINUTE = float(os.getenv("PRICE_PER_MINUTE", "3.87"))


def shop_now() -> datetime:
    """Current wall-clock time in the shop's timezone, as a naive datetime."""
    return datetime.now(ZoneInfo(SHOP_TIMEZONE)).replace(tzinfo=None)
