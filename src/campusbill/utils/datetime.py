# File: src/campusbill/utils/datetime.py
"""Timezone-aware datetime utilities for campus local time."""

import os
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

# Bursar's office timezone (ZoneInfo handles DST transitions automatically)
APP_TIMEZONE = ZoneInfo(os.getenv("CAMPUSBILL_TIMEZONE", "America/New_York"))


def now_local() -> datetime:
    """Get current datetime in campus timezone."""
    return datetime.now(APP_TIMEZONE)


def today_local() -> date:
    """Get today's date in campus timezone. Payments are dated with this."""
    return now_local().date()


def now_utc() -> datetime:
    """Get current UTC datetime as NAIVE for database storage."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
