"""
Core DB models: per-location reminder state so firing survives restarts.
"""
from datetime import datetime

from sqlalchemy import Column, String, DateTime

from salah_reminder.core.db import Base


def _now() -> datetime:
    """Local wall-clock now, matching the naive local times of the schedule."""
    return datetime.now()


class ReminderState(Base):
    """Last fired event for one location. Schedules themselves are not stored."""
    __tablename__ = "reminder_states"

    location_id = Column(String(255), primary_key=True)
    last_fired_at = Column(DateTime(timezone=False), nullable=True)
    last_fired_salah = Column(String(32), nullable=True)  # SalahName value or "sunrise"
    last_fired_kind = Column(String(16), nullable=True)  # "adhaan" | "iqamah"
    updated_at = Column(DateTime(timezone=False), default=_now, onupdate=_now, nullable=False)
