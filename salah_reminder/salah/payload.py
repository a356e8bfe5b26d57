"""
Builds the yesterday/today/tomorrow payload the scheduler works from.
A payload is all-or-nothing: if any of the three days is missing, None is returned.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from .models import SalahTimesPayload
from .normalizer import iso_date_key
from .source_base import SalahSource

logger = logging.getLogger(__name__)


def build_payload(source: SalahSource, now: Optional[datetime] = None) -> Optional[SalahTimesPayload]:
    """Fetch the three days around now from source. Returns None when any day is unavailable."""
    today = (now or datetime.now()).date()
    days = [today - timedelta(days=1), today, today + timedelta(days=1)]

    logger.info(f"Building payload from {source.get_name()} for {iso_date_key(today)}")
    try:
        fetched = source.fetch_range(days)
    except Exception as e:
        logger.exception(f"Source {source.get_name()} failed: {e}")
        return None
    if not fetched:
        logger.warning(f"Source {source.get_name()} returned no schedule")
        return None

    schedules = []
    for day in days:
        salah_times = fetched.get(iso_date_key(day))
        if salah_times is None:
            logger.warning(f"Source {source.get_name()} has no schedule for {iso_date_key(day)}")
            return None
        schedules.append(salah_times)

    return SalahTimesPayload(*schedules)
