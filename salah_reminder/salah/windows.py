"""
Prayer windows: a prayer is current from its adhaan until the next prayer's
adhaan (Fajr until sunrise). Ishaa runs into the next day's Fajr.
"""
from datetime import datetime
from typing import List, Tuple

from .models import SalahName, SalahTimesPayload


def window_end(payload: SalahTimesPayload, salah_name: str) -> datetime:
    if salah_name == SalahName.FAJR:
        return payload.today.sunrise
    if salah_name == SalahName.DHUHR:
        return payload.today.asr.adhaan_time
    if salah_name == SalahName.ASR:
        return payload.today.maghrib.adhaan_time
    if salah_name == SalahName.MAGHRIB:
        return payload.today.ishaa.adhaan_time
    if salah_name == SalahName.ISHAA:
        return payload.tomorrow.fajr.adhaan_time
    raise ValueError(f"Unknown salah name: {salah_name!r}")


def today_windows(payload: SalahTimesPayload) -> List[Tuple[str, datetime, datetime]]:
    """(name, start, end) for each of today's five prayers."""
    return [
        (salah.name, salah.adhaan_time, window_end(payload, salah.name))
        for salah in payload.today.salahs()
    ]


def format_clock_time(timestamp: datetime, include_seconds: bool = False) -> str:
    """Zero-padded 24-hour "HH:MM" or "HH:MM:SS"."""
    text = f"{timestamp.hour:02d}:{timestamp.minute:02d}"
    if include_seconds:
        text += f":{timestamp.second:02d}"
    return text
