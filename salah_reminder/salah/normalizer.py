"""
Parsing primitives shared by every schedule source: month names, 12-hour clock
conversion, date keys, iqamah fallbacks and prayer label spellings. Also builds
and validates SalahTimes so all sources return the same shape.
"""
from datetime import date, datetime, timedelta
from typing import Dict, Optional, Union

from .errors import ParseError
from .models import DAY_ORDER, JUMMAH, SUNRISE, Salah, SalahName, SalahTimes

MONTH_NAMES = [
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
]

# Spellings seen on source sites -> canonical label
SALAH_LABELS = {
    "fajr": SalahName.FAJR,
    "sunrise": SUNRISE,
    "shurooq": SUNRISE,
    "dhur": SalahName.DHUHR,
    "dhuhr": SalahName.DHUHR,
    "zuhr": SalahName.DHUHR,
    "asr": SalahName.ASR,
    "magreb": SalahName.MAGHRIB,
    "maghrib": SalahName.MAGHRIB,
    "isha": SalahName.ISHAA,
    "ishaa": SalahName.ISHAA,
    "jummah": JUMMAH,
    "jumuah": JUMMAH,
    "jumu'ah": JUMMAH,
}

FRIDAY = 4  # date.weekday()


def resolve_month_index(name: str) -> Optional[int]:
    """Return the 0-based month index for an English month name, or None."""
    try:
        return MONTH_NAMES.index(name.strip().lower())
    except ValueError:
        return None


def to_24_hour(hour: int, meridiem: str) -> int:
    """Convert a 12-hour clock hour (1..12) and AM/PM to 0..23."""
    if not 1 <= hour <= 12:
        raise ValueError(f"Hour out of range for a 12-hour clock: {hour}")
    meridiem = meridiem.strip().upper()
    if meridiem == "AM":
        return 0 if hour == 12 else hour
    if meridiem == "PM":
        return 12 if hour == 12 else hour + 12
    raise ValueError(f"Unknown meridiem: {meridiem!r}")


def iso_date_key(value: Union[date, datetime]) -> str:
    """YYYY-MM-DD key for a calendar day; the clock part of a datetime is ignored."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def is_friday(value: Union[date, datetime]) -> bool:
    return value.weekday() == FRIDAY


def fallback_iqamah(salah_name: str, adhaan_time: datetime, offsets: Optional[Dict[str, int]]) -> datetime:
    """Iqamah for sources that publish none: adhaan plus the source's minute offset for this prayer."""
    minutes = (offsets or {}).get(salah_name, 0)
    return adhaan_time + timedelta(minutes=int(minutes))


def resolve_salah_label(raw_label: str, is_friday: bool) -> Optional[str]:
    """
    Map a source row label to a canonical name.
    On Fridays "dhuhr" rows are ignored and "jummah" fills the dhuhr slot;
    on other days jummah rows are ignored. Unknown labels return None.
    """
    label = SALAH_LABELS.get((raw_label or "").strip().lower())
    if label is None:
        return None
    if label == SalahName.DHUHR:
        return None if is_friday else label
    if label == JUMMAH:
        return SalahName.DHUHR if is_friday else None
    return label


def build_salah_times(
    found: Dict[str, Union[Salah, datetime, None]],
) -> SalahTimes:
    """Assemble a SalahTimes from a label -> value mapping, requiring all six entries."""
    missing = [name for name in DAY_ORDER if found.get(name) is None]
    if missing:
        raise ParseError(f"Missing schedule entries: {', '.join(missing)}")
    times = SalahTimes(**{name: found[name] for name in DAY_ORDER})
    validate_salah_times(times)
    return times


def validate_salah_times(times: SalahTimes) -> None:
    """Raise ParseError unless all entries share one date, adhaans are ordered and iqamah >= adhaan."""
    day = times.date
    previous = None
    for name in DAY_ORDER:
        value = getattr(times, name)
        adhaan = value if name == SUNRISE else value.adhaan_time
        if adhaan.date() != day:
            raise ParseError(f"{name} at {adhaan} is not on {day}")
        if name != SUNRISE:
            if value.name != name:
                raise ParseError(f"Entry for {name} is labelled {value.name}")
            if value.iqamah_time < value.adhaan_time:
                raise ParseError(f"{name} iqamah {value.iqamah_time} precedes adhaan {value.adhaan_time}")
        if previous is not None and adhaan < previous:
            raise ParseError(f"{name} at {adhaan} is earlier than the previous entry at {previous}")
        previous = adhaan


def shift_salah_times(times: SalahTimes, days: int) -> SalahTimes:
    """Return a new SalahTimes moved by whole days, keeping every clock time."""
    delta = timedelta(days=days)
    values = {}
    for name in DAY_ORDER:
        value = getattr(times, name)
        if name == SUNRISE:
            values[name] = value + delta
        else:
            values[name] = value._replace(
                adhaan_time=value.adhaan_time + delta,
                iqamah_time=value.iqamah_time + delta,
            )
    return SalahTimes(**values)

