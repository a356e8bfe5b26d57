"""
Value types for daily prayer schedules. All timestamps are naive local datetimes.
Named tuples keep every schedule immutable; shifting or replacing produces new values.
"""
from collections import namedtuple
from datetime import date


class SalahName:
    """Canonical prayer names."""
    FAJR = "fajr"
    DHUHR = "dhuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHAA = "ishaa"

    ALL = (FAJR, DHUHR, ASR, MAGHRIB, ISHAA)


# Related labels that are not prayers of their own
SUNRISE = "sunrise"
JUMMAH = "jummah"

# Order of the six daily timestamps within one SalahTimes
DAY_ORDER = (SalahName.FAJR, SUNRISE, SalahName.DHUHR, SalahName.ASR, SalahName.MAGHRIB, SalahName.ISHAA)


class EventKind:
    """What a scheduled event announces. Sunrise events use ADHAAN."""
    ADHAAN = "adhaan"
    IQAMAH = "iqamah"


Salah = namedtuple(
    "Salah",
    [
        "name",         # SalahName value
        "adhaan_time",  # datetime
        "iqamah_time",  # datetime, >= adhaan_time
    ],
)


class SalahTimes(namedtuple("SalahTimes", ["fajr", "sunrise", "dhuhr", "asr", "maghrib", "ishaa"])):
    """One calendar day's schedule. sunrise is a bare datetime, the rest are Salah."""
    __slots__ = ()

    @property
    def date(self) -> date:
        return self.fajr.adhaan_time.date()

    def salah(self, name: str) -> Salah:
        if name not in SalahName.ALL:
            raise KeyError(name)
        return getattr(self, name)

    def salahs(self):
        """The five Salah records in day order."""
        return [getattr(self, name) for name in SalahName.ALL]


SalahTimesPayload = namedtuple("SalahTimesPayload", ["yesterday", "today", "tomorrow"])


ScheduledEvent = namedtuple(
    "ScheduledEvent",
    [
        "salah_name",   # SalahName value or SUNRISE
        "firing_time",  # datetime
        "kind",         # EventKind value
    ],
)
