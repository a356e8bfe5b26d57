from datetime import date, datetime, timedelta

import pytest

from salah_reminder.salah.errors import ParseError
from salah_reminder.salah.models import Salah, SalahName, SUNRISE
from salah_reminder.salah.normalizer import (
    build_salah_times,
    fallback_iqamah,
    is_friday,
    iso_date_key,
    resolve_month_index,
    resolve_salah_label,
    shift_salah_times,
    to_24_hour,
    validate_salah_times,
)

from fakes import make_salah_times

FRIDAY = date(2024, 3, 1)
MONDAY = date(2024, 3, 4)


def test_to_24_hour_known_values():
    assert to_24_hour(12, "AM") == 0
    assert to_24_hour(1, "AM") == 1
    assert to_24_hour(12, "PM") == 12
    assert to_24_hour(1, "PM") == 13
    assert to_24_hour(11, "pm") == 23


def test_to_24_hour_is_a_bijection_onto_the_day():
    hours = [to_24_hour(hour, meridiem) for meridiem in ("AM", "PM") for hour in range(1, 13)]
    assert sorted(hours) == list(range(24))


@pytest.mark.parametrize("hour, meridiem", [(0, "AM"), (13, "PM"), (5, "XM")])
def test_to_24_hour_rejects_invalid_input(hour, meridiem):
    with pytest.raises(ValueError):
        to_24_hour(hour, meridiem)


def test_resolve_month_index():
    assert resolve_month_index("January") == 0
    assert resolve_month_index("march") == 2
    assert resolve_month_index("DECEMBER") == 11
    assert resolve_month_index("Marchh") is None
    assert resolve_month_index("") is None


def test_iso_date_key_ignores_clock_time():
    assert iso_date_key(date(2024, 3, 3)) == "2024-03-03"
    assert iso_date_key(datetime(2024, 3, 3, 23, 59, 59)) == "2024-03-03"
    assert iso_date_key(datetime(2024, 3, 3, 0, 0)) == iso_date_key(datetime(2024, 3, 3, 18, 45))
    assert iso_date_key(date(2024, 3, 3)) != iso_date_key(date(2024, 3, 4))
    assert iso_date_key(date(987, 1, 2)) == "0987-01-02"


def test_is_friday():
    assert is_friday(FRIDAY)
    assert not is_friday(MONDAY)


def test_fallback_iqamah_uses_per_prayer_offset():
    adhaan = datetime(2024, 3, 4, 18, 45)
    offsets = {SalahName.MAGHRIB: 5, SalahName.FAJR: 25}
    assert fallback_iqamah(SalahName.MAGHRIB, adhaan, offsets) == datetime(2024, 3, 4, 18, 50)
    assert fallback_iqamah(SalahName.ASR, adhaan, offsets) == adhaan
    assert fallback_iqamah(SalahName.ASR, adhaan, None) == adhaan


def test_resolve_salah_label_friday_rules():
    assert resolve_salah_label("dhuhr", is_friday=True) is None
    assert resolve_salah_label("jummah", is_friday=True) == SalahName.DHUHR
    assert resolve_salah_label("jummah", is_friday=False) is None
    assert resolve_salah_label("Dhur", is_friday=False) == SalahName.DHUHR


def test_resolve_salah_label_spellings():
    assert resolve_salah_label(" Magreb ", False) == SalahName.MAGHRIB
    assert resolve_salah_label("Isha", False) == SalahName.ISHAA
    assert resolve_salah_label("Sunrise", False) == SUNRISE
    assert resolve_salah_label("Tahajjud", False) is None
    assert resolve_salah_label("", False) is None


def test_shift_round_trip_reproduces_original():
    original = make_salah_times(MONDAY)
    shifted = shift_salah_times(original, 1)
    assert shifted.date == MONDAY + timedelta(days=1)
    assert shifted.maghrib.adhaan_time == datetime(2024, 3, 5, 18, 45)
    assert shift_salah_times(shifted, -1) == original


def test_shift_keeps_clock_time_across_month_end():
    original = make_salah_times(date(2024, 2, 29))
    shifted = shift_salah_times(original, 1)
    assert shifted.fajr.adhaan_time == datetime(2024, 3, 1, 5, 0)
    assert shifted.sunrise == datetime(2024, 3, 1, 6, 30)


def test_build_salah_times_requires_every_entry():
    complete = make_salah_times(MONDAY)._asdict()
    del complete["sunrise"]
    with pytest.raises(ParseError):
        build_salah_times(complete)


def test_validate_salah_times_rejects_out_of_order_adhaans():
    times = make_salah_times(MONDAY, asr=(12, 0))
    with pytest.raises(ParseError):
        validate_salah_times(times)


def test_validate_salah_times_rejects_mixed_dates():
    times = make_salah_times(MONDAY)
    other_day = datetime(2024, 3, 5, 20, 15)
    times = times._replace(ishaa=Salah(SalahName.ISHAA, other_day, other_day))
    with pytest.raises(ParseError):
        validate_salah_times(times)


def test_validate_salah_times_rejects_early_iqamah():
    times = make_salah_times(MONDAY, iqamah_delay=-5)
    with pytest.raises(ParseError):
        validate_salah_times(times)


def test_normalized_times_are_ordered():
    times = build_salah_times(make_salah_times(MONDAY)._asdict())
    stamps = [times.fajr.adhaan_time, times.sunrise, times.dhuhr.adhaan_time,
              times.asr.adhaan_time, times.maghrib.adhaan_time, times.ishaa.adhaan_time]
    assert stamps == sorted(stamps)
    assert {stamp.date() for stamp in stamps} == {MONDAY}
