from datetime import date, datetime

import pytest

from salah_reminder.salah.models import SalahName
from salah_reminder.salah.windows import format_clock_time, today_windows, window_end

from fakes import make_payload

TODAY = date(2024, 3, 4)


@pytest.fixture
def payload():
    return make_payload(TODAY)


def test_window_ends_at_next_adhaan(payload):
    assert window_end(payload, SalahName.FAJR) == payload.today.sunrise
    assert window_end(payload, SalahName.DHUHR) == payload.today.asr.adhaan_time
    assert window_end(payload, SalahName.ASR) == payload.today.maghrib.adhaan_time
    assert window_end(payload, SalahName.MAGHRIB) == payload.today.ishaa.adhaan_time


def test_ishaa_window_spills_into_tomorrow(payload):
    assert window_end(payload, SalahName.ISHAA) == payload.tomorrow.fajr.adhaan_time
    assert window_end(payload, SalahName.ISHAA) == datetime(2024, 3, 5, 5, 0)


def test_unknown_name_is_rejected(payload):
    with pytest.raises(ValueError):
        window_end(payload, "sunrise")


def test_today_windows(payload):
    windows = today_windows(payload)

    assert [name for name, _, _ in windows] == list(SalahName.ALL)
    assert windows[0] == (SalahName.FAJR, datetime(2024, 3, 4, 5, 0), datetime(2024, 3, 4, 6, 30))
    assert all(start < end for _, start, end in windows)


def test_format_clock_time():
    assert format_clock_time(datetime(2024, 3, 4, 5, 7, 9)) == "05:07"
    assert format_clock_time(datetime(2024, 3, 4, 5, 7, 9), include_seconds=True) == "05:07:09"
    assert format_clock_time(datetime(2024, 3, 4, 0, 0), True) == "00:00:00"
    assert format_clock_time(datetime(2024, 3, 4, 23, 59)) == "23:59"
