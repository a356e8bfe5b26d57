from datetime import date, datetime, timedelta

from salah_reminder.salah.normalizer import iso_date_key
from salah_reminder.salah.payload import build_payload

from fakes import FakeSource, make_salah_times

NOW = datetime(2024, 3, 4, 9, 30)
DAYS = [date(2024, 3, 3), date(2024, 3, 4), date(2024, 3, 5)]


def schedules(days):
    return {iso_date_key(day): make_salah_times(day) for day in days}


def test_payload_is_centered_on_now():
    source = FakeSource(schedules(DAYS))

    payload = build_payload(source, now=NOW)

    assert source.calls == [DAYS]
    assert payload.yesterday.date == date(2024, 3, 3)
    assert payload.today.date == date(2024, 3, 4)
    assert payload.tomorrow.date == date(2024, 3, 5)


def test_days_are_exactly_one_day_apart():
    payload = build_payload(FakeSource(schedules(DAYS)), now=NOW)

    assert payload.today.fajr.adhaan_time - payload.yesterday.fajr.adhaan_time == timedelta(days=1)
    assert payload.tomorrow.fajr.adhaan_time - payload.today.fajr.adhaan_time == timedelta(days=1)


def test_missing_day_makes_payload_unavailable():
    source = FakeSource(schedules(DAYS[:2]))

    assert build_payload(source, now=NOW) is None


def test_unavailable_source_makes_payload_unavailable():
    source = FakeSource()
    source.fetch_range = lambda dates: None

    assert build_payload(source, now=NOW) is None


def test_failing_source_does_not_raise():
    source = FakeSource()

    def explode(dates):
        raise RuntimeError("markup changed")

    source.fetch_range = explode

    assert build_payload(source, now=NOW) is None


def test_payload_spanning_new_year():
    days = [date(2023, 12, 31), date(2024, 1, 1), date(2024, 1, 2)]

    payload = build_payload(FakeSource(schedules(days)), now=datetime(2024, 1, 1, 0, 0))

    assert payload.yesterday.date == date(2023, 12, 31)
    assert payload.tomorrow.date == date(2024, 1, 2)
