import calendar
from datetime import date, datetime
from unittest.mock import MagicMock, patch

import pytest
import requests

from salah_reminder.salah.models import Salah, SalahName
from salah_reminder.salah.sources.muscat import MuscatSource, parse_display_month

MONTH_NAMES = [None, "January", "February", "March", "April", "May", "June", "July",
               "August", "September", "October", "November", "December"]


def month_page(year, month, overrides=None, header=None):
    overrides = overrides or {}
    rows = []
    for day in range(1, calendar.monthrange(year, month)[1] + 1):
        cells = overrides.get(day, ["04:55", "06:10", "12:20", "15:40", "18:15", "19:30"])
        rows.append(
            "<tr><td>Day {}</td>{}</tr>".format(day, "".join(f"<td>{cell}</td>" for cell in cells))
        )
    header = header if header is not None else f"{MONTH_NAMES[month]} {year}"
    return f"""
    <html><body>
    <div class="display-month"> {header} </div>
    <table class="prayer-times">
      <thead><tr><th>Date</th><th>Fajr</th><th>Sunrise</th><th>Dhuhr</th><th>Asr</th><th>Maghrib</th><th>Isha'a</th></tr></thead>
      <tbody>{''.join(rows)}</tbody>
    </table>
    </body></html>
    """


def mock_response(text):
    response = MagicMock()
    response.text = text
    response.raise_for_status = MagicMock()
    return response


def serve_months(url, timeout=None):
    year, month = url.rsplit("date=", 1)[1].split("-")
    return mock_response(month_page(int(year), int(month)))


@pytest.fixture
def source(source_config):
    return MuscatSource(source_config)


def test_parse_display_month():
    assert parse_display_month("March 2024") == (2024, 3)
    assert parse_display_month(" december 2023 ") == (2023, 12)
    assert parse_display_month("March") is None
    assert parse_display_month("Smarch 2024") is None


@patch("salah_reminder.salah.source_base.requests.get")
def test_fetch_month_applies_iqamah_offsets(mock_get, source):
    mock_get.return_value = mock_response(month_page(2024, 3))

    month = source.fetch_month(2024, 3)

    assert len(month) == 31
    times = month["2024-03-04"]
    assert times.fajr == Salah(SalahName.FAJR, datetime(2024, 3, 4, 4, 55), datetime(2024, 3, 4, 5, 20))
    assert times.sunrise == datetime(2024, 3, 4, 6, 10)
    assert times.dhuhr.iqamah_time == datetime(2024, 3, 4, 12, 35)
    assert times.asr.iqamah_time == datetime(2024, 3, 4, 16, 0)
    assert times.maghrib.iqamah_time == datetime(2024, 3, 4, 18, 20)
    assert times.ishaa.iqamah_time == datetime(2024, 3, 4, 19, 50)
    assert mock_get.call_args[0][0].endswith("?date=2024-3")


@patch("salah_reminder.salah.source_base.requests.get")
def test_configured_offsets_override_defaults(mock_get, source_config):
    mock_get.return_value = mock_response(month_page(2024, 3))
    source = MuscatSource(dict(source_config, iqamah_offsets={SalahName.MAGHRIB: 10}))

    times = source.fetch_day(date(2024, 3, 4))

    assert times.maghrib.iqamah_time == datetime(2024, 3, 4, 18, 25)
    assert times.fajr.iqamah_time == datetime(2024, 3, 4, 5, 20)


@patch("salah_reminder.salah.source_base.requests.get")
def test_fetch_range_within_one_month_fetches_once(mock_get, source):
    mock_get.side_effect = serve_months

    result = source.fetch_range([date(2024, 3, 3), date(2024, 3, 4), date(2024, 3, 5)])

    assert mock_get.call_count == 1
    assert sorted(result) == ["2024-03-03", "2024-03-04", "2024-03-05"]


@patch("salah_reminder.salah.source_base.requests.get")
def test_fetch_range_across_month_boundary_fetches_twice(mock_get, source):
    mock_get.side_effect = serve_months

    result = source.fetch_range([date(2024, 2, 29), date(2024, 3, 1), date(2024, 3, 2)])

    assert mock_get.call_count == 2
    assert result["2024-02-29"].date == date(2024, 2, 29)
    assert result["2024-03-02"].date == date(2024, 3, 2)


@patch("salah_reminder.salah.source_base.requests.get")
def test_fetch_range_across_year_boundary(mock_get, source):
    mock_get.side_effect = serve_months

    result = source.fetch_range([date(2023, 12, 31), date(2024, 1, 1)])

    requested = [call[0][0].rsplit("date=", 1)[1] for call in mock_get.call_args_list]
    assert requested == ["2023-12", "2024-1"]
    assert sorted(result) == ["2023-12-31", "2024-01-01"]


@patch("salah_reminder.salah.source_base.requests.get")
def test_bad_time_cell_makes_month_unavailable(mock_get, source):
    mock_get.return_value = mock_response(
        month_page(2024, 3, overrides={17: ["04:40", "--", "12:20", "15:40", "18:15", "19:30"]})
    )

    assert source.fetch_range([date(2024, 3, 4)]) is None


@patch("salah_reminder.salah.source_base.requests.get")
def test_wrong_month_on_page_is_unavailable(mock_get, source):
    mock_get.return_value = mock_response(month_page(2024, 3, header="April 2024"))

    assert source.fetch_month(2024, 3) is None


def test_missing_day_is_unavailable(source):
    with patch.object(source, "fetch_month", return_value={"2024-03-03": None}):
        assert source.fetch_range([date(2024, 3, 4)]) is None


@patch("salah_reminder.salah.source_base.requests.get")
def test_transport_error_is_unavailable(mock_get, source):
    mock_get.side_effect = requests.Timeout("slow")

    assert source.fetch_range([date(2024, 3, 4)]) is None
