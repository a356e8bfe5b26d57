"""
MuslimPro monthly table for Muscat, Oman. One page covers a whole month:

    <div class="display-month">March 2024</div>
    <table class="prayer-times"><tbody>
      <tr><td>Sun 3</td><td>05:02</td><td>06:17</td><td>12:19</td><td>15:41</td><td>18:16</td><td>19:31</td></tr>
    </tbody></table>

Times are 24-hour and no iqamah is published.
"""
import re
from datetime import date, datetime
from typing import Dict, Iterable, Optional, Tuple

from bs4 import BeautifulSoup

from ..errors import ParseError, TransportError
from ..models import SUNRISE, Salah, SalahName, SalahTimes
from ..normalizer import build_salah_times, fallback_iqamah, iso_date_key, resolve_month_index
from ..source_base import SalahSource

DAY_PATTERN = re.compile(r"\d+")
TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{1,2})")

# Column order after the date cell
COLUMNS = (SalahName.FAJR, SUNRISE, SalahName.DHUHR, SalahName.ASR, SalahName.MAGHRIB, SalahName.ISHAA)


def parse_display_month(display_month: str) -> Optional[Tuple[int, int]]:
    """Parse "March 2024" into (year, month); None when it does not match."""
    parts = (display_month or "").strip().split()
    if len(parts) != 2:
        return None
    month_index = resolve_month_index(parts[0])
    if month_index is None or not parts[1].isdigit():
        return None
    return int(parts[1]), month_index + 1


def parse_day(raw_date: str, year: int, month: int) -> Optional[date]:
    match = DAY_PATTERN.search(raw_date or "")
    if not match:
        return None
    try:
        return date(year, month, int(match.group(0)))
    except ValueError:
        return None


def parse_time(raw_time: str, on_date: date) -> Optional[datetime]:
    """Parse a 24-hour "HH:MM" cell on the given date; None when it does not match."""
    match = TIME_PATTERN.search(raw_time or "")
    if not match:
        return None
    try:
        return datetime(on_date.year, on_date.month, on_date.day, int(match.group(1)), int(match.group(2)))
    except ValueError:
        return None


class MuscatSource(SalahSource):
    name = "MuslimPro Muscat"
    DEFAULT_URL_TEMPLATE = "https://prayer-times.muslimpro.com/en/Prayer-times-adhan-Muscat-Oman-287286?date={year}-{month}"
    IQAMAH_OFFSETS = {
        SalahName.FAJR: 25,
        SalahName.DHUHR: 15,
        SalahName.ASR: 20,
        SalahName.MAGHRIB: 5,
        SalahName.ISHAA: 20,
    }

    def fetch_range(self, dates: Iterable[date]) -> Optional[Dict[str, SalahTimes]]:
        months: Dict[Tuple[int, int], Dict[str, SalahTimes]] = {}
        result = {}
        for target in dates:
            month_key = (target.year, target.month)
            if month_key not in months:
                month_times = self.fetch_month(*month_key)
                if month_times is None:
                    return None
                months[month_key] = month_times

            key = iso_date_key(target)
            salah_times = months[month_key].get(key)
            if salah_times is None:
                self.logger.error(f"{self.get_name()}: no row for {key}")
                return None
            result[key] = salah_times
        return result

    def fetch_month(self, year: int, month: int) -> Optional[Dict[str, SalahTimes]]:
        """Fetch and parse one month's table, keyed by iso date, or None"""
        url = self.config.get('url_template', self.DEFAULT_URL_TEMPLATE).format(year=year, month=month)
        try:
            content = self._fetch_page_content(url)
        except TransportError as e:
            self.logger.error(f"{self.get_name()}: {e}")
            return None
        try:
            return self.parse_page(content, year, month)
        except ParseError as e:
            self.logger.error(f"Error parsing prayer times from {self.get_name()}: {e}")
            self.cache_helper.invalidate(url)
            return None

    def parse_page(self, content: str, year: int, month: int) -> Dict[str, SalahTimes]:
        soup = BeautifulSoup(content, 'html.parser')

        header = soup.select_one('.display-month')
        display_month = header.get_text(strip=True) if header else ""
        parsed_month = parse_display_month(display_month)
        if parsed_month is None:
            raise ParseError(f"Unparseable month header: {display_month!r}")
        if parsed_month != (year, month):
            raise ParseError(f"Page shows {display_month!r}, expected {year}-{month:02d}")

        month_times = {}
        for row in soup.select('table.prayer-times > tbody > tr'):
            cells = row.find_all('td')
            if len(cells) != 7:
                continue

            raw_day = cells[0].get_text(strip=True)
            day = parse_day(raw_day, year, month)
            if day is None:
                raise ParseError(f"Unparseable date cell: {raw_day!r}")

            found = {}
            for name, cell in zip(COLUMNS, cells[1:]):
                raw_time = cell.get_text(strip=True)
                adhaan_time = parse_time(raw_time, day)
                if adhaan_time is None:
                    raise ParseError(f"Unparseable {name} time on {day}: {raw_time!r}")
                if name == SUNRISE:
                    found[name] = adhaan_time
                else:
                    found[name] = Salah(name, adhaan_time, fallback_iqamah(name, adhaan_time, self.iqamah_offsets))

            month_times[iso_date_key(day)] = build_salah_times(found)

        if not month_times:
            raise ParseError("No rows found in prayer table")
        return month_times
