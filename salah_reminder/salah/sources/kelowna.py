"""
BC Muslim Association, Kelowna. The site publishes a single day's table:

    <table class="table">
      <thead><tr><th>March 3, 2024</th>...</tr></thead>
      <tbody><tr><td>Fajr</td><td>5:52:00 AM</td><td>6:15:00 AM</td></tr>...</tbody>
    </table>

Neighbouring days are synthesized by shifting the published day, which assumes
the table is representative of them too.
"""
import re
from datetime import date, datetime
from typing import Dict, Iterable, Optional

from bs4 import BeautifulSoup

from ..errors import ParseError, TransportError
from ..models import SUNRISE, Salah, SalahTimes
from ..normalizer import (
    build_salah_times,
    fallback_iqamah,
    is_friday,
    iso_date_key,
    resolve_month_index,
    resolve_salah_label,
    shift_salah_times,
    to_24_hour,
)
from ..source_base import SalahSource

DISPLAY_DATE_PATTERN = re.compile(r"(\w+) (\d{1,2}), (\d{4})")
TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{1,2})(?::(\d{1,2}))?\s*(AM|PM)", re.IGNORECASE)


def parse_display_date(raw_date: str) -> Optional[date]:
    """Parse a header like "March 3, 2024"; None when it does not match."""
    match = DISPLAY_DATE_PATTERN.search(raw_date or "")
    if not match:
        return None
    month_index = resolve_month_index(match.group(1))
    if month_index is None:
        return None
    try:
        return date(int(match.group(3)), month_index + 1, int(match.group(2)))
    except ValueError:
        return None


def parse_time(raw_time: str, on_date: date) -> Optional[datetime]:
    """Parse "6:45:00 PM" (seconds optional) on the given date; None when it does not match."""
    match = TIME_PATTERN.search(raw_time or "")
    if not match:
        return None
    hours, minutes, seconds, meridiem = match.groups()
    try:
        return datetime(
            on_date.year,
            on_date.month,
            on_date.day,
            to_24_hour(int(hours), meridiem),
            int(minutes),
            int(seconds or 0),
        )
    except ValueError:
        return None


class KelownaSource(SalahSource):
    name = "BCMA Kelowna"
    DEFAULT_URL = "https://org.thebcma.com/kelowna"
    # Iqamah is published for most rows; missing cells mean congregation at adhaan
    IQAMAH_OFFSETS = {}

    def fetch_range(self, dates: Iterable[date]) -> Optional[Dict[str, SalahTimes]]:
        published = self.fetch_published_day()
        if published is None:
            return None
        result = {}
        for target in dates:
            offset = (target - published.date).days
            result[iso_date_key(target)] = shift_salah_times(published, offset) if offset else published
        return result

    def fetch_published_day(self) -> Optional[SalahTimes]:
        """Fetch and parse the day currently published on the site, or None"""
        url = self.config.get('url', self.DEFAULT_URL)
        try:
            content = self._fetch_page_content(url)
        except TransportError as e:
            self.logger.error(f"{self.get_name()}: {e}")
            return None
        try:
            return self.parse_page(content)
        except ParseError as e:
            self.logger.error(f"Error parsing prayer times from {self.get_name()}: {e}")
            self.cache_helper.invalidate(url)
            return None

    def parse_page(self, content: str) -> SalahTimes:
        soup = BeautifulSoup(content, 'html.parser')

        table = soup.select_one('table.table')
        if table is None:
            raise ParseError("Could not find prayer table")

        header = table.select_one('thead th')
        if header is None:
            raise ParseError("Could not find date header")
        day = parse_display_date(header.get_text(strip=True))
        if day is None:
            raise ParseError(f"Unparseable date header: {header.get_text(strip=True)!r}")

        friday = is_friday(day)
        found = {}
        for row in table.select('tbody tr'):
            cells = row.find_all('td')
            if len(cells) != 3:
                continue

            salah_name = resolve_salah_label(cells[0].get_text(strip=True), friday)
            if salah_name is None:
                continue

            raw_adhaan = cells[1].get_text(strip=True)
            adhaan_time = parse_time(raw_adhaan, day)
            if adhaan_time is None:
                raise ParseError(f"Unparseable {salah_name} time: {raw_adhaan!r}")

            if salah_name == SUNRISE:
                found[SUNRISE] = adhaan_time
                continue

            iqamah_time = parse_time(cells[2].get_text(strip=True), day)
            if iqamah_time is None:
                iqamah_time = fallback_iqamah(salah_name, adhaan_time, self.iqamah_offsets)
            found[salah_name] = Salah(salah_name, adhaan_time, iqamah_time)

        return build_salah_times(found)
