from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional
import logging

import requests

from salah_reminder.core.cache_helper import CacheHelper
from .errors import TransportError
from .models import SalahTimes
from .normalizer import iso_date_key

DEFAULT_TIMEOUT = 15


class SalahSource(ABC):
    """
    One location's published prayer table.
    Sources are stateless between calls apart from the same-day page cache;
    every fetch returns fresh SalahTimes or None when the table is unavailable.
    """

    name = ""
    # Minutes added to adhaan when the source publishes no iqamah
    IQAMAH_OFFSETS: Dict[str, int] = {}

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.logger = logging.getLogger(self.__class__.__name__)
        self.use_cache = self.config.get('use_cache', True)
        self.timeout = self.config.get('timeout', DEFAULT_TIMEOUT)
        self.iqamah_offsets = dict(self.IQAMAH_OFFSETS)
        self.iqamah_offsets.update(self.config.get('iqamah_offsets') or {})
        self.cache_helper = CacheHelper(self.config.get('cache_dir'), self.__class__.__name__.lower())

    def get_name(self) -> str:
        return self.config.get('name', self.name)

    @abstractmethod
    def fetch_range(self, dates: Iterable[date]) -> Optional[Dict[str, SalahTimes]]:
        """Get schedules for the given dates
        Returns:
            dict of iso date key -> SalahTimes covering every requested date, or None
        """
        pass

    def fetch_day(self, target_date: Optional[date] = None) -> Optional[SalahTimes]:
        """Get the schedule for one date (today by default), or None"""
        target_date = target_date or datetime.now().date()
        result = self.fetch_range([target_date])
        if not result:
            return None
        return result.get(iso_date_key(target_date))

    def _fetch_page_content(self, url: str, force_fetch: bool = False) -> str:
        """Fetch page content with same-day caching
        Raises:
            TransportError: the page could not be downloaded
        """
        if self.use_cache and not force_fetch:
            cached_content = self.cache_helper.get_cached_content(url)
            if cached_content:
                self.logger.debug(f"Using cached page for {url}")
                return cached_content

        self.logger.info(f"Fetching fresh content from {url}")
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"Error fetching {url}: {e}") from e
        if self.use_cache:
            self.cache_helper.save_to_cache(url, response.text)
        return response.text
