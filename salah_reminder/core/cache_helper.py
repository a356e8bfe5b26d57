import os
import json
from datetime import date, datetime
import logging
from typing import Optional
import hashlib

logger = logging.getLogger(__name__)

class CacheHelper:
    """Same-day file cache for fetched source pages, keyed by URL."""
    DEFAULT_CACHE_DIR = "~/.salah_reminder/cache"

    def __init__(self, cache_dir: Optional[str] = None, namespace: str = ""):
        """Initialize cache helper with specific cache directory
        Args:
            cache_dir: Base cache directory from config, if None uses DEFAULT_CACHE_DIR
            namespace: Source specific subdirectory
        """
        base_dir = os.path.expanduser(cache_dir or self.DEFAULT_CACHE_DIR)
        self.cache_dir = os.path.join(base_dir, namespace) if namespace else base_dir
        os.makedirs(self.cache_dir, exist_ok=True)

    def _get_cache_file(self, key: str) -> str:
        key_hash = hashlib.md5(key.encode()).hexdigest()
        return os.path.join(self.cache_dir, f"{key_hash}.json")

    def get_cached_content(self, key: str, today: Optional[date] = None) -> Optional[str]:
        """Get cached content if it exists and was saved today"""
        today = today or datetime.now().date()
        try:
            cache_file = self._get_cache_file(key)
            if not os.path.exists(cache_file):
                return None

            with open(cache_file, 'r', encoding='utf-8') as f:
                cached = json.load(f)

            cache_date = datetime.strptime(cached['date'], '%Y-%m-%d').date()
            if cache_date == today:
                return cached['content']

            return None

        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Error reading cache for {key}: {e}")
            return None

    def save_to_cache(self, key: str, content: str, today: Optional[date] = None) -> None:
        """Save content to cache stamped with today's date"""
        today = today or datetime.now().date()
        try:
            cache_data = {
                'date': today.strftime('%Y-%m-%d'),
                'content': content
            }

            with open(self._get_cache_file(key), 'w', encoding='utf-8') as f:
                json.dump(cache_data, f)

        except OSError as e:
            logger.error(f"Error saving to cache for {key}: {e}")

    def invalidate(self, key: str) -> None:
        """Drop a cached page, e.g. one that could not be parsed"""
        cache_file = self._get_cache_file(key)
        try:
            if os.path.exists(cache_file):
                os.remove(cache_file)
                logger.debug(f"Removed cached page for {key}")
        except OSError as e:
            logger.error(f"Error removing cache for {key}: {e}")
