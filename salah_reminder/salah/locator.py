"""Location detection using IP geolocation."""
import logging
from typing import Optional

import requests

IPAPI_URL = "https://ipapi.co/json/"

logger = logging.getLogger(__name__)


def get_current_location_id(timeout: int = 5) -> Optional[str]:
    """
    Detect the current location via IP geolocation.

    Returns "<city>, <country name>" (the form used as location identifier),
    or None when the lookup fails.
    """
    try:
        resp = requests.get(IPAPI_URL, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Could not detect location: {e}")
        return None
    city = data.get("city")
    country = data.get("country_name")
    if not city or not country:
        logger.warning(f"Incomplete location response: {data}")
        return None
    return f"{city}, {country}"


def get_city_name(location_id: str) -> str:
    return location_id.split(", ")[0]
