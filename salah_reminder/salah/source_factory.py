from typing import Any, Dict, List, Optional
import logging

from .errors import UnsupportedLocation
from .source_base import SalahSource
from .sources.kelowna import KelownaSource
from .sources.muscat import MuscatSource

logger = logging.getLogger(__name__)

# Location identifier ("<city>, <country>") -> source class
SOURCE_TYPES = {
    'Kelowna, Canada': KelownaSource,
    'Muscat, Oman': MuscatSource,
}


def supported_locations() -> List[str]:
    return list(SOURCE_TYPES)


def is_supported(location_id: Optional[str]) -> bool:
    return location_id in SOURCE_TYPES


def create_source(location_id: str, config: Optional[Dict[str, Any]] = None) -> SalahSource:
    """Create the source bound to a location
    Raises:
        UnsupportedLocation: no source is registered for location_id
    """
    source_class = SOURCE_TYPES.get(location_id)
    if source_class is None:
        logger.error(f"Unknown location: {location_id}")
        raise UnsupportedLocation(location_id)
    return source_class(config or {})
