"""One-shot location lookup used to enrich backend prompts."""
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from .config import GEOLOCATION_URL, GEOLOCATION_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


@dataclass
class Location:
    lat: float
    lng: float

    def as_tuple(self):
        return self.lat, self.lng


def lookup_location(url: str = GEOLOCATION_URL, timeout: float = GEOLOCATION_TIMEOUT_SECONDS) -> Optional[Location]:
    """Resolve an approximate location. Returns None on any failure."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        body = response.json()
        lat = body.get("lat", body.get("latitude"))
        lng = body.get("lon", body.get("lng", body.get("longitude")))
        if lat is None or lng is None:
            logger.debug(f"Location service returned no coordinates: {body}")
            return None
        return Location(lat=float(lat), lng=float(lng))
    except (requests.RequestException, ValueError, TypeError, AttributeError) as e:
        logger.debug(f"Location lookup failed: {e}")
        return None
