"""
Address geocoding over HTTP.

Schools are stored with coordinates so they can be searched by
distance.  The ``Geocoder`` client talks to a Nominatim-compatible
search endpoint (``GET <base>/search?q=...&format=json``) with the
``requests`` library.  ``get_geocoder`` builds one from the settings
or returns ``None`` when geocoding is switched off
(``GEOCODER_PROVIDER=none``).
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

import requests

from .config import settings
from .exceptions import GeocodingError


logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3963.0


@dataclass
class GeoLocation:
    """A resolved address.

    Attributes:
        latitude: Decimal degrees.
        longitude: Decimal degrees.
        formatted_address: Provider's display name for the address.
    """

    latitude: float
    longitude: float
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None

    def as_fields(self) -> Dict[str, Any]:
        return asdict(self)


# School columns filled from a ``GeoLocation``.
LOCATION_FIELDS = tuple(f.name for f in fields(GeoLocation))


class Geocoder:
    """Client for a Nominatim-style geocoding service."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        user_agent: str = "school-directory-api",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def geocode(self, address: str) -> GeoLocation:
        """Resolve ``address`` to its first match.

        Raises ``GeocodingError`` if the service is unreachable, answers
        with an error status, finds nothing or sends a reply without
        usable coordinates.
        """
        params: Dict[str, Any] = {
            "q": address,
            "format": "json",
            "addressdetails": 1,
            "limit": 1,
        }
        if self.api_key:
            params["key"] = self.api_key
        try:
            resp = self.session.get(f"{self.base_url}/search", params=params, timeout=self.timeout)
            resp.raise_for_status()
            results = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Geocoding request for %r failed: %s", address, exc)
            raise GeocodingError(f"Could not geocode address {address!r}") from exc
        if not isinstance(results, list) or not results:
            raise GeocodingError(f"No location found for {address!r}")
        try:
            return self._parse(results[0])
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Unexpected geocoding reply for %r: %s", address, exc)
            raise GeocodingError(f"Could not geocode address {address!r}") from exc

    @staticmethod
    def _parse(item: Dict[str, Any]) -> GeoLocation:
        details = item.get("address") or {}
        street = " ".join(p for p in (details.get("house_number"), details.get("road")) if p) or None
        country = details.get("country_code")
        return GeoLocation(
            latitude=float(item["lat"]),
            longitude=float(item["lon"]),
            formatted_address=item.get("display_name"),
            street=street,
            city=details.get("city") or details.get("town") or details.get("village"),
            state=details.get("state"),
            zipcode=details.get("postcode"),
            country=country.upper() if country else None,
        )


def get_geocoder() -> Optional[Geocoder]:
    if settings.geocoder_provider.lower() in {"", "none", "off"}:
        return None
    return Geocoder(
        settings.geocoder_url,
        api_key=settings.geocoder_api_key or None,
        timeout=settings.geocoder_timeout,
        user_agent=settings.geocoder_user_agent,
    )


def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(a))
