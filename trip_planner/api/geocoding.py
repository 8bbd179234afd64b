# trip_planner/api/geocoding.py
"""Turn map clicks, place selections, search text and device positions into Locations."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from trip_planner.api.errors import LocationError, LocationErrorKind
from trip_planner.api.models import Location

logger = logging.getLogger(__name__)

DEFAULT_PLACE_ADDRESS = "Selected location"
UNSUPPORTED_GEOLOCATION_MESSAGE = "Geolocation is not supported by your browser."

# W3C GeolocationPositionError codes, plus the names the browser reports.
_DEVICE_ERROR_CODES = {
    1: LocationErrorKind.PERMISSION_DENIED,
    2: LocationErrorKind.POSITION_UNAVAILABLE,
    3: LocationErrorKind.TIMEOUT,
    "PERMISSION_DENIED": LocationErrorKind.PERMISSION_DENIED,
    "POSITION_UNAVAILABLE": LocationErrorKind.POSITION_UNAVAILABLE,
    "TIMEOUT": LocationErrorKind.TIMEOUT,
}


def fallback_address(lat: float, lng: float) -> str:
    """Human-readable address used when reverse geocoding is unavailable."""
    return f"Lat: {lat:.4f}, Lng: {lng:.4f}"


class LocationResolver:
    """Resolves user input into a canonical ``Location``.

    The resolver never touches the current-location slot itself; callers apply
    the returned Location.
    """

    def __init__(self, maps_client: Any):
        self.maps_client = maps_client

    async def resolve_from_coordinates(self, lat: float, lng: float) -> Location:
        """Reverse geocode a coordinate pair.

        Any failure (service error or no candidates) falls back to a
        coordinate string, so this never raises for geocoding problems.
        """
        try:
            results = await asyncio.to_thread(self.maps_client.reverse_geocode, (lat, lng))
        except Exception as e:
            logger.warning(f"Geocoder failed due to: {e}")
            return Location(lat, lng, fallback_address(lat, lng))

        address = results[0].get("formatted_address") if results else None
        if not address:
            logger.warning(f"No address found for coordinates {lat}, {lng}")
            return Location(lat, lng, fallback_address(lat, lng))

        logger.debug(f"Reverse geocoded {lat}, {lng} to '{address}'")
        return Location(lat, lng, address)

    def resolve_from_place_selection(self, place: Dict[str, Any]) -> Location:
        """Build a Location from an autocomplete place selection.

        Raises:
            LocationError: NO_GEOMETRY when the place carries no usable coordinates
        """
        if not isinstance(place, dict):
            raise LocationError(LocationErrorKind.NO_GEOMETRY)
        geometry = place.get("geometry")
        loc = geometry.get("location") if isinstance(geometry, dict) else None
        if not isinstance(loc, dict):
            raise LocationError(LocationErrorKind.NO_GEOMETRY)

        try:
            lat = float(loc["lat"])
            lng = float(loc["lng"])
        except (KeyError, TypeError, ValueError):
            raise LocationError(LocationErrorKind.NO_GEOMETRY) from None

        address = place.get("formatted_address") or DEFAULT_PLACE_ADDRESS
        return Location(lat, lng, str(address))

    async def resolve_from_query(self, query: str) -> Location:
        """Forward geocode free text; the first candidate wins."""
        query = query.strip() if isinstance(query, str) else ""
        if not query:
            raise LocationError(LocationErrorKind.NO_GEOMETRY)

        try:
            results = await asyncio.to_thread(self.maps_client.geocode, query, language="en")
        except Exception as e:
            logger.error(f"Geocoding error for '{query}': {e}")
            raise LocationError(LocationErrorKind.NO_GEOMETRY) from e

        if not results:
            logger.warning(f"No results found for place: {query}")
            raise LocationError(LocationErrorKind.NO_GEOMETRY)

        place = dict(results[0]) if isinstance(results[0], dict) else {}
        place.setdefault("formatted_address", query)
        return self.resolve_from_place_selection(place)

    @staticmethod
    def parse_device_position(position: Any) -> Tuple[float, float]:
        """Validate a browser geolocation report and return its coordinates.

        ``position`` is either ``{"latitude": .., "longitude": ..}`` or
        ``{"error": <code>}``; ``None`` means the browser has no geolocation.
        """
        if position is None:
            raise LocationError(LocationErrorKind.UNKNOWN, UNSUPPORTED_GEOLOCATION_MESSAGE)
        if not isinstance(position, dict):
            raise LocationError(LocationErrorKind.POSITION_UNAVAILABLE)

        if "error" in position:
            code = position["error"]
            if isinstance(code, str):
                code = code.upper()
            try:
                kind = _DEVICE_ERROR_CODES.get(code, LocationErrorKind.UNKNOWN)
            except TypeError:
                kind = LocationErrorKind.UNKNOWN
            logger.info(f"Device geolocation failed: {code!r}")
            raise LocationError(kind)

        try:
            return float(position["latitude"]), float(position["longitude"])
        except (KeyError, TypeError, ValueError):
            raise LocationError(LocationErrorKind.POSITION_UNAVAILABLE) from None

    async def resolve_device_position(self, position: Optional[Dict[str, Any]]) -> Location:
        """Resolve a browser geolocation report into a reverse geocoded Location."""
        lat, lng = self.parse_device_position(position)
        return await self.resolve_from_coordinates(lat, lng)


__all__ = [
    "LocationResolver",
    "fallback_address",
    "UNSUPPORTED_GEOLOCATION_MESSAGE",
]
