# trip_planner/api/services/route_service.py
"""Directions through the stops of a validated itinerary."""

import asyncio
import logging
from typing import Any, Dict, List, Sequence, Tuple

from googlemaps.exceptions import ApiError

from trip_planner.api.errors import RoutingError
from trip_planner.api.models import (
    Coordinates,
    ItineraryStop,
    Location,
    Route,
    TravelMode,
)

logger = logging.getLogger(__name__)


def _latlng(coords: Coordinates) -> Tuple[float, float]:
    return coords.as_tuple()


class RouteComputer:
    """Builds a directions request from itinerary stops and runs it.

    The last stop is always the destination; the stops before it are
    intermediate waypoints that the routing service may reorder.
    """

    def __init__(self, maps_client: Any):
        self.maps_client = maps_client

    @staticmethod
    def build_request(
        origin: Location, stops: Sequence[ItineraryStop], mode: TravelMode
    ) -> Dict[str, Any]:
        """Map stops to a Directions API request in input order."""
        if not stops:
            raise ValueError("Cannot route an itinerary without stops")

        points = [stop.coordinates for stop in stops]
        return {
            "origin": _latlng(origin.coordinates),
            "destination": _latlng(points[-1]),
            "waypoints": [_latlng(p) for p in points[:-1]],
            "mode": mode.value.lower(),
            "optimize_waypoints": True,
        }

    async def compute_route(
        self, origin: Location, stops: Sequence[ItineraryStop], mode: TravelMode
    ) -> Route:
        """Request directions and convert the first route returned.

        Raises:
            ValueError: if ``stops`` is empty
            RoutingError: on service errors, when no route comes back, or
                when the returned route cannot be read
        """
        request = self.build_request(origin, stops, mode)
        logger.info(
            "Requesting %s directions through %d stops", request["mode"], len(stops)
        )

        try:
            result = await asyncio.to_thread(self.maps_client.directions, **request)
        except ApiError as e:
            logger.error(f"Directions request failed with status {e.status}: {e.message}")
            raise RoutingError(e.status, e.message or "") from e
        except Exception as e:
            logger.error(f"Directions request failed: {e}")
            raise RoutingError("REQUEST_FAILED", str(e)) from e

        if not result:
            logger.warning("Directions API returned no routes")
            raise RoutingError("ZERO_RESULTS")

        try:
            return self._to_route(result[0], origin, stops, mode)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Unreadable directions response: {e}")
            raise RoutingError("INVALID_RESPONSE", str(e)) from e

    @staticmethod
    def _served_waypoints(
        intermediates: List[Coordinates], order: Sequence[int]
    ) -> Tuple[List[Coordinates], List[int]]:
        # Only accept the service's order if it is a permutation of the intermediates.
        is_permutation = (
            isinstance(order, (list, tuple))
            and all(isinstance(i, int) and not isinstance(i, bool) for i in order)
            and sorted(order) == list(range(len(intermediates)))
        )
        if not is_permutation:
            if order:
                logger.warning(f"Ignoring invalid waypoint_order {order!r}")
            order = list(range(len(intermediates)))
        return [intermediates[i] for i in order], list(order)

    def _to_route(
        self,
        raw: Dict[str, Any],
        origin: Location,
        stops: Sequence[ItineraryStop],
        mode: TravelMode,
    ) -> Route:
        points = [stop.coordinates for stop in stops]
        waypoints, order = self._served_waypoints(points[:-1], raw.get("waypoint_order") or [])

        legs = raw.get("legs") or []
        distance = sum((leg.get("distance") or {}).get("value", 0) for leg in legs)
        duration = sum((leg.get("duration") or {}).get("value", 0) for leg in legs)

        return Route(
            origin=origin.coordinates,
            destination=points[-1],
            waypoints=tuple(waypoints),
            waypoint_order=tuple(order),
            travel_mode=mode,
            distance_meters=distance,
            duration_seconds=duration,
            overview_polyline=(raw.get("overview_polyline") or {}).get("points", ""),
            summary=raw.get("summary", ""),
            bounds=raw.get("bounds") or {},
        )


__all__ = ['RouteComputer']
