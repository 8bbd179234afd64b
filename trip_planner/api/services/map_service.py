# trip_planner/api/services/map_service.py
"""Session context shared by the resolver, the route computer and the pipeline."""

import logging
import threading
from typing import Any, Dict, Iterable, Optional

import googlemaps

from trip_planner.api.config import get_google_maps_config, get_planner_defaults
from trip_planner.api.models import Coordinates, Location, Route, TravelConstraints

logger = logging.getLogger(__name__)


def create_maps_client() -> googlemaps.Client:
    """Build a googlemaps.Client from GOOGLE_MAPS_API_KEY."""
    api_key = get_google_maps_config().get("api_key", "")
    if not api_key:
        raise ValueError("GOOGLE_MAPS_API_KEY not set")
    logger.info(f"Initializing Google Maps client with key: {api_key[:10]}...")
    return googlemaps.Client(key=api_key)


class MapSession:
    """Holds the map-side handles and slots for one planner session.

    * ``maps_client`` serves both geocoding and directions.
    * ``current_location`` is a single last-write-wins slot; there is no history.
    * ``constraints`` is the editable travel-constraints slot.
    * ``rendered_route`` is what the map currently draws.

    Created once at startup and passed explicitly to the components that need it.
    """

    def __init__(self, maps_client: Any, constraints: Optional[TravelConstraints] = None):
        self.maps_client = maps_client
        self.current_location: Optional[Location] = None
        self.constraints = constraints or TravelConstraints.from_dict(get_planner_defaults())
        self.rendered_route: Optional[Route] = None
        self._selection_id = 0
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls) -> "MapSession":
        return cls(create_maps_client())

    # ------------------------------------------------------------------
    # Location slot
    # ------------------------------------------------------------------

    def begin_selection(self) -> int:
        """Reserve an id for a location selection that is about to be resolved."""
        with self._lock:
            self._selection_id += 1
            return self._selection_id

    def cancel_selection(self, selection_id: int) -> None:
        """Release an id whose selection failed, unless a newer one has started.

        The previous selection becomes the latest again, so a lookup still in
        flight for it can land.
        """
        with self._lock:
            if selection_id == self._selection_id:
                self._selection_id -= 1

    def update_location(self, location: Location, selection_id: Optional[int] = None) -> bool:
        """Replace the current location.

        When ``selection_id`` is given the write only lands if no newer
        selection has started since; returns whether the slot was updated.
        """
        with self._lock:
            if selection_id is not None and selection_id != self._selection_id:
                logger.info(
                    "Discarding stale location %s (selection %d, latest %d)",
                    location.address, selection_id, self._selection_id,
                )
                return False
            self.current_location = location
        logger.info(f"Current location set to '{location.address}'")
        return True

    # ------------------------------------------------------------------
    # Route slot
    # ------------------------------------------------------------------

    def render_route(self, route: Route) -> None:
        self.rendered_route = route

    def clear_route(self) -> None:
        self.rendered_route = None

    # ------------------------------------------------------------------
    # Geometry helpers
    # ------------------------------------------------------------------

    @staticmethod
    def validate_coordinates(lat: float, lng: float) -> bool:
        """Validate that coordinates are within valid ranges."""
        return -90 <= lat <= 90 and -180 <= lng <= 180

    @staticmethod
    def calculate_bounds(points: Iterable[Coordinates]) -> Dict[str, float]:
        """Calculate the bounding box the map should fit to show all points.

        Returns:
            Dictionary with north, south, east, west bounds, or {} for no points
        """
        lats = []
        lngs = []
        for point in points:
            lats.append(point.latitude)
            lngs.append(point.longitude)

        if not lats:
            return {}

        return {
            'north': max(lats),
            'south': min(lats),
            'east': max(lngs),
            'west': min(lngs)
        }


__all__ = ['MapSession', 'create_maps_client']
