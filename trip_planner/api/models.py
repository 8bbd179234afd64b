"""Shared data structures for itinerary planning.

Locations, constraints and itineraries are frozen dataclasses: a new
selection or a new run replaces them wholesale instead of mutating them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from trip_planner.api.errors import ValidationError, ValidationErrorKind


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class Location:
    """A resolved start location."""

    latitude: float
    longitude: float
    address: str

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)

    def to_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
        }


class TravelMode(str, Enum):
    DRIVING = "DRIVING"
    WALKING = "WALKING"
    BICYCLING = "BICYCLING"
    TRANSIT = "TRANSIT"


@dataclass(frozen=True)
class TravelConstraints:
    """Travel mode, search radius and maximum trip length."""

    mode: TravelMode = TravelMode.DRIVING
    radius_miles: float = 10
    duration_hours: float = 4

    MIN_RADIUS = 1
    MAX_RADIUS = 100
    MIN_DURATION = 1
    MAX_DURATION = 24

    def __post_init__(self):
        if not self.MIN_RADIUS <= self.radius_miles <= self.MAX_RADIUS:
            raise ValidationError(
                ValidationErrorKind.INVALID_CONSTRAINTS,
                f"Radius must be between {self.MIN_RADIUS} and {self.MAX_RADIUS} miles.",
            )
        if not self.MIN_DURATION <= self.duration_hours <= self.MAX_DURATION:
            raise ValidationError(
                ValidationErrorKind.INVALID_CONSTRAINTS,
                f"Duration must be between {self.MIN_DURATION} and {self.MAX_DURATION} hours.",
            )

    @classmethod
    def from_dict(cls, data: dict, base: Optional["TravelConstraints"] = None) -> "TravelConstraints":
        """Build constraints from request data, keeping ``base`` values for missing keys."""
        base = base or cls()
        raw_mode = data.get("mode", base.mode.value)
        try:
            mode = TravelMode(str(raw_mode).upper())
        except ValueError:
            raise ValidationError(
                ValidationErrorKind.INVALID_CONSTRAINTS,
                f"Unknown travel mode: {raw_mode}",
            ) from None

        try:
            radius = float(data.get("radius_miles", base.radius_miles))
            duration = float(data.get("duration_hours", base.duration_hours))
        except (TypeError, ValueError):
            raise ValidationError(
                ValidationErrorKind.INVALID_CONSTRAINTS,
                "Radius and duration must be numbers.",
            ) from None

        return cls(mode=mode, radius_miles=radius, duration_hours=duration)

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "radius_miles": self.radius_miles,
            "duration_hours": self.duration_hours,
        }


@dataclass(frozen=True)
class ItineraryStop:
    """A single stop on a trip itinerary."""

    place_name: str
    description: str
    coordinates: Coordinates

    def to_dict(self) -> dict:
        return {
            "place_name": self.place_name,
            "description": self.description,
            "coordinates": self.coordinates.to_dict(),
        }


@dataclass(frozen=True)
class Itinerary:
    summary: str
    stops: Tuple[ItineraryStop, ...] = ()

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "itinerary": [stop.to_dict() for stop in self.stops],
        }


@dataclass(frozen=True)
class GroundingSource:
    """A web page the generation service cited for its answer."""

    uri: str
    title: str

    def to_dict(self) -> dict:
        return {"uri": self.uri, "title": self.title}


@dataclass(frozen=True)
class Route:
    """Directions from the origin through the stops, as returned by the routing service.

    ``waypoints`` are the intermediate stops in the order the service chose;
    ``destination`` is always the last stop of the itinerary.
    """

    origin: Coordinates
    destination: Coordinates
    waypoints: Tuple[Coordinates, ...]
    waypoint_order: Tuple[int, ...]
    travel_mode: TravelMode
    distance_meters: int = 0
    duration_seconds: int = 0
    overview_polyline: str = ""
    summary: str = ""
    bounds: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "origin": self.origin.to_dict(),
            "destination": self.destination.to_dict(),
            "waypoints": [wp.to_dict() for wp in self.waypoints],
            "waypoint_order": list(self.waypoint_order),
            "travel_mode": self.travel_mode.value,
            "distance_meters": self.distance_meters,
            "duration_seconds": self.duration_seconds,
            "overview_polyline": self.overview_polyline,
            "summary": self.summary,
            "bounds": self.bounds,
        }


@dataclass(frozen=True)
class GenerationResult:
    itinerary: Itinerary
    sources: Tuple[GroundingSource, ...] = ()


class PipelinePhase(str, Enum):
    IDLE = "Idle"
    RESOLVING = "Resolving"
    GENERATING = "Generating"
    VALIDATING = "Validating"
    ROUTING = "Routing"
    SETTLED = "Settled"


ACTIVE_PHASES = frozenset({
    PipelinePhase.RESOLVING,
    PipelinePhase.GENERATING,
    PipelinePhase.VALIDATING,
    PipelinePhase.ROUTING,
})


class OutcomeKind(str, Enum):
    SUCCESS = "Success"
    PARTIAL_SUCCESS = "PartialSuccess"
    GENERATION_FAILURE = "GenerationFailure"
    SUPERSEDED = "Superseded"


@dataclass(frozen=True)
class RunOutcome:
    kind: OutcomeKind
    itinerary: Optional[Itinerary] = None
    sources: Tuple[GroundingSource, ...] = ()
    route: Optional[Route] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class PipelineRun:
    """Snapshot taken when a run starts."""

    run_id: int
    origin: Location
    constraints: TravelConstraints


@dataclass
class PlanningState:
    """Everything the front end renders: phase, results and the last error."""

    phase: PipelinePhase = PipelinePhase.IDLE
    run_id: int = 0
    origin: Optional[Location] = None
    constraints: Optional[TravelConstraints] = None
    itinerary: Optional[Itinerary] = None
    sources: List[GroundingSource] = field(default_factory=list)
    route: Optional[Route] = None
    error: Optional[str] = None
    outcome: Optional[OutcomeKind] = None

    @property
    def is_running(self) -> bool:
        return self.phase in ACTIVE_PHASES

    def clear_results(self) -> None:
        self.itinerary = None
        self.sources = []
        self.route = None

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "is_running": self.is_running,
            "run_id": self.run_id,
            "origin": self.origin.to_dict() if self.origin else None,
            "constraints": self.constraints.to_dict() if self.constraints else None,
            "itinerary": self.itinerary.to_dict() if self.itinerary else None,
            "sources": [s.to_dict() for s in self.sources],
            "route": self.route.to_dict() if self.route else None,
            "error": self.error,
            "outcome": self.outcome.value if self.outcome else None,
        }
