"""Error taxonomy for location resolution, generation and routing.

Every error carries a ``kind`` (which branch of the taxonomy it belongs to)
and a ``message`` that is safe to show to the user as-is.
"""

from __future__ import annotations

from enum import Enum


class PlannerError(Exception):
    """Base class for all errors surfaced by the planner."""

    default_message = "Something went wrong."

    def __init__(self, kind: Enum | None = None, message: str | None = None):
        self.kind = kind
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "kind": self.kind.value if self.kind is not None else None,
        }


class LocationErrorKind(str, Enum):
    NO_GEOMETRY = "NoGeometry"
    PERMISSION_DENIED = "PermissionDenied"
    POSITION_UNAVAILABLE = "PositionUnavailable"
    TIMEOUT = "Timeout"
    UNKNOWN = "Unknown"


LOCATION_ERROR_MESSAGES = {
    LocationErrorKind.NO_GEOMETRY: "The selected place has no location. Please pick another place.",
    LocationErrorKind.PERMISSION_DENIED: "You denied the request for Geolocation.",
    LocationErrorKind.POSITION_UNAVAILABLE: "Location information is unavailable.",
    LocationErrorKind.TIMEOUT: "The request to get user location timed out.",
    LocationErrorKind.UNKNOWN: "An unknown error occurred while getting location.",
}


class LocationError(PlannerError):
    """A start location could not be determined. The current location is kept."""

    def __init__(self, kind: LocationErrorKind, message: str | None = None):
        super().__init__(kind, message or LOCATION_ERROR_MESSAGES[kind])


class ValidationErrorKind(str, Enum):
    NO_START_LOCATION = "NoStartLocation"
    INVALID_CONSTRAINTS = "InvalidConstraints"


class ValidationError(PlannerError):
    """User input rejected before a run starts."""

    default_message = "Please select a starting location first."


class GenerationErrorKind(str, Enum):
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    MALFORMED_RESPONSE = "MalformedResponse"
    SCHEMA_VIOLATION = "SchemaViolation"


class GenerationError(PlannerError):
    """Itinerary generation failed. Fatal to the run.

    ``detail`` keeps the technical reason for logs; ``message`` is the
    single generic text shown to the user regardless of kind.
    """

    default_message = (
        "Failed to generate itinerary. The AI model might have returned an "
        "invalid format. Please try again."
    )

    def __init__(self, kind: GenerationErrorKind, detail: str = ""):
        super().__init__(kind)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}" if self.detail else self.kind.value


class RoutingError(PlannerError):
    """Directions could not be computed. The itinerary stays valid."""

    default_message = "Failed to calculate directions."

    def __init__(self, status: str = "UNKNOWN_ERROR", detail: str = ""):
        super().__init__(None)
        self.status = status
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.status}: {self.detail}" if self.detail else self.status


class PipelineBusyError(PlannerError):
    """A run was requested while another one is still active."""

    default_message = "An itinerary is already being generated."


__all__ = [
    "PlannerError",
    "LocationError",
    "LocationErrorKind",
    "LOCATION_ERROR_MESSAGES",
    "ValidationError",
    "ValidationErrorKind",
    "GenerationError",
    "GenerationErrorKind",
    "RoutingError",
    "PipelineBusyError",
]
