"""Prompt construction for itinerary generation."""

from __future__ import annotations

from trip_planner.api.models import Location, TravelConstraints


def _format_number(value: float) -> str:
    # 10.0 -> "10", 2.5 -> "2.5"
    return f"{value:g}"


def build_prompt(origin: Location, constraints: TravelConstraints) -> str:
    """Render the generation prompt for one origin and set of constraints.

    Pure: the same inputs always give the same text.
    """
    radius = _format_number(constraints.radius_miles)
    duration = _format_number(constraints.duration_hours)
    return (
        f'Create a travel itinerary starting from "{origin.address}" '
        f"(coordinates: lat {origin.latitude}, lng {origin.longitude}). "
        f"The user wants to travel by {constraints.mode.value}, "
        f"staying within a {radius}-mile radius, "
        f"for a total trip duration of no more than {duration} hours. "
        "Suggest a few points of interest and a logical route. "
        "Respond ONLY with a single JSON object in a markdown code block. "
        'The JSON object should have a "summary" key with a short trip description, '
        'and an "itinerary" key which is an array of objects. '
        'Each object in the array should represent a stop and have "place_name", '
        '"description", and "coordinates" (with "latitude" and "longitude") keys.'
    )


__all__ = ["build_prompt"]
