"""
Shared fakes for the Google Maps and OpenAI clients.

The fakes record every call so tests can check what was sent, and can be
configured to fail the way the real services do.
"""

import json
from types import SimpleNamespace

import pytest

from trip_planner.api.llm import ItineraryClient
from trip_planner.api.models import Location, TravelConstraints, TravelMode
from trip_planner.api.services.map_service import MapSession
from trip_planner.api.services.planning_service import PlanningPipeline


ORIGIN = Location(34.0522, -118.2437, "123 Main St")


def make_stop(name, lat, lng, description=None):
    return {
        "place_name": name,
        "description": description or f"Visit {name}.",
        "coordinates": {"latitude": lat, "longitude": lng},
    }


def make_itinerary_payload(stops=None, summary="A sunny afternoon around downtown LA."):
    if stops is None:
        stops = [
            make_stop("Grand Central Market", 34.0508, -118.2489),
            make_stop("The Broad", 34.0544, -118.2501),
            make_stop("Griffith Observatory", 34.1184, -118.3004),
        ]
    return {"summary": summary, "itinerary": stops}


def fenced(payload, tag="json"):
    return f"```{tag}\n{json.dumps(payload)}\n```"


def make_response(text, citations=()):
    """Build a Responses API result the way the SDK shapes it."""
    annotations = [
        {"type": "url_citation", "url": url, "title": title, "start_index": 0, "end_index": 1}
        for url, title in citations
    ]
    return {
        "output_text": text,
        "output": [
            {"type": "web_search_call", "status": "completed"},
            {
                "type": "message",
                "role": "assistant",
                "content": [{"type": "output_text", "text": text, "annotations": annotations}],
            },
        ],
    }


class FakeMapsClient:
    """Stands in for googlemaps.Client."""

    def __init__(
        self,
        reverse_results=None,
        reverse_error=None,
        geocode_results=None,
        geocode_error=None,
        directions_result=None,
        directions_error=None,
    ):
        self.reverse_results = reverse_results if reverse_results is not None else []
        self.reverse_error = reverse_error
        self.geocode_results = geocode_results if geocode_results is not None else []
        self.geocode_error = geocode_error
        self.directions_result = directions_result
        self.directions_error = directions_error
        self.calls = []

    def reverse_geocode(self, latlng):
        self.calls.append(("reverse_geocode", latlng))
        if self.reverse_error:
            raise self.reverse_error
        return self.reverse_results

    def geocode(self, address, language=None):
        self.calls.append(("geocode", address))
        if self.geocode_error:
            raise self.geocode_error
        return self.geocode_results

    def directions(self, origin, destination, waypoints=None, mode=None, optimize_waypoints=False):
        self.calls.append((
            "directions",
            {
                "origin": origin,
                "destination": destination,
                "waypoints": waypoints,
                "mode": mode,
                "optimize_waypoints": optimize_waypoints,
            },
        ))
        if self.directions_error:
            raise self.directions_error
        if self.directions_result is None:
            return [make_directions_route()]
        return self.directions_result

    def calls_to(self, name):
        return [args for call, args in self.calls if call == name]


def make_directions_route(waypoint_order=None, legs=2):
    return {
        "summary": "US-101 N",
        "waypoint_order": waypoint_order or [],
        "overview_polyline": {"points": "a~l~Fjk~uOwHJy@P"},
        "bounds": {
            "northeast": {"lat": 34.12, "lng": -118.24},
            "southwest": {"lat": 34.05, "lng": -118.30},
        },
        "legs": [
            {"distance": {"value": 1500}, "duration": {"value": 300}}
            for _ in range(legs)
        ],
    }


class FakeOpenAI:
    """Stands in for openai.OpenAI; only ``responses.create`` is used."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []
        self.responses = SimpleNamespace(create=self._create)

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        return self.response


def make_itinerary_client(response=None, error=None):
    return ItineraryClient(client=FakeOpenAI(response, error), model="test-model")


def make_pipeline(maps_client=None, openai_response=None, openai_error=None, itinerary_client=None):
    maps_client = maps_client or FakeMapsClient()
    session = MapSession(maps_client, constraints=TravelConstraints(TravelMode.DRIVING, 10, 4))
    client = itinerary_client or make_itinerary_client(openai_response, openai_error)
    return PlanningPipeline(session, itinerary_client=client)


@pytest.fixture
def maps_client():
    return FakeMapsClient()


@pytest.fixture
def origin():
    return ORIGIN
