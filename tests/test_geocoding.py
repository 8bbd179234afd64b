"""
Tests for turning user input into start locations.
"""

import asyncio

import pytest

from trip_planner.api.errors import LocationError, LocationErrorKind
from trip_planner.api.geocoding import (
    UNSUPPORTED_GEOLOCATION_MESSAGE,
    LocationResolver,
    fallback_address,
)
from trip_planner.api.models import Location

from conftest import FakeMapsClient


def _resolver(**kwargs):
    return LocationResolver(FakeMapsClient(**kwargs))


class TestResolveFromCoordinates:
    """Reverse geocoding never fails the caller."""

    def test_uses_first_formatted_address(self):
        resolver = _resolver(reverse_results=[
            {"formatted_address": "200 N Spring St, Los Angeles, CA 90012, USA"},
            {"formatted_address": "Downtown, Los Angeles, CA, USA"},
        ])

        location = asyncio.run(resolver.resolve_from_coordinates(34.0537, -118.2427))

        assert location == Location(34.0537, -118.2427, "200 N Spring St, Los Angeles, CA 90012, USA")
        assert resolver.maps_client.calls_to("reverse_geocode") == [(34.0537, -118.2427)]

    def test_service_failure_falls_back_to_coordinates(self):
        resolver = _resolver(reverse_error=RuntimeError("OVER_QUERY_LIMIT"))

        location = asyncio.run(resolver.resolve_from_coordinates(34.1, -118.3))

        assert location.address == "Lat: 34.1000, Lng: -118.3000"
        assert (location.latitude, location.longitude) == (34.1, -118.3)

    def test_empty_results_fall_back_to_coordinates(self):
        resolver = _resolver(reverse_results=[])

        location = asyncio.run(resolver.resolve_from_coordinates(-33.8688, 151.2093))

        assert location.address == "Lat: -33.8688, Lng: 151.2093"

    def test_fallback_format(self):
        assert fallback_address(1, 2) == "Lat: 1.0000, Lng: 2.0000"


class TestResolveFromPlaceSelection:
    """Autocomplete selections carry their own geometry."""

    def test_place_with_geometry(self):
        place = {
            "geometry": {"location": {"lat": 34.0522, "lng": -118.2437}},
            "formatted_address": "Los Angeles, CA, USA",
        }

        location = _resolver().resolve_from_place_selection(place)

        assert location == Location(34.0522, -118.2437, "Los Angeles, CA, USA")

    def test_missing_address_uses_default_label(self):
        place = {"geometry": {"location": {"lat": 1.5, "lng": 2.5}}}
        assert _resolver().resolve_from_place_selection(place).address == "Selected location"

    @pytest.mark.parametrize(
        "place",
        [
            {"name": "Typed text only"},
            {"geometry": {}},
            {"geometry": {"location": {"lat": 34.0}}},
            {"geometry": {"location": {"lat": "abc", "lng": 1}}},
            {"geometry": {"location": [34.0, -118.2]}},
            {"geometry": "here"},
            "Paris",
            {},
            None,
        ],
    )
    def test_place_without_geometry(self, place):
        with pytest.raises(LocationError) as exc_info:
            _resolver().resolve_from_place_selection(place)
        assert exc_info.value.kind == LocationErrorKind.NO_GEOMETRY


class TestResolveFromQuery:
    """Free-text search takes the first candidate."""

    def test_first_candidate_wins(self):
        resolver = _resolver(geocode_results=[
            {"geometry": {"location": {"lat": 48.8584, "lng": 2.2945}},
             "formatted_address": "Av. Gustave Eiffel, 75007 Paris, France"},
            {"geometry": {"location": {"lat": 36.1127, "lng": -115.1744}},
             "formatted_address": "Las Vegas, NV, USA"},
        ])

        location = asyncio.run(resolver.resolve_from_query("Eiffel Tower"))

        assert location == Location(48.8584, 2.2945, "Av. Gustave Eiffel, 75007 Paris, France")

    def test_no_candidates(self):
        with pytest.raises(LocationError) as exc_info:
            asyncio.run(_resolver(geocode_results=[]).resolve_from_query("zzzz"))
        assert exc_info.value.kind == LocationErrorKind.NO_GEOMETRY

    def test_service_error(self):
        resolver = _resolver(geocode_error=RuntimeError("REQUEST_DENIED"))
        with pytest.raises(LocationError):
            asyncio.run(resolver.resolve_from_query("Paris"))

    def test_blank_query_skips_service(self):
        resolver = _resolver()
        with pytest.raises(LocationError):
            asyncio.run(resolver.resolve_from_query("   "))
        assert resolver.maps_client.calls == []

    def test_non_string_query(self):
        resolver = _resolver()
        with pytest.raises(LocationError) as exc_info:
            asyncio.run(resolver.resolve_from_query(42))
        assert exc_info.value.kind == LocationErrorKind.NO_GEOMETRY
        assert resolver.maps_client.calls == []


class TestResolveDevicePosition:
    """Browser geolocation results and errors."""

    def test_coordinates_are_reverse_geocoded(self):
        resolver = _resolver(reverse_results=[{"formatted_address": "Santa Monica Pier"}])

        location = asyncio.run(resolver.resolve_device_position({"latitude": 34.0092, "longitude": -118.4976}))

        assert location == Location(34.0092, -118.4976, "Santa Monica Pier")

    @pytest.mark.parametrize(
        "code,kind,message",
        [
            ("PERMISSION_DENIED", LocationErrorKind.PERMISSION_DENIED, "You denied the request for Geolocation."),
            (1, LocationErrorKind.PERMISSION_DENIED, "You denied the request for Geolocation."),
            ("POSITION_UNAVAILABLE", LocationErrorKind.POSITION_UNAVAILABLE, "Location information is unavailable."),
            (2, LocationErrorKind.POSITION_UNAVAILABLE, "Location information is unavailable."),
            ("timeout", LocationErrorKind.TIMEOUT, "The request to get user location timed out."),
            (3, LocationErrorKind.TIMEOUT, "The request to get user location timed out."),
            ("SOMETHING_ELSE", LocationErrorKind.UNKNOWN, "An unknown error occurred while getting location."),
        ],
    )
    def test_error_codes(self, code, kind, message):
        resolver = _resolver()

        with pytest.raises(LocationError) as exc_info:
            asyncio.run(resolver.resolve_device_position({"error": code}))

        assert exc_info.value.kind == kind
        assert exc_info.value.message == message
        assert resolver.maps_client.calls == []

    def test_unsupported_browser(self):
        with pytest.raises(LocationError) as exc_info:
            asyncio.run(_resolver().resolve_device_position(None))
        assert exc_info.value.message == UNSUPPORTED_GEOLOCATION_MESSAGE

    @pytest.mark.parametrize(
        "position",
        [5, "34.0,-118.2", [34.0, -118.2], {"latitude": "north", "longitude": 1}, {"latitude": 34.0}],
    )
    def test_unreadable_position(self, position):
        resolver = _resolver()

        with pytest.raises(LocationError) as exc_info:
            asyncio.run(resolver.resolve_device_position(position))

        assert exc_info.value.kind == LocationErrorKind.POSITION_UNAVAILABLE
        assert resolver.maps_client.calls == []

    def test_unhashable_error_code(self):
        with pytest.raises(LocationError) as exc_info:
            asyncio.run(_resolver().resolve_device_position({"error": [1]}))
        assert exc_info.value.kind == LocationErrorKind.UNKNOWN

