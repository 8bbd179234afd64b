# trip_planner/routes/travel.py
"""Travel routes and blueprint configuration."""

import asyncio
import logging

from flask import Blueprint, jsonify, request

from trip_planner.api.config import get_google_maps_config
from trip_planner.api.errors import (
    LocationError,
    PipelineBusyError,
    PlannerError,
    ValidationError,
)
from trip_planner.api.models import TravelConstraints

logger = logging.getLogger(__name__)


def _status_for(error):
    if isinstance(error, (LocationError, ValidationError)):
        return 400
    if isinstance(error, PipelineBusyError):
        return 409
    return 500


def create_travel_blueprint(pipeline):
    """Create and configure the travel blueprint.

    Args:
        pipeline: PlanningPipeline shared by every request

    Returns:
        Configured Flask Blueprint
    """
    travel_bp = Blueprint("travel", __name__, url_prefix="/travel")

    @travel_bp.errorhandler(PlannerError)
    def handle_planner_error(error):
        logger.info(f"Request rejected: {error.message}")
        return jsonify(error.to_dict()), _status_for(error)

    @travel_bp.route("/")
    def index():
        """API overview."""
        return jsonify({
            "name": "AI Travel Planner",
            "endpoints": {
                "config": "/travel/api/config",
                "location": "/travel/api/location",
                "constraints": "/travel/api/constraints",
                "itinerary": "/travel/api/itinerary",
            },
        })

    @travel_bp.route("/api/config")
    def api_config():
        """Return Google Maps configuration for frontend."""
        config = get_google_maps_config()

        if config.get("api_key"):
            return jsonify({
                "auth_type": "api_key",
                "google_maps_api_key": config["api_key"],
            })
        else:
            return jsonify({
                "error": "No Google Maps API key configured"
            }), 500

    @travel_bp.route("/api/location", methods=["GET", "POST"])
    def api_location():
        """Read or set the start location.

        POST accepts exactly one of:
        * ``{"latitude": .., "longitude": ..}`` (map click)
        * ``{"place": {"geometry": {"location": {...}}, "formatted_address": ..}}``
        * ``{"query": "..."}``
        * ``{"device": {"latitude": .., "longitude": ..} | {"error": code} | null}``
        """
        if request.method == "GET":
            location = pipeline.session.current_location
            return jsonify({"location": location.to_dict() if location else None})

        data = request.get_json(silent=True) or {}
        if "device" in data:
            location = asyncio.run(pipeline.report_device_position(data["device"]))
        elif "place" in data:
            location = pipeline.select_place(data["place"])
        elif "query" in data:
            location = asyncio.run(pipeline.search_place(data["query"]))
        elif "latitude" in data and "longitude" in data:
            try:
                lat = float(data["latitude"])
                lng = float(data["longitude"])
            except (TypeError, ValueError):
                return jsonify({"error": "Latitude and longitude must be numbers"}), 400
            if not pipeline.session.validate_coordinates(lat, lng):
                return jsonify({"error": "Coordinates out of range"}), 400
            location = asyncio.run(pipeline.select_coordinates(lat, lng))
        else:
            return jsonify({"error": "No location given"}), 400

        return jsonify({"location": location.to_dict()})

    @travel_bp.route("/api/constraints", methods=["GET", "PUT"])
    def api_constraints():
        """Read or replace the travel constraints."""
        if request.method == "PUT":
            data = request.get_json(silent=True) or {}
            constraints = pipeline.update_constraints(data)
        else:
            constraints = pipeline.session.constraints
        return jsonify(constraints.to_dict())

    @travel_bp.route("/api/itinerary", methods=["GET", "POST"])
    def api_itinerary():
        """Generate a new itinerary or return the current planning state."""
        if request.method == "POST":
            data = request.get_json(silent=True) or {}
            constraints = None
            if data:
                if pipeline.state.is_running:
                    raise PipelineBusyError()
                constraints = TravelConstraints.from_dict(data, base=pipeline.session.constraints)

            outcome = asyncio.run(pipeline.run(constraints))
            logger.info(f"Itinerary request finished with {outcome.kind.value}")

        return jsonify(pipeline.snapshot())

    @travel_bp.route("/health")
    def health():
        """Health check endpoint."""
        return jsonify({"status": "ok", "service": "travel"})

    return travel_bp


__all__ = ['create_travel_blueprint']
