"""AI travel planner: itinerary generation and route planning."""

__version__ = "0.1.0"
