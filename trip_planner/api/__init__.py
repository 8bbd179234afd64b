"""Location resolution, itinerary generation and routing."""
