# api/config.py
"""Configuration management for the travel planner API."""
import os
from dotenv import load_dotenv

load_dotenv()


def get_openai_api_key():
    """Get OpenAI API key from environment."""
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ValueError("OPENAI_API_KEY not set")
    return api_key


def get_openai_model_name():
    """Model used for itinerary generation."""
    return os.getenv("OPENAI_PLANNER_MODEL", "gpt-4.1")


def get_google_maps_config():
    """Get Google Maps configuration."""
    return {
        "api_key": os.getenv("GOOGLE_MAPS_API_KEY", ""),
    }


def get_port():
    """Get port configuration."""
    return int(os.getenv("PORT", 5000))


def get_planner_defaults():
    """Default travel constraints shown before the user touches the controls."""
    return {
        "mode": os.getenv("PLANNER_DEFAULT_MODE", "DRIVING"),
        "radius_miles": float(os.getenv("PLANNER_DEFAULT_RADIUS_MILES", "10")),
        "duration_hours": float(os.getenv("PLANNER_DEFAULT_DURATION_HOURS", "4")),
    }


def get_websocket_config():
    """Get WebSocket configuration."""
    return {
        "ping_interval": int(os.getenv("WEBSOCKET_PING_INTERVAL", "25")),
        "ping_timeout": int(os.getenv("WEBSOCKET_PING_TIMEOUT", "60")),
        "cors_allowed_origins": os.getenv("WEBSOCKET_CORS_ORIGINS", "*").split(",")
    }


def validate_config():
    """Validate that the credentials the planner needs are present."""
    get_openai_api_key()

    if not get_google_maps_config()["api_key"]:
        raise ValueError("GOOGLE_MAPS_API_KEY not set")

    defaults = get_planner_defaults()
    valid_modes = ["DRIVING", "WALKING", "BICYCLING", "TRANSIT"]
    if defaults["mode"] not in valid_modes:
        raise ValueError(f"Invalid default mode. Must be one of: {', '.join(valid_modes)}")

    return True
