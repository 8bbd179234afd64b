# trip_planner/routes/__init__.py
from trip_planner.routes.travel import create_travel_blueprint
from trip_planner.routes.websocket import NAMESPACE, register_websocket_handlers

__all__ = ["create_travel_blueprint", "register_websocket_handlers", "NAMESPACE"]
