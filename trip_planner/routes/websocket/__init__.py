# trip_planner/routes/websocket/__init__.py
"""WebSocket route handlers initialization."""

import logging

from .connection import ConnectionHandler
from .planning import PlanningHandler
from .base import NAMESPACE

logger = logging.getLogger(__name__)


def register_websocket_handlers(socketio, pipeline):
    """Register all WebSocket event handlers with SocketIO.

    Args:
        socketio: Flask-SocketIO instance
        pipeline: PlanningPipeline whose transitions are pushed to clients
    """
    logger.info("Registering WebSocket handlers...")

    connection_handler = ConnectionHandler(socketio, pipeline, NAMESPACE)
    planning_handler = PlanningHandler(socketio, pipeline, NAMESPACE)

    logger.info(f"Registering connection handler for namespace: {NAMESPACE}")
    connection_handler.register_handlers()

    logger.info(f"Registering planning handler for namespace: {NAMESPACE}")
    planning_handler.register_handlers()

    logger.info("WebSocket handlers registered successfully")


__all__ = ['register_websocket_handlers', 'NAMESPACE']
