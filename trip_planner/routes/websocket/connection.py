# trip_planner/routes/websocket/connection.py
"""WebSocket connection and disconnection handlers."""

import time
import logging

from .base import BaseWebSocketHandler, NAMESPACE

logger = logging.getLogger(__name__)


class ConnectionHandler(BaseWebSocketHandler):
    """Handles WebSocket connection lifecycle events."""

    def register_handlers(self):
        """Register connection-related event handlers."""

        @self.socketio.on('connect', namespace=NAMESPACE)
        def handle_connect(auth=None):
            """Send the current planning state to a newly connected browser."""
            self.log_event('connect')
            self.emit_to_client('planning_state', self.pipeline.snapshot())

        @self.socketio.on('disconnect', namespace=NAMESPACE)
        def handle_disconnect(*args):
            """Handle WebSocket disconnection."""
            self.log_event('disconnect')

        @self.socketio.on('ping', namespace=NAMESPACE)
        def handle_ping():
            """Handle ping for connection testing."""
            self.emit_to_client('pong', {'timestamp': time.time()})
