# trip_planner/routes/websocket/planning.py
"""Push planning pipeline transitions to the browser."""

import logging

from .base import BaseWebSocketHandler, NAMESPACE

logger = logging.getLogger(__name__)


class PlanningHandler(BaseWebSocketHandler):
    """Broadcasts ``planning_state`` whenever the pipeline moves."""

    def register_handlers(self):
        """Subscribe to the pipeline and register state requests."""
        self.pipeline.add_listener(self._on_transition)

        @self.socketio.on('get_state', namespace=NAMESPACE)
        def handle_get_state():
            """Explicit state refresh, e.g. after a reconnect."""
            self.emit_to_client('planning_state', self.pipeline.snapshot())

    def _on_transition(self, snapshot):
        logger.debug(f"[WS] planning_state phase={snapshot['phase']} run={snapshot['run_id']}")
        self.broadcast('planning_state', snapshot)
