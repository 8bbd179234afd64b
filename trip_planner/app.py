# trip_planner/app.py
"""Flask + Socket.IO application factory."""

import logging
import os

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from trip_planner.api.config import get_websocket_config
from trip_planner.routes import create_travel_blueprint, register_websocket_handlers, NAMESPACE

logger = logging.getLogger(__name__)


def _build_default_pipeline():
    from trip_planner.api.services.map_service import MapSession
    from trip_planner.api.services.planning_service import PlanningPipeline

    return PlanningPipeline(MapSession.from_config())


def create_app(pipeline=None):
    """Create the Flask app and its Socket.IO server.

    Args:
        pipeline: PlanningPipeline to serve; built from the environment if omitted

    Returns:
        (app, socketio)
    """
    app = Flask(__name__)

    flask_secret_key = os.getenv("FLASK_SECRET_KEY") or os.urandom(32).hex()
    if "FLASK_SECRET_KEY" not in os.environ:
        logger.warning("No FLASK_SECRET_KEY found. Generated a temporary key.")
    app.secret_key = flask_secret_key

    # CORS for local dev / cross‑origin front‑end requests
    CORS(app, origins="*", supports_credentials=True)

    ws_config = get_websocket_config()
    socketio = SocketIO(
        app,
        cors_allowed_origins=ws_config["cors_allowed_origins"],
        async_mode="threading",
        ping_interval=ws_config["ping_interval"],
        ping_timeout=ws_config["ping_timeout"],
        logger=False,
        engineio_logger=False,
    )
    logger.info("Socket.IO initialised (async_mode=threading)")

    if pipeline is None:
        pipeline = _build_default_pipeline()
    app.extensions["planning_pipeline"] = pipeline

    app.register_blueprint(create_travel_blueprint(pipeline))
    register_websocket_handlers(socketio, pipeline)

    @app.route("/debug")
    def debug():
        """Simple JSON health endpoint."""
        return {
            "status": "ok",
            "socketio_initialized": True,
            "endpoints": {
                "planner": "/travel/",
                "websocket_namespace": NAMESPACE,
            },
        }

    return app, socketio


__all__ = ["create_app"]
