"""
AI Travel Planner – main application entry point

* Flask app + Socket.IO; pipeline state transitions are pushed on the
  `/travel/ws` namespace.
* HTTP API lives under `/travel/api/`.
* Needs OPENAI_API_KEY and GOOGLE_MAPS_API_KEY in the environment (or `.env`).
"""

import logging

from dotenv import load_dotenv

# --------------------------------------------------------------------------- #
# Environment & logging
# --------------------------------------------------------------------------- #
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Quiet noisy third-party loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("openai").setLevel(logging.WARNING)

from trip_planner.api.config import get_port, validate_config  # noqa: E402
from trip_planner.app import create_app  # noqa: E402

validate_config()
app, socketio = create_app()

# --------------------------------------------------------------------------- #
# Local development runner ( `python main.py` )
# --------------------------------------------------------------------------- #
if __name__ == "__main__":
    port = get_port()
    logger.info("Starting travel planner on http://localhost:%d/travel/", port)
    socketio.run(app, host="0.0.0.0", port=port, debug=False, allow_unsafe_werkzeug=True)

__all__ = ["app", "socketio"]
