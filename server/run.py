"""
Body Type Assessment Server
===========================

Main entry point for the Flask server.

Usage:
    python run.py

Or with gunicorn:
    gunicorn -w 4 -b 0.0.0.0:5000 run:app
"""

import os
import sys
from typing import Optional

# Add server source to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask
from loguru import logger

from bodytype.api import register_routes
from bodytype.pipeline import AssessmentSessions
from config import get_server_config

# Configuration
SERVER_CONFIG = get_server_config()


def configure_logging(level: str) -> None:
    """Send log records to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level)


def create_app(sessions: Optional[AssessmentSessions] = None) -> Flask:
    """
    Create the Flask app.

    Args:
        sessions: Session registry; built from the environment when omitted

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    app.json.sort_keys = False

    if sessions is None:
        sessions = AssessmentSessions.from_environment()
    app.extensions["assessment_sessions"] = sessions

    register_routes(app, sessions)
    return app


configure_logging(SERVER_CONFIG.log_level)
app = create_app()


def main():
    """Main entry point."""
    print(f"""
╔══════════════════════════════════════════════════════╗
║          Body Type Assessment Server                 ║
╠══════════════════════════════════════════════════════╣
║  Server running at: http://{SERVER_CONFIG.host}:{SERVER_CONFIG.port:<5}              ║
║  Debug mode: {str(SERVER_CONFIG.debug):<5}                               ║
║                                                      ║
║  Endpoints:                                          ║
║    POST /sessions                 - Start session    ║
║    GET  /sessions/<id>            - Session state    ║
║    POST /sessions/<id>/config     - Credentials      ║
║    PUT  /sessions/<id>/questionnaire/answers         ║
║    POST /sessions/<id>/questionnaire/advance         ║
║    POST /sessions/<id>/questionnaire/retreat         ║
║    POST /sessions/<id>/assessment - Analyze photo    ║
║    GET  /health                   - Health check     ║
╚══════════════════════════════════════════════════════╝
    """)
    app.run(host=SERVER_CONFIG.host, port=SERVER_CONFIG.port,
            debug=SERVER_CONFIG.debug, threaded=SERVER_CONFIG.threaded)


if __name__ == "__main__":
    main()
