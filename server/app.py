# -------------------- Import --------------------
import logging
from datetime import datetime, timezone

from flask import Flask, jsonify

from . import config
from .db import init_db
from .errors import LedgerError
from .extensions import cors, socketio
from .logger_setup import setup_logging
from .routes.attendance import attendance_bp
from .routes.students import students_bp

logger = logging.getLogger(__name__)


def create_app(db_uri=None):
    """Build the Flask app. `db_uri` overrides config.DB_URI (tests use a temp file)."""
    app = Flask(__name__, static_folder=None)
    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.config["DB_URI"] = db_uri or config.DB_URI
    app.config["MAX_CONTENT_LENGTH"] = config.JSON_BODY_LIMIT_MB * 1024 * 1024

    cors.init_app(app)
    socketio.init_app(app)

    init_db(app.config["DB_URI"])

    app.register_blueprint(students_bp, url_prefix="/api/students")
    app.register_blueprint(attendance_bp, url_prefix="/api/attendance")

    # -------------------- Errors --------------------
    @app.errorhandler(LedgerError)
    def handle_ledger_error(e):
        if e.status_code >= 500:
            logger.error("[api] %s", e.message)
        return jsonify({"error": e.message}), e.status_code

    # -------------------- API: Health  --------------------
    @app.get("/api/health")
    def api_health():
        """
        Simple health-check endpoint so clients can detect the API base.
        """
        return jsonify({"ok": True, "status": "alive",
                        "ts": datetime.now(timezone.utc).isoformat()}), 200

    return app


def main():
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)
    app = create_app()
    logger.info("Server running on http://%s:%s", config.HOST, config.PORT)
    socketio.run(app, host=config.HOST, port=config.PORT, allow_unsafe_werkzeug=True)


if __name__ == "__main__":
    main()
