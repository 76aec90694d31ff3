# -*- coding: utf-8 -*-
"""Flask application exposing the North Node calculation."""

import logging
import traceback
from types import SimpleNamespace
from typing import Optional

from flask import Flask, jsonify, request

from node_config import cfg
from models import EphemerisFailure, InputValidationError
from node_engine import NorthNodeEngine, get_engine_info

logger = logging.getLogger(__name__)


def create_app(config: Optional[SimpleNamespace] = None) -> Flask:
    """Build the Flask app; configuration is read once here and never mutated"""
    settings = config or cfg()

    app = Flask(__name__)
    app.config["NORTH_NODE_SETTINGS"] = settings
    engine = NorthNodeEngine(settings)
    allowed_origins = tuple(settings.cors.allowed_origins)

    @app.after_request
    def add_cors_headers(resp):
        origin = request.headers.get("Origin")
        if origin and ("*" in allowed_origins or origin in allowed_origins):
            resp.headers["Access-Control-Allow-Origin"] = "*" if "*" in allowed_origins else origin
            resp.headers["Access-Control-Allow-Methods"] = "GET, OPTIONS"
            resp.headers["Vary"] = "Origin"
        return resp

    @app.errorhandler(InputValidationError)
    def handle_input_error(e):
        logger.info(f"Rejected request {request.full_path}: {e}")
        return jsonify({"error": str(e), "error_type": type(e).__name__}), 400

    @app.errorhandler(EphemerisFailure)
    def handle_ephemeris_failure(e):
        logger.error(f"Ephemeris failure for {request.full_path}: {e}")
        return jsonify({"error": str(e), "error_type": "EphemerisFailure"}), 500

    @app.route("/north-node", methods=["GET"])
    def north_node():
        try:
            return jsonify(engine.calculate(request.args))
        except (InputValidationError, EphemerisFailure):
            raise
        except Exception as e:
            logger.error(f"Error in north_node: {e}")
            logger.error(traceback.format_exc())
            return jsonify({"error": f"Calculation error: {e}"}), 500

    @app.route("/test-timezone", methods=["GET"])
    def test_timezone():
        return jsonify(engine.timezone_survey(request.args))

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", **get_engine_info()})

    return app


app = create_app()


def main() -> None:
    settings = cfg()
    logger.info(f"North Node API running on http://localhost:{settings.server.port}")
    logger.info(f"Example: http://localhost:{settings.server.port}/north-node"
                f"?year=1971&month=4&day=18&hour=5.25&lat=41.7759301&lon=-72.5215008")
    app.run(host=settings.server.host, port=int(settings.server.port))


if __name__ == "__main__":
    main()
