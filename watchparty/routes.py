# ============================================
#   Watch Party — HTTP Diagnostics
#   Liveness, counters, registry dump, reset (no auth)
# ============================================

import time

from flask import Response, g, jsonify, request

import watchparty.state as state
from watchparty.config import CORS_ALLOWED_ORIGINS, CORS_ALLOWED_METHODS
from watchparty.logger import get_logger

logger = get_logger(__name__)


def _text(value) -> Response:
    return Response(str(value), mimetype="text/plain")


def register_http_routes(app):

    # -----------------------------------------
    # Access log + CORS headers
    # -----------------------------------------
    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _finish_request(response):
        response.headers["Access-Control-Allow-Origin"] = CORS_ALLOWED_ORIGINS
        response.headers["Access-Control-Allow-Methods"] = CORS_ALLOWED_METHODS
        response.headers["Access-Control-Allow-Credentials"] = "true"

        started = g.get("request_started")
        elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        logger.info(
            f"{request.remote_addr} {request.method} {request.full_path.rstrip('?')} "
            f"{response.status_code} {response.content_length or '-'} - {elapsed_ms:.3f} ms",
        )
        return response

    # -----------------------------------------
    # HEALTH CHECK
    # -----------------------------------------
    @app.route("/")
    def health():
        if request.args:
            logger.info(f"Health check query: {request.args.to_dict()}")
        return _text("OK")

    # -----------------------------------------
    # COUNTERS
    # -----------------------------------------
    @app.route("/number-of-sessions")
    def number_of_sessions():
        return _text(state.coordinator.session_count())

    @app.route("/number-of-users")
    def number_of_users():
        return _text(state.coordinator.user_count())

    # -----------------------------------------
    # REGISTRY DUMP
    # -----------------------------------------
    @app.route("/session-details")
    def session_details():
        return jsonify(state.coordinator.dump_sessions())

    # -----------------------------------------
    # DESTRUCTIVE RESET
    # -----------------------------------------
    @app.route("/reset")
    def reset():
        state.coordinator.reset()
        return Response(status=200)
