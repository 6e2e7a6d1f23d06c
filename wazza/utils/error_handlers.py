# wazza/utils/error_handlers.py
"""
Centralized Flask error handlers.
Keeps routes.py files clean and guarantees consistent JSON responses.
"""
from flask import Flask, jsonify, request, Response
from werkzeug.exceptions import HTTPException

from wazza.utils.logging import get_logger
from wazza.utils.exceptions import WazzaError

log = get_logger(__name__)

def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(WazzaError)
    def handle_wazza_error(error: WazzaError) -> tuple[Response, int]:
        if error.status_code >= 500:
            log.exception("%s: %s", type(error).__name__, error)
        else:
            log.warning("%s: %s | payload=%s", type(error).__name__, error, error.payload)
        response = {"error": error.message, "details": error.payload}
        return jsonify(response), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> tuple[Response, int]:
        log.info("HTTP %s on %s %s", error.code, request.method, request.path)
        return jsonify(error=error.description or error.name, details={}), error.code or 500

    @app.errorhandler(Exception)
    def internal_error(error: Exception) -> tuple[Response, int]:
        log.exception("Unhandled exception: %s", error)
        return jsonify(error="An unexpected error occurred", details={}), 500

    log.info("Error handlers registered")
