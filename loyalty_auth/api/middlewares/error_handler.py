# loyalty_auth/api/middlewares/error_handler.py
import logging

from flask import Flask, current_app, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from loyalty_auth.core.exceptions import AppError, ConfigurationError, TooManyRequestsError

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int):
    return jsonify({"success": False, "error": message}), status_code


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if isinstance(err, ConfigurationError):
            logger.error("Request rejected: %s", err)

        body, status = error_response(str(err), err.status_code)
        if isinstance(err, TooManyRequestsError):
            body.headers["X-RateLimit-Remaining"] = str(err.remaining)
        return body, status

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("Invalid request body", 400)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.description, err.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        logger.exception("Unhandled error")

        if current_app.debug:
            return error_response(str(err), 500)

        return error_response("Internal server error", 500)
