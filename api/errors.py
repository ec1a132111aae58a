from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
import logging

from services.errors import ErrorKind, SessionError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.INTERNAL: 500,
}


def error_response(error: str, message: str, status: int, details: dict | None = None, reason: str | None = None):
    payload = {"error": error, "message": message, "status": status}
    if reason:
        payload["reason"] = reason
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Lifecycle outcomes are dispatched by kind
    @app.errorhandler(SessionError)
    def handle_session_error(err: SessionError):
        status = STATUS_BY_KIND[err.kind]
        if err.kind is ErrorKind.INTERNAL:
            # The collaborator's message stays in the log, not in the body
            logger.error("Dependency failure: %s", err.message, exc_info=err.__cause__)
            return error_response(err.kind.value, "An unexpected error occurred", status)
        reason = err.reason.value if err.reason else None
        return error_response(err.kind.value, err.message, status, reason=reason)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", 404)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.name.upper().replace(" ", "_"), err.description, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        details = None
        logger.exception("Unhandled exception", exc_info=err)
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response(ErrorKind.INTERNAL.value, "An unexpected error occurred", 500, details=details)
