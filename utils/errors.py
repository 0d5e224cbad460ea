import logging
import traceback

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base for errors that map onto an HTTP status and a JSON error body."""

    kind = "UPSTREAM"
    status_code = 500
    default_message = "Server Error"

    def __init__(self, message=None, status_code=None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(ApiError):
    kind = "VALIDATION"
    status_code = 400
    default_message = "Invalid request"


class AuthError(ApiError):
    kind = "AUTH"
    status_code = 401
    default_message = "Not authorized, no token"


class ForbiddenError(ApiError):
    kind = "FORBIDDEN"
    status_code = 403
    default_message = "Not authorized to perform this action"


class NotFoundError(ApiError):
    kind = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    # Duplicates surface as 400 on this API, same as other bad requests.
    kind = "CONFLICT"
    status_code = 400
    default_message = "Resource already exists"


class UpstreamError(ApiError):
    kind = "UPSTREAM"
    status_code = 500


def error_response(message, status_code, stack=None):
    body = {"success": False, "error": message}
    if stack:
        body["stack"] = stack
    return jsonify(body), status_code


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            logger.error("%s error: %s", error.kind, error.message)
        stack = traceback.format_exc() if app.debug else None
        return error_response(error.message, error.status_code, stack)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        if error.code == 404:
            return error_response(f"Not Found - {request.path}", 404)
        return error_response(error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unhandled error: %s", error)
        stack = traceback.format_exc() if app.debug else None
        return error_response("Server Error", 500, stack)
