"""
Domain errors and their HTTP mapping.

Services raise these; the handlers registered by `register_error_handlers`
turn them into the standard `{"success": false, "error": ...}` envelope.
"""
from flask import current_app, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException


class PayHubError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationFailed(PayHubError):
    status_code = 400
    message = "Validation error"


class Unauthenticated(PayHubError):
    status_code = 401
    message = "Access denied. No token provided."


class InvalidCredentials(Unauthenticated):
    message = "Invalid credentials"


class InvalidToken(Unauthenticated):
    message = "Invalid token"


class TokenExpired(Unauthenticated):
    message = "Token expired"


class Forbidden(PayHubError):
    status_code = 403
    message = "Access denied"


class NotFound(PayHubError):
    status_code = 404
    message = "Resource not found"


class DuplicateResource(PayHubError):
    status_code = 400
    message = "Resource already exists"


class InvalidState(PayHubError):
    status_code = 400
    message = "Invalid state transition"


class ServiceUnavailable(PayHubError):
    status_code = 503
    message = "Service temporarily unavailable"


def first_error_message(messages):
    """Return the first human readable message from a marshmallow error structure."""
    if isinstance(messages, str):
        return messages
    if isinstance(messages, dict):
        for value in messages.values():
            found = first_error_message(value)
            if found:
                return found
    if isinstance(messages, (list, tuple)):
        for value in messages:
            found = first_error_message(value)
            if found:
                return found
    return None


def error_response(message, status_code):
    return jsonify({"success": False, "error": message}), status_code


def register_error_handlers(app):
    @app.errorhandler(PayHubError)
    def handle_domain_error(err):
        if err.status_code >= 500:
            current_app.logger.error("Request failed: %s", err.message)
        return error_response(err.message, err.status_code)

    @app.errorhandler(ValidationError)
    def handle_validation_error(err):
        return error_response(first_error_message(err.messages) or "Validation error", 400)

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        if err.code == 413:
            return error_response("File too large", 413)
        if err.code == 404:
            return error_response("Route not found", 404)
        return error_response(err.description or err.name, err.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err):
        current_app.logger.exception("Unhandled error: %s", err)
        return error_response("Server error", 500)
