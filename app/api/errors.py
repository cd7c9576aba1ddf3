"""Error handlers for the application.

TTLock failures keep their kind in the ``error`` field; remote failures
also carry the numeric TTLock ``code``.
"""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from app.api.tools import UnknownToolError
from app.core.ttlock.exceptions import (
    AuthenticationError,
    NotAuthenticatedError,
    RemoteServiceError,
    TransportError,
)


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(ValueError)
    def invalid_arguments(error):
        """Handle tool argument validation errors."""
        return jsonify({"error": "InvalidArguments", "message": str(error)}), 400

    @app.errorhandler(UnknownToolError)
    def unknown_tool(error):
        return jsonify({"error": "UnknownTool", "message": str(error)}), 404

    @app.errorhandler(NotAuthenticatedError)
    def not_authenticated(error):
        return jsonify({"error": "NotAuthenticated", "message": str(error)}), 401

    @app.errorhandler(AuthenticationError)
    def authentication_failed(error):
        app.logger.warning(f"TTLock authentication failed: {error}")
        return jsonify({"error": "AuthenticationFailed", "message": str(error)}), 401

    @app.errorhandler(RemoteServiceError)
    def remote_service_error(error):
        """Handle errcode responses from TTLock (code kept for diagnosis)."""
        return jsonify({
            "error": "RemoteServiceError",
            "code": error.code,
            "message": error.message,
        }), 502

    @app.errorhandler(TransportError)
    def transport_error(error):
        app.logger.error(f"TTLock transport error: {error}")
        return jsonify({
            "error": "TransportError",
            "status": error.status_code,
            "message": error.message,
        }), 502

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({"error": error.name, "message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # ALWAYS log the full error - logs are secure
        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500
