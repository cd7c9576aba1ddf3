"""Health check endpoints."""
from flask import Blueprint, current_app

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Basic health check endpoint."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness check endpoint, reporting whether a TTLock token is held."""
    service = current_app.config.get("ACCESS_SERVICE")
    state = "authenticated" if service is not None and service.session.is_authenticated() else "unauthenticated"
    return (f"ready; session={state}", 200, {"Content-Type": "text/plain"})
