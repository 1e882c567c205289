"""Health check endpoints."""
from flask import Blueprint, current_app

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Basic health check endpoint."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Ready once a Management API token has been obtained (or none is managed here)."""
    ctx = current_app.extensions.get("auth0_admin")
    provider = getattr(ctx, "token_provider", None)
    if provider is not None and getattr(provider, "refreshed_at", True) is None:
        return ("token unavailable", 503, {"Content-Type": "text/plain"})
    return ("ready", 200, {"Content-Type": "text/plain"})
