"""
Main routes (landing page, health).

The landing page lists the waiver forms; every finished waiver redirects
back here.
"""

from flask import Blueprint, current_app, render_template

from modules.waiver_kinds import WAIVER_KINDS

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """Landing page with one card per waiver kind."""
    return render_template("index.html", kinds=list(WAIVER_KINDS.values()))


@main_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {},
    }

    store = current_app.config.get("RECORD_STORE")
    if store is not None:
        health_status["checks"]["record_store"] = current_app.config.get("RECORD_STORE_BACKEND")
    else:
        health_status["checks"]["record_store"] = "not_configured"
        health_status["status"] = "degraded"

    registry = current_app.config.get("WORKFLOW_REGISTRY")
    if registry is not None:
        health_status["checks"]["open_workflows"] = len(registry)
    else:
        health_status["checks"]["open_workflows"] = "not_running"
        health_status["status"] = "degraded"

    return health_status
