"""
Flask route blueprints for the waiver portal.

This module contains all route handlers organized by functionality:
- main: Landing page and health check
- waivers: Waiver forms, submission, confirmation and PDF download
- api: AJAX endpoints (terms gate, signature pad, status polling, teardown)

Each blueprint is registered with the Flask app in create_app().
"""

from .main import main_bp
from .waivers import waivers_bp
from .api import api_bp

__all__ = [
    "main_bp",
    "waivers_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(waivers_bp)
    app.register_blueprint(api_bp)
