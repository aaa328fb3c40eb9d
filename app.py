"""
Mobile Care Waiver Portal - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration and sets up logging
2. Connects the record store (fail-fast on bad configuration)
3. Creates the workflow registry (one workflow per open waiver form)
4. Registers route blueprints
5. Sets up error handlers and context processors

ARCHITECTURE:
    Main Thread
    ├── Record store client (shared, insert only)
    ├── Flask request handling (workflows via the registry)
    └── Cleanup on shutdown (tear down open workflows)

    Timer Threads (one per presented waiver)
    └── Fire the redirect back to the landing page
"""

from __future__ import annotations

import atexit
import logging
import os
from functools import partial
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, flash, redirect, url_for

from logging_config import setup_logging, get_logger
from core.exceptions import ConfigurationError, UnknownWaiverKindError
from core.record_store import RecordStore, create_record_store
from modules.document_renderer import DocumentRenderer
from modules.locations import PortalContext
from modules.waiver_kinds import WAIVER_KINDS
from services.waiver_workflow import TimerScheduler, WaiverWorkflow
from services.workflow_registry import WorkflowRegistry
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _build_workflow(kind, *, context, store, renderer, scheduler, config) -> WaiverWorkflow:
    return WaiverWorkflow(
        kind,
        context,
        store,
        renderer=renderer,
        scheduler=scheduler,
        redirect_delay=config["REDIRECT_DELAY_SECONDS"],
        landing_url=config["LANDING_URL"],
        terms_tolerance=config["TERMS_SCROLL_TOLERANCE_PX"],
        unscrollable_terms_count_as_read=config["TERMS_UNSCROLLABLE_COUNTS_AS_READ"],
        signature_width=config["SIGNATURE_WIDTH_PX"],
        signature_height=config["SIGNATURE_HEIGHT_PX"],
    )


def create_app(
    config_object: str = "config.Config",
    record_store: Optional[RecordStore] = None,
    scheduler: Optional[TimerScheduler] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    FAIL-FAST: If the record store is misconfigured, the app will not start.

    Args:
        config_object: Import path of the config class
        record_store: Pre-built record store (tests inject one)
        scheduler: Redirect timer scheduler (tests inject a manual one)

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: Unknown backend or missing Supabase credentials
    """
    # Use override=True so .env file always takes precedence over shell environment
    env_file = Path(__file__).parent / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging,
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting waiver portal in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # CORE INITIALIZATION (FAIL-FAST)
    # =========================================================================

    if record_store is None:
        try:
            record_store = create_record_store(app.config)
        except ConfigurationError as e:
            logger.error(f"FATAL: Cannot start application - {e}")
            raise

    app.config["RECORD_STORE"] = record_store

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    context = PortalContext.from_config(app.config)
    app.config["PORTAL_CONTEXT"] = context

    registry = WorkflowRegistry(
        partial(
            _build_workflow,
            context=context,
            store=record_store,
            renderer=DocumentRenderer(context),
            scheduler=scheduler or TimerScheduler(),
            config=app.config,
        ),
        idle_timeout=app.config["WORKFLOW_IDLE_TIMEOUT_SECONDS"] or None,
    )
    app.config["WORKFLOW_REGISTRY"] = registry
    logger.info("Workflow registry initialized")

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        registry.shutdown()
        logger.info("Shutdown complete")

    # Test runs build many apps and shut each registry down themselves
    if not app.config.get("TESTING"):
        atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # CONTEXT PROCESSORS
    # =========================================================================

    @app.context_processor
    def inject_portal():
        """Inject organisation name and waiver kinds into all templates."""
        return {
            "organization_name": context.organization_name,
            "waiver_kinds": list(WAIVER_KINDS.values()),
        }

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(UnknownWaiverKindError)
    def handle_unknown_kind(e):
        flash("That waiver form does not exist.", "warning")
        return redirect(url_for("main.index"))

    @app.errorhandler(404)
    def handle_not_found(e):
        flash("Page not found.", "warning")
        return redirect(url_for("main.index"))

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        flash("An unexpected error occurred. Please try again.", "error")
        return redirect(url_for("main.index"))

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
