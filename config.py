"""
Configuration for the Mobile Care waiver portal.

Values come from the environment (a .env file is loaded first). The record
store backend is chosen here; a Supabase backend without credentials makes
the app fail fast at startup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env before the Config class reads the environment
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    SESSION_COOKIE_NAME = "waiver_portal_session"
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # Organisation shown on documents and used in generated file names
    ORGANIZATION_NAME = os.environ.get("ORGANIZATION_NAME", "Mobile Care")

    # "Today" for a new waiver is the calendar date in this timezone, so a
    # late-evening submission never lands on tomorrow's date.
    PORTAL_TIMEZONE = os.environ.get("PORTAL_TIMEZONE", "America/New_York")

    # ==========================================================================
    # Record store
    # ==========================================================================
    # RECORD_STORE_BACKEND:
    #   "supabase" - insert into the shared Supabase project (production)
    #   "memory"   - keep records in process (development / tests)
    # ==========================================================================
    RECORD_STORE_BACKEND = os.environ.get("RECORD_STORE_BACKEND", "memory")
    SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
    SUPABASE_KEY = os.environ.get("SUPABASE_KEY", "")

    # ==========================================================================
    # Waiver workflow
    # ==========================================================================
    # REDIRECT_DELAY_SECONDS: time the success screen stays up before the
    #   browser is sent back to LANDING_URL.
    # TERMS_SCROLL_TOLERANCE_PX: slack for sub-pixel rounding when deciding
    #   whether the terms panel was scrolled to the end.
    # TERMS_UNSCROLLABLE_COUNTS_AS_READ: whether terms that fit entirely in
    #   the panel (nothing to scroll) satisfy the gate.
    # ==========================================================================
    REDIRECT_DELAY_SECONDS = float(os.environ.get("REDIRECT_DELAY_SECONDS", "3"))
    LANDING_URL = os.environ.get("LANDING_URL", "/")
    TERMS_SCROLL_TOLERANCE_PX = float(os.environ.get("TERMS_SCROLL_TOLERANCE_PX", "10"))
    TERMS_UNSCROLLABLE_COUNTS_AS_READ = _env_flag("TERMS_UNSCROLLABLE_COUNTS_AS_READ", "true")

    # Signature surface (width comes from the browser's container)
    SIGNATURE_WIDTH_PX = int(os.environ.get("SIGNATURE_WIDTH_PX", "600"))
    SIGNATURE_HEIGHT_PX = int(os.environ.get("SIGNATURE_HEIGHT_PX", "200"))

    # Open forms with no request for this long are released (a closed tab
    # does not always send its teardown beacon). 0 keeps them indefinitely.
    WORKFLOW_IDLE_TIMEOUT_SECONDS = float(os.environ.get("WORKFLOW_IDLE_TIMEOUT_SECONDS", "1800"))


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    RECORD_STORE_BACKEND = os.environ.get("RECORD_STORE_BACKEND", "supabase")
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 3600  # 1 hour


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    SECRET_KEY = "test-secret-key"
    RECORD_STORE_BACKEND = "memory"
    REDIRECT_DELAY_SECONDS = 3.0
