"""
Custom exceptions for the waiver portal.

Exception Hierarchy:
    WaiverPortalError (base)
    ├── ConfigurationError      - Record store misconfigured (startup failure)
    ├── UnknownWaiverKindError  - Unknown waiver kind slug
    ├── WorkflowStateError      - Action not allowed in the current state
    ├── ValidationError         - Field-level validation failure (recoverable)
    ├── PersistenceError        - Record store insert failed (recoverable)
    ├── RenderError             - PDF generation failed after persistence
    └── ClientIntegrityError    - Drawing surface used after it was destroyed

Usage:
    ConfigurationError makes the app fail fast at startup.
    Everything else is handled inside the workflow, which always returns to
    an interactive state (editing or submitted).
"""

from typing import Optional, Dict, Any


class WaiverPortalError(Exception):
    """
    Base exception for all waiver portal errors.

    Lets callers catch every application-specific error with one clause.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# STARTUP ERRORS - Application will not start if these occur
# =============================================================================

class ConfigurationError(WaiverPortalError):
    """
    The record store cannot be configured.

    Typical causes:
    - RECORD_STORE_BACKEND is not "supabase" or "memory"
    - SUPABASE_URL / SUPABASE_KEY missing from .env
    """

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {}
        if setting:
            details["setting"] = setting
            details["resolution"] = f"Set {setting} in the environment or .env file"
        super().__init__(message, details)
        self.setting = setting


# =============================================================================
# RUNTIME ERRORS - Operation fails gracefully, workflow stays interactive
# =============================================================================

class UnknownWaiverKindError(WaiverPortalError):
    """No waiver kind is registered under the requested slug."""

    def __init__(self, slug: str):
        super().__init__(f"Unknown waiver kind: {slug}", {"slug": slug})
        self.slug = slug


class WorkflowStateError(WaiverPortalError):
    """
    An action was invoked in a state that does not allow it.

    Example: regenerating the document before the waiver was submitted.
    """

    def __init__(self, action: str, state: str):
        super().__init__(
            f"Cannot {action} while workflow is {state}",
            {"action": action, "state": state},
        )
        self.action = action
        self.state = state


class ValidationError(WaiverPortalError):
    """
    One or more form fields failed validation.

    Carries the complete field -> message mapping from the validation run.
    """

    def __init__(self, errors: Dict[str, str]):
        super().__init__(
            f"{len(errors)} field(s) failed validation",
            {"fields": sorted(errors)},
        )
        self.errors = dict(errors)


class PersistenceError(WaiverPortalError):
    """
    The record store rejected or failed the insert.

    The draft is preserved; the user can submit again.
    """

    def __init__(self, collection: str, reason: str):
        super().__init__(
            f"Could not save record to {collection}: {reason}",
            {"collection": collection, "resolution": "Retry the submission"},
        )
        self.collection = collection
        self.reason = reason


class RenderError(WaiverPortalError):
    """
    The waiver document could not be generated.

    Raised after the record was already stored, so it is never fatal to the
    submission; the user can regenerate the document.
    """

    def __init__(self, filename: str, reason: str):
        super().__init__(
            f"Could not generate {filename}: {reason}",
            {"filename": filename, "resolution": "Use 'Download PDF Again' to retry"},
        )
        self.filename = filename
        self.reason = reason


class ClientIntegrityError(WaiverPortalError):
    """The signature surface was used after it had been destroyed."""

    def __init__(self, operation: str):
        super().__init__(
            f"Signature surface destroyed; ignoring {operation}",
            {"operation": operation},
        )
        self.operation = operation
