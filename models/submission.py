"""
Submission data models.

These models describe what a waiver workflow reports back to the web layer:
its lifecycle state, the outcome of a submit attempt and the generated
document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


PDF_MIMETYPE = "application/pdf"


class WorkflowState(Enum):
    """
    Lifecycle state of a waiver workflow.

    Lifecycle:
        EDITING -> SUBMITTING -> SUBMITTED -> PRESENTING -> REDIRECTED
           ^           |             |            |
           +-----------+  (failure)  +---reset----+
    """

    EDITING = "editing"
    """Form is open; the customer is filling it in."""

    SUBMITTING = "submitting"
    """Waiver validated; record store insert in flight."""

    SUBMITTED = "submitted"
    """Record stored; document generated (or degraded)."""

    PRESENTING = "presenting"
    """Success screen shown; redirect timer running."""

    REDIRECTED = "redirected"
    """Redirect timer fired; the workflow is finished."""


class SubmitOutcome(Enum):
    """Result of one submit() call."""

    SUBMITTED = "submitted"
    """Record stored. Check SubmissionResult.pdf_generated for the document."""

    INVALID = "invalid"
    """Validation failed; errors carry the field messages."""

    BLOCKED = "blocked"
    """Terms have not been read yet."""

    BUSY = "busy"
    """A submission is already in flight."""

    PERSISTENCE_FAILED = "persistence_failed"
    """Record store rejected the insert; the draft is kept."""


@dataclass(frozen=True)
class RenderedDocument:
    """A generated waiver PDF ready to be sent to the browser."""

    filename: str
    content: bytes = field(repr=False)
    mimetype: str = PDF_MIMETYPE

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class SubmissionResult:
    """
    What happened on a submit attempt.

    ``notification`` is the transient message to flash to the user (if any).
    """

    outcome: SubmitOutcome
    errors: Dict[str, str] = field(default_factory=dict)
    notification: Optional[str] = None
    document: Optional[RenderedDocument] = None

    @property
    def stored(self) -> bool:
        return self.outcome is SubmitOutcome.SUBMITTED

    @property
    def pdf_generated(self) -> bool:
        return self.document is not None
