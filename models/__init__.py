"""
Data models for the waiver portal.

This module contains:
- WaiverDraft: Mutable form state of one open waiver
- ValidatedWaiver: Frozen snapshot that is persisted and rendered
- WorkflowState / SubmitOutcome / SubmissionResult: Workflow reporting
- RenderedDocument: Generated PDF

Thread safety:
- ValidatedWaiver and RenderedDocument are frozen and safe to share
- WaiverDraft is only touched under its workflow's lock
"""

from .waiver import BLANK_SIGNATURE, WaiverDraft, ValidatedWaiver
from .submission import (
    PDF_MIMETYPE,
    WorkflowState,
    SubmitOutcome,
    SubmissionResult,
    RenderedDocument,
)

__all__ = [
    # Waiver models
    "BLANK_SIGNATURE",
    "WaiverDraft",
    "ValidatedWaiver",
    # Submission models
    "PDF_MIMETYPE",
    "WorkflowState",
    "SubmitOutcome",
    "SubmissionResult",
    "RenderedDocument",
]
