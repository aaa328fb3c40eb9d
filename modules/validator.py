"""
Form validation for waiver drafts.

The rules live on the ``FieldSpec`` entries of each waiver kind; this module
applies them. A validation run always checks every field and returns either
a ``ValidatedWaiver`` or the complete field -> message error set, never a
mix of the two.

Rules:
    - empty optional fields pass (stored as None)
    - required text is trimmed before length checks, so "   " fails
    - text longer than the field maximum fails; input is never cut short
    - location must be one of the portal's sites
    - staff fields must name someone working at the selected location
    - amounts accept "89.9" or "$89.90" and are stored as "$89.90"
    - the blank signature never counts as a signature
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from core.exceptions import ValidationError
from models.waiver import BLANK_SIGNATURE, ValidatedWaiver, WaiverDraft
from modules.formatting import is_valid_amount, normalize_currency
from modules.locations import PortalContext
from modules.waiver_kinds import AMOUNT, CHOICE, SIGNATURE, STAFF, FieldSpec, WaiverKind


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validation run."""

    success: bool
    value: Optional[ValidatedWaiver] = None
    errors: Dict[str, str] = field(default_factory=dict)

    def unwrap(self) -> ValidatedWaiver:
        """
        Return the validated waiver.

        Raises:
            ValidationError: The run failed; carries the full error set
        """
        if not self.success:
            raise ValidationError(self.errors)
        return self.value


class FormValidator:
    """Validates drafts of one waiver kind."""

    def __init__(self, kind: WaiverKind, context: PortalContext):
        self.kind = kind
        self.context = context

    def validate(self, draft: WaiverDraft) -> ValidationResult:
        """
        Check every field of ``draft``.

        Pure: the draft is not modified and the same draft always yields an
        equal result.
        """
        errors: Dict[str, str] = {}
        clean: Dict[str, Optional[str]] = {}

        for spec in self.kind.fields:
            value, error = self._check_field(spec, draft)
            if error is not None:
                errors[spec.name] = error
            else:
                clean[spec.name] = value

        if errors:
            return ValidationResult(success=False, errors=errors)

        return ValidationResult(
            success=True,
            value=ValidatedWaiver(kind=self.kind, date=draft.date, values=clean),
        )

    def _check_field(self, spec: FieldSpec, draft: WaiverDraft):
        """Return (normalised value, None) or (None, error message)."""
        raw = draft.get(spec.name)

        if spec.kind == SIGNATURE:
            if raw == BLANK_SIGNATURE or len(raw) < spec.min_length:
                return None, spec.message
            return raw, None

        value = raw.strip()

        if not value:
            if spec.required:
                return None, spec.message
            return None, None

        if spec.kind == CHOICE:
            if not self.context.is_location(value):
                return None, spec.message
            return value, None

        if spec.kind == STAFF:
            if not self.context.is_employee_at(draft.location.strip(), value):
                return None, spec.message
            return value, None

        if spec.kind == AMOUNT:
            if not is_valid_amount(value):
                return None, spec.format_message or spec.message
            return normalize_currency(value), None

        if spec.max_length is not None and len(value) > spec.max_length:
            return None, (
                spec.length_message
                or f"{spec.label} must be at most {spec.max_length} characters."
            )

        if len(value) < spec.min_length:
            return None, spec.message

        if spec.pattern and not re.match(spec.pattern, value):
            return None, spec.message

        return value, None
