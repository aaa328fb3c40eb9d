"""
Waiver data models.

A waiver moves through the application as:

    WaiverDraft       - mutable form state while the customer types
    ValidatedWaiver   - frozen snapshot that passed validation; the exact
                        payload persisted to the record store and rendered
                        into the PDF

Thread Safety:
    - WaiverDraft is owned by one workflow and mutated under its lock
    - ValidatedWaiver is frozen and safe to hand to any thread
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from modules.formatting import (
    amount_input,
    digits_only,
    format_phone,
    sanitize_text,
)
from modules.waiver_kinds import AMOUNT, PHONE, SIGNATURE, WaiverKind


BLANK_SIGNATURE = ""
"""Signature value of an untouched or cleared pad."""


class WaiverDraft:
    """
    In-progress form state for one waiver.

    ``date`` is fixed when the draft is created and cannot be changed.
    Values are stored as the user typed them after the per-field input
    filter (phone digits only, amounts digits and one decimal point).
    """

    def __init__(self, kind: WaiverKind, date: str):
        self._kind = kind
        self._date = date
        self._values: Dict[str, str] = {name: "" for name in kind.field_names}

    def __repr__(self) -> str:
        return f"WaiverDraft(kind={self._kind.slug!r}, date={self._date!r})"

    @property
    def kind(self) -> WaiverKind:
        return self._kind

    @property
    def date(self) -> str:
        """ISO calendar date ("YYYY-MM-DD") the draft was created on."""
        return self._date

    @property
    def location(self) -> str:
        return self._values["location"]

    @property
    def signature(self) -> str:
        return self._values["signature"]

    def get(self, name: str) -> str:
        if name not in self._values:
            raise KeyError(f"{self._kind.slug} waiver has no field '{name}'")
        return self._values[name]

    def set_field(self, name: str, value: Optional[str]) -> str:
        """
        Store one field after applying its input filter.

        Changing the location clears the staff field, since each location
        has its own staff list.

        Returns:
            The value actually stored

        Raises:
            KeyError: ``name`` is not a field of this waiver kind
        """
        spec = self._kind.field(name)
        raw = value or ""

        if spec.kind == PHONE:
            stored = digits_only(raw)
        elif spec.kind == AMOUNT:
            stored = amount_input(raw)
        elif spec.kind == SIGNATURE:
            stored = raw
        else:
            stored = sanitize_text(raw)

        previous = self._values[name]
        self._values[name] = stored

        if name == "location" and stored != previous:
            staff = self._kind.staff_field
            if staff is not None:
                self._values[staff.name] = ""

        return stored

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        """
        Apply several fields at once (e.g. a posted form).

        Location is applied first so that a staff member posted together with
        a new location is not wiped by the location change. Unknown keys and
        the read-only date are ignored.
        """
        if "location" in values:
            self.set_field("location", values["location"])
        for name, value in values.items():
            if name == "location" or name not in self._values:
                continue
            self.set_field(name, value)

    def values(self) -> Dict[str, str]:
        """Copy of all field values (date not included)."""
        return dict(self._values)

    def to_dict(self) -> Dict[str, Any]:
        """Draft as shown to templates: date plus all field values."""
        data = {"date": self._date}
        data.update(self._values)
        return data


@dataclass(frozen=True)
class ValidatedWaiver:
    """
    Immutable waiver that passed validation.

    Values are final: text trimmed, amounts formatted as "$#,##0.00",
    phone numbers as 10 raw digits and empty optional fields as None.
    """

    kind: WaiverKind
    date: str
    values: Mapping[str, Optional[str]] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only view so the snapshot cannot be changed through .values
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @property
    def location(self) -> str:
        return self.values["location"]

    @property
    def full_name(self) -> str:
        return self.values["fullName"]

    @property
    def signature(self) -> str:
        return self.values.get("signature") or BLANK_SIGNATURE

    def to_record(self) -> Dict[str, Any]:
        """
        Record store payload with snake_case column names.

        Example (repair):
            {"location": "Augusta", "device_model": "iPhone 13",
             "phone_number": "5551234567", "repair_amount": "$89.99",
             "additional_notes": None, "signature_url": "data:image/png;base64,..."}
        """
        return {spec.column: self.values.get(spec.name) for spec in self.kind.fields}

    def display_value(self, name: str) -> str:
        """Value as printed on documents (phone numbers get their punctuation)."""
        value = self.values.get(name) or ""
        spec = self.kind.field(name)
        if spec.kind == PHONE:
            return format_phone(value)
        return value

