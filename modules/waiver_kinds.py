"""
Waiver kind definitions.

The portal has three waiver forms that share one shape: the same metadata
(date, location), a few kind-specific fields, optional notes and a
signature. Each kind is described once here and the generic workflow,
validator and renderer are driven from that description:

    REPAIR   - customer leaves a device for repair
    SELLING  - store sells a device to the customer
    PURCHASE - store buys a device from the customer
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from core.exceptions import UnknownWaiverKindError
from .formatting import underscore_words
from .terms import PURCHASE_TERMS, REPAIR_TERMS, SELLING_TERMS


# Input filters applied while the user types (see models.waiver.WaiverDraft)
TEXT = "text"
PHONE = "phone"
AMOUNT = "amount"
CHOICE = "choice"
STAFF = "staff"
SIGNATURE = "signature"


@dataclass(frozen=True)
class FieldSpec:
    """
    One form field: how it is entered, validated, stored and printed.

    ``message`` is the single error shown for a missing/short/malformed value;
    ``format_message`` overrides it when a value is present but malformed
    (only used for amounts).
    """

    name: str
    """Form field name (camelCase, as posted by the browser)."""

    column: str
    """Record store column (snake_case)."""

    label: str
    """Label on the form and on the PDF."""

    message: str
    """Error message for this field."""

    kind: str = TEXT
    """Input filter / widget type."""

    required: bool = True
    min_length: int = 0
    pattern: Optional[str] = None
    format_message: Optional[str] = None
    placeholder: str = ""
    max_length: Optional[int] = None
    length_message: Optional[str] = None
    """Error for a value longer than ``max_length``."""


LOCATION = FieldSpec(
    "location", "location", "Location", "Please select a location", kind=CHOICE,
)
DEVICE_MODEL = FieldSpec(
    "deviceModel", "device_model", "Device Model",
    "Device model must be at least 2 characters.",
    min_length=2, placeholder="e.g., iPhone 13 Pro, Galaxy S22", max_length=200,
)
FULL_NAME = FieldSpec(
    "fullName", "full_name", "Full Name",
    "Full name must be at least 2 characters.",
    min_length=2, placeholder="Enter your full name", max_length=200,
)
PHONE_NUMBER = FieldSpec(
    "phoneNumber", "phone_number", "Phone Number",
    "Phone number must be 10 digits.",
    kind=PHONE, pattern=r"^\d{10}$", placeholder="10-digit phone number",
)
ADDITIONAL_NOTES = FieldSpec(
    "additionalNotes", "additional_notes", "Additional Notes",
    "Notes are too long.",
    required=False, placeholder="Enter any specific notes or concerns",
    max_length=2000, length_message="Notes are too long.",
)
SIGNATURE_FIELD = FieldSpec(
    "signature", "signature_url", "Signature",
    "Please provide your signature.",
    kind=SIGNATURE, min_length=1,
)

IMEI = FieldSpec(
    "imei", "imei", "IMEI", "IMEI must be at least 15 characters.",
    min_length=15, placeholder="15-digit IMEI", max_length=64,
)
PRICE = FieldSpec(
    "price", "price", "Price", "Please enter the price.",
    kind=AMOUNT, min_length=1, format_message="Please enter a valid amount.",
    placeholder="e.g., $299.99",
)
ID_NUMBER = FieldSpec(
    "idNumber", "id_number", "ID Number", "Please enter a valid ID number.",
    min_length=2, placeholder="Driver's license or state ID", max_length=64,
)


@dataclass(frozen=True)
class WaiverKind:
    """Everything that differs between the three waiver forms."""

    slug: str
    label: str
    """Short name used in file names: "Repair" -> Mobile_Care_Repair_Waiver_..."""

    title: str
    """Page heading on the form."""

    document_title: str
    """Heading of the terms page(s) of the PDF."""

    details_title: str
    """Heading of the customer page of the PDF."""

    collection: str
    """Record store collection receiving this kind's records."""

    terms_template: str
    fields: Tuple[FieldSpec, ...]
    """Every draft field, in form order (location first, signature last)."""

    document_fields: Tuple[str, ...]
    """Field names printed as label/value rows on the customer page, in order."""

    notice: Optional[str] = None
    """Highlighted notice shown above the signature pad."""

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def staff_field(self) -> Optional[FieldSpec]:
        """Field that must name an employee of the selected location, if any."""
        for spec in self.fields:
            if spec.kind == STAFF:
                return spec
        return None

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(f"{self.slug} waiver has no field '{name}'")

    def filename(self, organization_name: str, full_name: str) -> str:
        """<Org>_<Kind>_Waiver_<Full_Name>.pdf with whitespace runs as underscores."""
        return (
            f"{underscore_words(organization_name)}_{self.label}_Waiver_"
            f"{underscore_words(full_name)}.pdf"
        )


REPAIR = WaiverKind(
    slug="repair",
    label="Repair",
    title="Device Repair Waiver",
    document_title="DEVICE REPAIR WAIVER",
    details_title="CUSTOMER WAIVER SUBMISSION",
    collection="repair_waivers",
    terms_template=REPAIR_TERMS,
    fields=(
        LOCATION,
        DEVICE_MODEL,
        FieldSpec(
            "partBeingRepaired", "part_being_repaired", "Part Being Repaired",
            "Please specify the part being repaired.",
            min_length=2, placeholder="e.g., screen, battery, back glass", max_length=200,
        ),
        FULL_NAME,
        PHONE_NUMBER,
        FieldSpec(
            "technicianName", "technician_name", "Technician Name",
            "Please select a technician", kind=STAFF,
        ),
        FieldSpec(
            "repairAmount", "repair_amount", "Repair Amount",
            "Please enter the repair amount.",
            kind=AMOUNT, min_length=1, format_message="Please enter a valid amount.",
            placeholder="e.g., $89.99",
        ),
        ADDITIONAL_NOTES,
        SIGNATURE_FIELD,
    ),
    document_fields=(
        "fullName", "phoneNumber", "location", "deviceModel",
        "partBeingRepaired", "technicianName", "repairAmount",
    ),
    notice="Devices that are water-damaged or have frame damage are not covered under warranty.",
)

SELLING = WaiverKind(
    slug="selling",
    label="Selling",
    title="Device Selling Waiver",
    document_title="DEVICE SELLING WAIVER",
    details_title="CUSTOMER PURCHASE INFORMATION",
    collection="selling_waivers",
    terms_template=SELLING_TERMS,
    fields=(
        LOCATION, DEVICE_MODEL, FULL_NAME, PHONE_NUMBER,
        IMEI, PRICE, ID_NUMBER,
        ADDITIONAL_NOTES, SIGNATURE_FIELD,
    ),
    document_fields=(
        "fullName", "phoneNumber", "location", "deviceModel",
        "imei", "price", "idNumber",
    ),
)

PURCHASE = WaiverKind(
    slug="purchase",
    label="Purchase",
    title="Device Purchase Waiver",
    document_title="DEVICE PURCHASE WAIVER",
    details_title="CUSTOMER DEVICE SALE INFORMATION",
    collection="purchase_waivers",
    terms_template=PURCHASE_TERMS,
    fields=(
        LOCATION, DEVICE_MODEL, FULL_NAME, PHONE_NUMBER,
        IMEI, PRICE, ID_NUMBER,
        FieldSpec(
            "salesRepresentative", "sales_representative", "Sales Representative",
            "Please select a sales representative", kind=STAFF,
        ),
        ADDITIONAL_NOTES, SIGNATURE_FIELD,
    ),
    document_fields=(
        "fullName", "phoneNumber", "location", "deviceModel",
        "imei", "price", "idNumber", "salesRepresentative",
    ),
)

WAIVER_KINDS: Dict[str, WaiverKind] = {k.slug: k for k in (REPAIR, SELLING, PURCHASE)}


def get_waiver_kind(slug: str) -> WaiverKind:
    """
    Look up a waiver kind by slug.

    Raises:
        UnknownWaiverKindError: No kind registered under ``slug``
    """
    try:
        return WAIVER_KINDS[slug]
    except KeyError:
        raise UnknownWaiverKindError(slug) from None
