"""
Unit tests for the FormValidator.

Covers the exact field messages, all-or-nothing results, value
normalisation and purity of validate().
"""

import pytest

from core.exceptions import ValidationError
from models.waiver import WaiverDraft
from modules.validator import FormValidator
from modules.waiver_kinds import PURCHASE, REPAIR, SELLING

from conftest import REPAIR_FIELDS, TODAY


# Fixtures

@pytest.fixture
def repair_draft(signature_artifact):
    draft = WaiverDraft(REPAIR, TODAY)
    draft.update(REPAIR_FIELDS)
    draft.set_field("signature", signature_artifact)
    return draft


@pytest.fixture
def selling_draft(signature_artifact):
    draft = WaiverDraft(SELLING, TODAY)
    draft.update({
        "location": "Lynnhaven",
        "deviceModel": "Galaxy S22",
        "fullName": "John Smith",
        "phoneNumber": "5559876543",
        "imei": "356938035643809",
        "price": "1250",
        "idNumber": "D1234567",
    })
    draft.set_field("signature", signature_artifact)
    return draft


@pytest.fixture
def repair_validator(context):
    return FormValidator(REPAIR, context)


# Tests for successful validation

class TestValidRepair:
    """A complete repair draft validates into a frozen waiver."""

    def test_success(self, repair_validator, repair_draft):
        result = repair_validator.validate(repair_draft)

        assert result.success
        assert result.errors == {}
        assert result.value.date == TODAY
        assert result.value.full_name == "Jane Doe"

    def test_amount_is_currency_formatted(self, repair_validator, repair_draft):
        result = repair_validator.validate(repair_draft)
        assert result.value.values["repairAmount"] == "$89.99"

    def test_short_amount_is_padded(self, repair_validator, repair_draft):
        repair_draft.set_field("repairAmount", "89.9")
        result = repair_validator.validate(repair_draft)
        assert result.value.values["repairAmount"] == "$89.90"

    def test_empty_notes_become_none(self, repair_validator, repair_draft):
        repair_draft.set_field("additionalNotes", "   ")
        result = repair_validator.validate(repair_draft)

        assert result.success
        assert result.value.values["additionalNotes"] is None

    def test_text_is_trimmed(self, repair_validator, repair_draft):
        repair_draft.set_field("fullName", "  Jane Doe  ")
        result = repair_validator.validate(repair_draft)
        assert result.value.full_name == "Jane Doe"

    def test_phone_stored_as_digits(self, repair_validator, repair_draft):
        result = repair_validator.validate(repair_draft)
        assert result.value.values["phoneNumber"] == "5551234567"

    def test_record_uses_column_names(self, repair_validator, repair_draft, signature_artifact):
        record = repair_validator.validate(repair_draft).value.to_record()

        assert record == {
            "location": "Augusta",
            "device_model": "iPhone 13",
            "part_being_repaired": "Screen",
            "full_name": "Jane Doe",
            "phone_number": "5551234567",
            "technician_name": "Shan",
            "repair_amount": "$89.99",
            "additional_notes": None,
            "signature_url": signature_artifact,
        }

    def test_special_characters_reach_the_record(self, repair_validator, repair_draft):
        repair_draft.set_field("fullName", "Tom & Jerry")
        repair_draft.set_field("additionalNotes", "cracked & scratched, 5 < 6")

        record = repair_validator.validate(repair_draft).value.to_record()

        assert record["full_name"] == "Tom & Jerry"
        assert record["additional_notes"] == "cracked & scratched, 5 < 6"

    def test_notes_at_the_limit_pass(self, repair_validator, repair_draft):
        repair_draft.set_field("additionalNotes", "x" * 2000)
        assert repair_validator.validate(repair_draft).success


# Tests for field messages

class TestRepairMessages:
    """Each rule reports its exact message."""

    @pytest.mark.parametrize("field, value, message", [
        ("location", "", "Please select a location"),
        ("location", "Atlantis", "Please select a location"),
        ("deviceModel", "X", "Device model must be at least 2 characters."),
        ("partBeingRepaired", "", "Please specify the part being repaired."),
        ("fullName", "   ", "Full name must be at least 2 characters."),
        ("fullName", " J ", "Full name must be at least 2 characters."),
        ("phoneNumber", "555123", "Phone number must be 10 digits."),
        ("phoneNumber", "1 (555) 123-45678", "Phone number must be 10 digits."),
        ("fullName", "J" * 201, "Full Name must be at most 200 characters."),
        ("additionalNotes", "x" * 2001, "Notes are too long."),
        ("repairAmount", "", "Please enter the repair amount."),
        ("repairAmount", ".", "Please enter a valid amount."),
    ])
    def test_field_message(self, repair_validator, repair_draft, field, value, message):
        repair_draft.set_field(field, value)
        result = repair_validator.validate(repair_draft)

        assert not result.success
        assert result.errors[field] == message

    def test_technician_must_work_at_location(self, repair_validator, repair_draft):
        repair_draft.set_field("technicianName", "Lee")
        result = repair_validator.validate(repair_draft)
        assert result.errors == {"technicianName": "Please select a technician"}

    def test_blank_signature(self, repair_validator, repair_draft):
        repair_draft.set_field("signature", "")
        result = repair_validator.validate(repair_draft)
        assert result.errors == {"signature": "Please provide your signature."}

    def test_empty_draft_reports_every_required_field(self, repair_validator):
        result = repair_validator.validate(WaiverDraft(REPAIR, TODAY))

        assert set(result.errors) == {
            "location", "deviceModel", "partBeingRepaired", "fullName",
            "phoneNumber", "technicianName", "repairAmount", "signature",
        }


class TestAllOrNothing:
    """No partial success and no side effects."""

    def test_failure_has_no_value(self, repair_validator, repair_draft):
        repair_draft.set_field("fullName", "")
        repair_draft.set_field("phoneNumber", "1")
        result = repair_validator.validate(repair_draft)

        assert result.value is None
        assert set(result.errors) == {"fullName", "phoneNumber"}

    def test_validate_is_pure(self, repair_validator, repair_draft):
        before = repair_draft.values()

        first = repair_validator.validate(repair_draft)
        second = repair_validator.validate(repair_draft)

        assert repair_draft.values() == before
        assert first.success and second.success
        assert dict(first.value.values) == dict(second.value.values)

    def test_failing_validate_is_pure(self, repair_validator):
        draft = WaiverDraft(REPAIR, TODAY)
        assert repair_validator.validate(draft).errors == repair_validator.validate(draft).errors

    def test_unwrap_raises_with_errors(self, repair_validator):
        result = repair_validator.validate(WaiverDraft(REPAIR, TODAY))

        with pytest.raises(ValidationError) as exc_info:
            result.unwrap()

        assert exc_info.value.errors == result.errors


class TestSellingAndPurchase:
    """Variant-specific fields."""

    def test_selling_price_formatting(self, context, selling_draft):
        result = FormValidator(SELLING, context).validate(selling_draft)

        assert result.success
        assert result.value.values["price"] == "$1,250.00"

    @pytest.mark.parametrize("field, value, message", [
        ("imei", "12345", "IMEI must be at least 15 characters."),
        ("price", "", "Please enter the price."),
        ("idNumber", "A", "Please enter a valid ID number."),
    ])
    def test_selling_messages(self, context, selling_draft, field, value, message):
        selling_draft.set_field(field, value)
        result = FormValidator(SELLING, context).validate(selling_draft)
        assert result.errors[field] == message

    def test_purchase_requires_sales_representative(self, context, signature_artifact):
        draft = WaiverDraft(PURCHASE, TODAY)
        draft.update({
            "location": "Perimeter",
            "deviceModel": "Pixel 8",
            "fullName": "Ann Lee",
            "phoneNumber": "5550001111",
            "imei": "356938035643809",
            "price": "300",
            "idNumber": "GA998877",
            "signature": signature_artifact,
        })
        validator = FormValidator(PURCHASE, context)

        result = validator.validate(draft)
        assert result.errors == {"salesRepresentative": "Please select a sales representative"}

        draft.set_field("salesRepresentative", "Aly")
        assert validator.validate(draft).success
