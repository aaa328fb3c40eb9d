"""
Unit tests for the DocumentRenderer.

Layout tests inspect the page plan directly; a few tests parse the rendered
PDF with pypdf to check what actually ends up on the pages.
"""

import dataclasses
import io
from unittest.mock import patch

import pytest
from pypdf import PdfReader

from core.exceptions import RenderError
from models.waiver import ValidatedWaiver, WaiverDraft
from modules.document_renderer import (
    CONTENT_BOTTOM,
    FONT,
    NO_SIGNATURE_TEXT,
    SIGNATURE_ERROR_TEXT,
    TERMS_FONT_SIZE,
    TEXT_WIDTH,
    DocumentRenderer,
    ImageOp,
    TextOp,
    format_timestamp,
    wrap_text,
)
from modules.terms import terms_for
from modules.validator import FormValidator
from modules.waiver_kinds import REPAIR

from conftest import FIXED_NOW, REPAIR_FIELDS, TODAY


GENERATED_ON = "Generated on: Oct 19, 2026, 3:04:05 PM"


def make_waiver(context, signature, **overrides):
    draft = WaiverDraft(REPAIR, TODAY)
    draft.update(dict(REPAIR_FIELDS, **overrides))
    draft.set_field("signature", signature)
    return FormValidator(REPAIR, context).validate(draft).unwrap()


def with_values(waiver, **values):
    merged = dict(waiver.values)
    merged.update(values)
    return ValidatedWaiver(kind=waiver.kind, date=waiver.date, values=merged)


def terms_pages(layout):
    return [
        page for page in layout.pages
        if any(text.startswith("TERMS AND CONDITIONS") for text in page.texts())
    ]


@pytest.fixture
def waiver(context, signature_artifact):
    return make_waiver(context, signature_artifact)


# Tests for file naming and timestamps

class TestNaming:

    def test_filename(self, renderer, waiver):
        assert renderer.filename_for(waiver) == "Mobile_Care_Repair_Waiver_Jane_Doe.pdf"

    def test_filename_collapses_whitespace(self, renderer, context, signature_artifact):
        waiver = make_waiver(context, signature_artifact, fullName="Mary  Ann   Smith")
        assert renderer.filename_for(waiver) == "Mobile_Care_Repair_Waiver_Mary_Ann_Smith.pdf"

    def test_filename_keeps_ampersand(self, renderer, context, signature_artifact):
        waiver = make_waiver(context, signature_artifact, fullName="Tom & Jerry")
        assert renderer.filename_for(waiver) == "Mobile_Care_Repair_Waiver_Tom_&_Jerry.pdf"

    def test_format_timestamp(self):
        assert format_timestamp(FIXED_NOW) == "Oct 19, 2026, 3:04:05 PM"

    def test_title(self, renderer, waiver):
        assert renderer.layout(waiver).title == "Device Repair Waiver - Jane Doe"


# Tests for the rendered PDF

class TestRender:
    """End-to-end rendering with reportlab."""

    def test_produces_pdf(self, renderer, waiver):
        document = renderer.render(waiver)

        assert document.content.startswith(b"%PDF")
        assert document.mimetype == "application/pdf"
        assert document.size == len(document.content)
        assert document.filename == "Mobile_Care_Repair_Waiver_Jane_Doe.pdf"

    def test_rendering_is_deterministic(self, renderer, waiver):
        assert renderer.render(waiver).content == renderer.render(waiver).content

    def test_page_count_and_numbers(self, renderer, waiver):
        layout = renderer.layout(waiver)
        reader = PdfReader(io.BytesIO(renderer.render(waiver).content))

        assert len(reader.pages) == layout.page_count
        for number, page in enumerate(reader.pages, start=1):
            assert f"Page {number} of {layout.page_count}" in page.extract_text()

    def test_customer_data_on_last_page(self, renderer, waiver):
        reader = PdfReader(io.BytesIO(renderer.render(waiver).content))
        text = reader.pages[-1].extract_text()

        assert "CUSTOMER INFORMATION" in text
        assert "Jane Doe" in text
        assert "(555) 123-4567" in text
        assert "$89.99" in text
        assert "Shan" in text

    def test_special_characters_printed_as_typed(self, renderer, context, signature_artifact):
        waiver = make_waiver(
            context, signature_artifact,
            fullName="Tom & Jerry",
            additionalNotes="cracked & scratched, 5 < 6",
        )
        text = PdfReader(io.BytesIO(renderer.render(waiver).content)).pages[-1].extract_text()

        assert "Tom & Jerry" in text
        assert "cracked & scratched, 5 < 6" in text
        assert "&amp;" not in text

    def test_draw_failure_becomes_render_error(self, renderer, waiver):
        with patch.object(DocumentRenderer, "_draw", side_effect=RuntimeError("disk full")):
            with pytest.raises(RenderError) as exc_info:
                renderer.render(waiver)

        assert exc_info.value.filename == "Mobile_Care_Repair_Waiver_Jane_Doe.pdf"
        assert "disk full" in exc_info.value.reason


# Tests for the page plan

class TestTermsPages:
    """Terms text is paginated, never cut off."""

    def test_first_page_header(self, renderer, waiver):
        first = renderer.layout(waiver).pages[0]

        assert first.find_text("DEVICE REPAIR WAIVER") is not None
        assert first.find_text(f"Date: {TODAY}") is not None
        assert first.find_text("TERMS AND CONDITIONS") is not None

    def test_every_terms_line_is_printed(self, renderer, waiver):
        layout = renderer.layout(waiver)
        expected = [
            line for line in wrap_text(
                terms_for(REPAIR.terms_template, "Mobile Care"), FONT, TERMS_FONT_SIZE, TEXT_WIDTH
            )
            if line
        ]

        printed = [
            op.text
            for page in layout.pages
            for op in page.ops
            if isinstance(op, TextOp) and op.font == FONT and op.size == TERMS_FONT_SIZE
        ]
        assert printed == expected

    def test_continuation_pages(self, renderer, waiver):
        pages = terms_pages(renderer.layout(waiver))

        assert len(pages) >= 2
        for page in pages[1:]:
            assert page.find_text("TERMS AND CONDITIONS (continued)") is not None

    def test_short_terms_fit_one_page(self, renderer, waiver):
        short_kind = dataclasses.replace(REPAIR, terms_template="Short terms for {org}.")
        short = ValidatedWaiver(kind=short_kind, date=waiver.date, values=waiver.values)

        layout = renderer.layout(short)

        assert layout.page_count == 2
        assert layout.pages[0].find_text("Short terms for Mobile Care.") is not None


class TestCustomerPage:
    """Details rows, notes and signature."""

    def test_header_and_rows(self, renderer, waiver):
        page = renderer.layout(waiver).pages[-1]

        assert page.find_text("CUSTOMER WAIVER SUBMISSION") is not None
        assert page.find_text("Phone Number:").y == page.find_text("(555) 123-4567").y
        assert page.find_text("Repair Amount:").y == page.find_text("$89.99").y

    def test_rows_in_document_order(self, renderer, waiver):
        page = renderer.layout(waiver).pages[-1]
        ys = [page.find_text(f"{REPAIR.field(name).label}:").y for name in REPAIR.document_fields]
        assert ys == sorted(ys)

    def test_long_value_pushes_next_row_down(self, renderer, context, signature_artifact):
        waiver = make_waiver(context, signature_artifact, deviceModel="Galaxy " * 20)
        page = renderer.layout(waiver).pages[-1]

        lines = wrap_text(waiver.values["deviceModel"], FONT, 11, 110)
        assert len(lines) > 1

        device = page.find_text("Device Model:")
        part = page.find_text("Part Being Repaired:")
        assert part.y - device.y == pytest.approx(12 + (len(lines) - 1) * 5)

    def test_nothing_drawn_into_footer(self, renderer, context, signature_artifact):
        waiver = make_waiver(
            context, signature_artifact,
            deviceModel="Galaxy " * 20,
            additionalNotes="Cracked corner. " * 60,
        )
        layout = renderer.layout(waiver)

        for page in layout.pages:
            for op in page.ops:
                if isinstance(op, TextOp) and op.text != layout.generated_on \
                        and not op.text.startswith("Page "):
                    assert op.y <= CONTENT_BOTTOM
                elif isinstance(op, ImageOp):
                    assert op.y + op.height <= CONTENT_BOTTOM

    def test_empty_value_prints_na(self, renderer, waiver):
        blank = with_values(waiver, partBeingRepaired=None)
        page = renderer.layout(blank).pages[-1]
        assert page.find_text("N/A").y == page.find_text("Part Being Repaired:").y

    def test_notes_block(self, renderer, context, signature_artifact):
        waiver = make_waiver(context, signature_artifact, additionalNotes="Left speaker crackles")
        page = renderer.layout(waiver).pages[-1]

        assert page.find_text("Additional Notes:") is not None
        assert page.find_text("Left speaker crackles") is not None

    def test_no_notes_block_without_notes(self, renderer, waiver):
        page = renderer.layout(waiver).pages[-1]
        assert page.find_text("Additional Notes:") is None

    def test_signature_image(self, renderer, waiver, signature_artifact):
        page = renderer.layout(waiver).pages[-1]
        images = [op for op in page.ops if isinstance(op, ImageOp)]

        assert len(images) == 1
        assert (images[0].width, images[0].height) == (80, 40)
        assert images[0].artifact == signature_artifact
        assert page.find_text("CUSTOMER SIGNATURE").y < images[0].y

    def test_blank_signature_placeholder(self, renderer, waiver):
        unsigned = with_values(waiver, signature="")
        layout = renderer.layout(unsigned)
        page = layout.pages[-1]

        assert page.find_text(NO_SIGNATURE_TEXT) is not None
        assert not any(isinstance(op, ImageOp) for op in page.ops)
        assert renderer.render(unsigned).content.startswith(b"%PDF")

    def test_unreadable_signature(self, renderer, waiver):
        broken = with_values(waiver, signature="data:image/png;base64,AAAA")
        page = renderer.layout(broken).pages[-1]

        assert page.find_text(SIGNATURE_ERROR_TEXT) is not None
        assert renderer.render(broken).content.startswith(b"%PDF")


class TestFooter:

    def test_every_page_has_footer(self, renderer, waiver):
        layout = renderer.layout(waiver)

        assert layout.generated_on == GENERATED_ON
        for page in layout.pages:
            assert page.find_text(GENERATED_ON) is not None
            assert page.find_text(f"Page {page.number} of {layout.page_count}") is not None

    def test_explicit_generation_time(self, renderer, waiver):
        moment = FIXED_NOW.replace(hour=9, minute=5, second=0)
        layout = renderer.layout(waiver, generated_at=moment)
        assert layout.generated_on == "Generated on: Oct 19, 2026, 9:05:00 AM"
