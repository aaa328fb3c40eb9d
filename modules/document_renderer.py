"""
Waiver PDF generation.

A waiver document has two parts:

    Terms pages     - kind title, date, TERMS AND CONDITIONS and the full
                      terms text wrapped to the content width; continues on
                      as many pages as the text needs
    Customer page   - details title, CUSTOMER INFORMATION label/value rows,
                      optional notes, CUSTOMER SIGNATURE; continues on a new
                      page if it overflows

Every page gets a "Generated on:" stamp and "Page i of n".

Rendering is split in two steps:

    layout(waiver)  -> DocumentLayout   pure page plan in millimetres,
                                        measured from the top-left corner
    render(waiver)  -> RenderedDocument the plan drawn with reportlab

The canvas runs in invariant mode, so the same waiver rendered with the same
clock gives byte-identical PDFs.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Union
from zoneinfo import ZoneInfo

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from core.exceptions import RenderError
from logging_config import get_logger
from models.submission import RenderedDocument
from models.waiver import BLANK_SIGNATURE, ValidatedWaiver
from modules.locations import PortalContext
from modules.signature_capture import load_signature_image
from modules.terms import terms_for


# Module logger
logger = get_logger(__name__)

# Page geometry (mm)
PAGE_WIDTH_MM = 210
PAGE_HEIGHT_MM = 297
MARGIN = 15
RIGHT_EDGE = PAGE_WIDTH_MM - MARGIN
CENTER_X = PAGE_WIDTH_MM / 2
TOP = 20
CONTENT_BOTTOM = 272
TIMESTAMP_Y = 280
PAGE_NUMBER_Y = 287

# Customer page
LABEL_X = MARGIN
VALUE_X = 70
VALUE_WIDTH = 110
FIELD_SPACING = 12
WRAP_LEADING = 5
SIGNATURE_WIDTH = 80
SIGNATURE_HEIGHT = 40

# Terms text
TEXT_WIDTH = 175
TERMS_START_Y = 55
TERMS_FONT_SIZE = 9
TERMS_LEADING = TERMS_FONT_SIZE * 1.15 / mm

RULE_WIDTH = 0.5

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"

NO_SIGNATURE_TEXT = "No signature provided"
SIGNATURE_ERROR_TEXT = "Error loading signature"


# =============================================================================
# PAGE PLAN
# =============================================================================

@dataclass(frozen=True)
class TextOp:
    """One line of text. ``y`` is the baseline, measured from the top."""

    x: float
    y: float
    text: str
    font: str = FONT
    size: float = 11
    align: str = "left"


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    width: float = RULE_WIDTH


@dataclass(frozen=True)
class ImageOp:
    """Signature image; ``y`` is the top edge, measured from the top."""

    x: float
    y: float
    width: float
    height: float
    artifact: str = field(repr=False)


DrawOp = Union[TextOp, LineOp, ImageOp]


@dataclass
class PageLayout:
    number: int
    ops: List[DrawOp] = field(default_factory=list)

    def texts(self) -> List[str]:
        return [op.text for op in self.ops if isinstance(op, TextOp)]

    def find_text(self, text: str) -> Optional[TextOp]:
        for op in self.ops:
            if isinstance(op, TextOp) and op.text == text:
                return op
        return None


@dataclass
class DocumentLayout:
    filename: str
    title: str
    generated_on: str
    pages: List[PageLayout] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)


def format_timestamp(moment: datetime) -> str:
    """Long date and time, e.g. "Oct 19, 2026, 3:04:05 PM"."""
    hour = moment.hour % 12 or 12
    return (
        f"{moment:%b} {moment.day}, {moment.year}, "
        f"{hour}:{moment:%M:%S} {moment:%p}"
    )


def wrap_text(text: str, font: str, size: float, width_mm: float) -> List[str]:
    """
    Wrap text to a width, keeping explicit line breaks and blank lines.

    Words longer than the width are left on a line of their own.
    """
    lines: List[str] = []
    for paragraph in text.split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue
        lines.extend(simpleSplit(paragraph, font, size, width_mm * mm) or [""])
    return lines


class _PageBuilder:
    """Collects pages while the layout runs."""

    def __init__(self):
        self.pages: List[PageLayout] = []
        self.y = TOP

    @property
    def page(self) -> PageLayout:
        return self.pages[-1]

    def new_page(self) -> PageLayout:
        self.pages.append(PageLayout(number=len(self.pages) + 1))
        self.y = TOP
        return self.page

    def ensure_room(self, height: float) -> None:
        """Start a new page if ``height`` mm no longer fit above the footer."""
        if self.y + height > CONTENT_BOTTOM:
            self.new_page()

    def text(self, x, y, text, font=FONT, size=11, align="left") -> None:
        self.page.ops.append(TextOp(x, y, text, font, size, align))

    def rule(self, y) -> None:
        self.page.ops.append(LineOp(MARGIN, y, RIGHT_EDGE, y))


# =============================================================================
# RENDERER
# =============================================================================

class DocumentRenderer:
    """
    Builds waiver PDFs.

    Usage:
        renderer = DocumentRenderer(context)
        document = renderer.render(validated_waiver)
        document.filename   # "Mobile_Care_Repair_Waiver_Jane_Doe.pdf"
    """

    def __init__(
        self,
        context: Optional[PortalContext] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            context: Organisation name and timezone for the document
            clock: Returns the generation time (defaults to now in the
                portal timezone)
        """
        self.context = context or PortalContext()
        self._clock = clock or (lambda: datetime.now(ZoneInfo(self.context.timezone)))

    def filename_for(self, waiver: ValidatedWaiver) -> str:
        return waiver.kind.filename(self.context.organization_name, waiver.full_name)

    def layout(self, waiver: ValidatedWaiver, generated_at: Optional[datetime] = None) -> DocumentLayout:
        """Plan every page of the document without drawing anything."""
        moment = generated_at or self._clock()
        doc = DocumentLayout(
            filename=self.filename_for(waiver),
            title=f"{waiver.kind.document_title.title()} - {waiver.full_name}",
            generated_on=f"Generated on: {format_timestamp(moment)}",
        )

        builder = _PageBuilder()
        self._layout_terms(builder, waiver)
        self._layout_customer(builder, waiver)

        total = len(builder.pages)
        for page in builder.pages:
            page.ops.append(TextOp(MARGIN, TIMESTAMP_Y, doc.generated_on, FONT_ITALIC, 9))
            page.ops.append(
                TextOp(CENTER_X, PAGE_NUMBER_Y, f"Page {page.number} of {total}", FONT, 8, "center")
            )

        doc.pages = builder.pages
        return doc

    def render(self, waiver: ValidatedWaiver) -> RenderedDocument:
        """
        Generate the PDF for a stored waiver.

        Raises:
            RenderError: The document could not be produced
        """
        filename = self.filename_for(waiver)
        try:
            plan = self.layout(waiver)
            content = self._draw(plan)
        except Exception as e:
            logger.error(f"Failed to render {filename}: {e}", exc_info=True)
            raise RenderError(filename, str(e)) from e

        logger.info(f"Rendered {filename} ({plan.page_count} pages, {len(content)} bytes)")
        return RenderedDocument(filename=filename, content=content)

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    def _header(self, builder: _PageBuilder, title: str, date: str) -> None:
        builder.text(CENTER_X, TOP, title, FONT_BOLD, 18, "center")
        builder.text(RIGHT_EDGE, TOP, f"Date: {date}", FONT, 10, "right")

    def _layout_terms(self, builder: _PageBuilder, waiver: ValidatedWaiver) -> None:
        terms = terms_for(waiver.kind.terms_template, self.context.organization_name)
        lines = wrap_text(terms, FONT, TERMS_FONT_SIZE, TEXT_WIDTH)

        def start_page(heading: str) -> None:
            builder.new_page()
            self._header(builder, waiver.kind.document_title, waiver.date)
            builder.rule(35)
            builder.text(MARGIN, 45, heading, FONT_BOLD, 14)
            builder.y = TERMS_START_Y

        start_page("TERMS AND CONDITIONS")
        for line in lines:
            if builder.y > CONTENT_BOTTOM:
                start_page("TERMS AND CONDITIONS (continued)")
            if line:
                builder.text(MARGIN, builder.y, line, FONT, TERMS_FONT_SIZE)
            builder.y += TERMS_LEADING

    def _layout_customer(self, builder: _PageBuilder, waiver: ValidatedWaiver) -> None:
        kind = waiver.kind
        builder.new_page()
        self._header(builder, kind.details_title, waiver.date)
        builder.y += 15
        builder.rule(builder.y)
        builder.y += 15
        builder.text(MARGIN, builder.y, "CUSTOMER INFORMATION", FONT_BOLD, 14)
        builder.y += 15

        for name in kind.document_fields:
            spec = kind.field(name)
            value = waiver.display_value(name) or "N/A"
            value_lines = wrap_text(value, FONT, 11, VALUE_WIDTH)
            builder.ensure_room((len(value_lines) - 1) * WRAP_LEADING)

            builder.text(LABEL_X, builder.y, f"{spec.label}:", FONT_BOLD, 11)
            for i, line in enumerate(value_lines):
                builder.text(VALUE_X, builder.y + i * WRAP_LEADING, line, FONT, 11)
            builder.y += FIELD_SPACING + (len(value_lines) - 1) * WRAP_LEADING

        notes = waiver.values.get("additionalNotes")
        if notes and notes.strip():
            builder.y += 5
            builder.ensure_room(8 + WRAP_LEADING)
            builder.text(MARGIN, builder.y, "Additional Notes:", FONT_BOLD, 11)
            builder.y += 8
            for line in wrap_text(notes, FONT, 10, TEXT_WIDTH):
                builder.ensure_room(0)
                if line:
                    builder.text(MARGIN, builder.y, line, FONT, 10)
                builder.y += WRAP_LEADING
            builder.y += 10
        else:
            builder.y += 10

        # Rule, heading and signature stay together
        builder.ensure_room(15 + 15 + SIGNATURE_HEIGHT)
        builder.rule(builder.y)
        builder.y += 15
        builder.text(MARGIN, builder.y, "CUSTOMER SIGNATURE", FONT_BOLD, 14)
        builder.y += 15
        self._layout_signature(builder, waiver.signature)

    def _layout_signature(self, builder: _PageBuilder, artifact: str) -> None:
        if artifact == BLANK_SIGNATURE:
            builder.text(MARGIN, builder.y + 10, NO_SIGNATURE_TEXT, FONT_ITALIC, 10)
            builder.y += 30
            return

        try:
            load_signature_image(artifact)
        except ValueError as e:
            logger.warning(f"Signature image not usable: {e}")
            builder.text(MARGIN, builder.y + 20, SIGNATURE_ERROR_TEXT, FONT, 11)
            builder.y += 30
            return

        builder.page.ops.append(
            ImageOp(MARGIN, builder.y, SIGNATURE_WIDTH, SIGNATURE_HEIGHT, artifact)
        )
        builder.y += SIGNATURE_HEIGHT + 10

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    def _draw(self, plan: DocumentLayout) -> bytes:
        buf = io.BytesIO()
        _, page_height = A4
        pdf = canvas.Canvas(buf, pagesize=A4, invariant=1)
        pdf.setTitle(plan.title)
        pdf.setAuthor(self.context.organization_name)
        pdf.setCreator(f"{self.context.organization_name} Waiver Portal")

        for page in plan.pages:
            for op in page.ops:
                if isinstance(op, TextOp):
                    pdf.setFont(op.font, op.size)
                    x, y = op.x * mm, page_height - op.y * mm
                    if op.align == "center":
                        pdf.drawCentredString(x, y, op.text)
                    elif op.align == "right":
                        pdf.drawRightString(x, y, op.text)
                    else:
                        pdf.drawString(x, y, op.text)
                elif isinstance(op, LineOp):
                    pdf.setLineWidth(op.width * mm)
                    pdf.line(
                        op.x1 * mm, page_height - op.y1 * mm,
                        op.x2 * mm, page_height - op.y2 * mm,
                    )
                elif isinstance(op, ImageOp):
                    image = load_signature_image(op.artifact)
                    pdf.drawImage(
                        ImageReader(image),
                        op.x * mm,
                        page_height - (op.y + op.height) * mm,
                        width=op.width * mm,
                        height=op.height * mm,
                        mask="auto",
                    )
            pdf.showPage()

        pdf.save()
        return buf.getvalue()
