"""
Freehand signature surface.

The browser forwards pointer and touch events from the signature canvas; this
class replays them onto a transparent Pillow raster and commits the result as
a PNG data URL whenever a stroke ends. An untouched or cleared surface commits
as the blank signature ("").

States:
    IDLE --pointer_down--> DRAWING --pointer_up / pointer_leave--> IDLE
    any  --clear-->        IDLE

Restoration:
    Browsers may wipe a canvas (resize, lost context, tab switch). When the
    raster is found all-transparent on a focus or scroll event, the last
    committed artifact is painted back onto it.
"""

from __future__ import annotations

import base64
import binascii
import io
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from PIL import Image, ImageDraw, UnidentifiedImageError

from core.exceptions import ClientIntegrityError
from logging_config import get_logger
from models.waiver import BLANK_SIGNATURE


# Module logger
logger = get_logger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"
DEFAULT_WIDTH = 600
DEFAULT_HEIGHT = 200
STROKE_WIDTH = 3
INK = (0, 0, 0, 255)

Point = Tuple[float, float]


class SignatureState(Enum):
    """Drawing state of the surface."""

    IDLE = "idle"
    DRAWING = "drawing"


def encode_png_data_url(image: Image.Image) -> str:
    """Serialize a raster as a PNG data URL."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return DATA_URL_PREFIX + base64.b64encode(buf.getvalue()).decode("ascii")


def decode_png_data_url(artifact: str) -> bytes:
    """
    Extract the PNG bytes from a data URL.

    Raises:
        ValueError: Not a PNG data URL or not valid base64
    """
    if not artifact or not artifact.startswith(DATA_URL_PREFIX):
        raise ValueError("Signature is not a PNG data URL")
    try:
        return base64.b64decode(artifact[len(DATA_URL_PREFIX):], validate=True)
    except binascii.Error as e:
        raise ValueError(f"Signature data is not valid base64: {e}") from e


def load_signature_image(artifact: str) -> Image.Image:
    """
    Decode a signature artifact into an RGBA image.

    Raises:
        ValueError: The artifact cannot be decoded as an image
    """
    data = decode_png_data_url(artifact)
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Signature image cannot be read: {e}") from e


class SignatureCapture:
    """
    Signature pad state for one waiver form.

    Usage:
        pad = SignatureCapture(on_change=draft_setter)
        pad.handle_event({"type": "mousedown", "offsetX": 10, "offsetY": 20})
        pad.handle_event({"type": "mousemove", "offsetX": 80, "offsetY": 60})
        pad.handle_event({"type": "mouseup"})
        pad.value   # "data:image/png;base64,..."
    """

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        value: str = BLANK_SIGNATURE,
        on_change: Optional[Callable[[str], None]] = None,
        stroke_width: int = STROKE_WIDTH,
    ):
        """
        Args:
            width: Surface width in pixels (the container width in the browser)
            height: Surface height in pixels
            value: Previously committed artifact to show on the surface
            on_change: Called with the new artifact after every commit or clear
            stroke_width: Pen width in pixels
        """
        self.height = height
        self.stroke_width = stroke_width
        self.error: Optional[str] = None
        self._on_change = on_change
        self._state = SignatureState.IDLE
        self._path: List[Point] = []
        self._committed = value or BLANK_SIGNATURE
        self._destroyed = False
        self._raster: Optional[Image.Image] = self._blank_raster(width)

        if self._committed:
            self._paint(self._committed)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SignatureState:
        return self._state

    @property
    def value(self) -> str:
        """Last committed artifact, or "" when the pad is blank."""
        return self._committed

    @property
    def width(self) -> int:
        return self._raster.width if self._raster is not None else 0

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def is_raster_blank(self) -> bool:
        """True when every pixel of the raster is fully transparent."""
        if self._raster is None:
            return True
        return self._raster.getchannel("A").getbbox() is None

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> None:
        if self._destroyed:
            logger.warning("Pointer down on destroyed signature surface ignored")
            return
        self._state = SignatureState.DRAWING
        self._path = [(x, y)]

    def pointer_move(self, x: float, y: float) -> None:
        if self._state is not SignatureState.DRAWING or self._raster is None:
            return

        start = self._path[-1]
        end = (x, y)
        draw = ImageDraw.Draw(self._raster)
        draw.line([start, end], fill=INK, width=self.stroke_width, joint="curve")
        # Round caps: a dot of the pen width at each end of the segment
        radius = self.stroke_width / 2
        for px, py in (start, end):
            draw.ellipse([px - radius, py - radius, px + radius, py + radius], fill=INK)
        self._path.append(end)

    def pointer_up(self) -> None:
        self._end_stroke()

    def pointer_leave(self) -> None:
        self._end_stroke()

    def clear(self) -> None:
        """Erase the surface and commit the blank signature."""
        self._state = SignatureState.IDLE
        self._path = []
        if self._raster is not None:
            self._raster = self._blank_raster(self._raster.width)
        self._publish(BLANK_SIGNATURE)

    def _end_stroke(self) -> None:
        if self._state is not SignatureState.DRAWING:
            return
        self._state = SignatureState.IDLE
        self._path = []
        try:
            artifact = self._commit()
        except ClientIntegrityError as e:
            logger.warning(str(e))
            return
        self._publish(artifact)

    def _commit(self) -> str:
        if self._destroyed or self._raster is None:
            raise ClientIntegrityError("commit")
        if self.is_raster_blank():
            return BLANK_SIGNATURE
        return encode_png_data_url(self._raster)

    def _publish(self, artifact: str) -> None:
        self._committed = artifact
        if self._on_change is not None:
            self._on_change(artifact)

    # -------------------------------------------------------------------------
    # Browser events
    # -------------------------------------------------------------------------

    def handle_event(self, event: Mapping[str, Any]) -> bool:
        """
        Dispatch one forwarded browser event.

        Mouse events carry ``offsetX``/``offsetY`` relative to the canvas.
        Touch events carry ``touches`` (client coordinates) plus the canvas
        bounding ``rect``; the first touch point is mapped into the canvas.
        ``resize`` (with ``width``) and ``contextlost`` report that the
        browser wiped the canvas.

        Returns:
            Whether the browser must suppress its default scroll/gesture
            handling for this event
        """
        kind = str(event.get("type", "")).lower()

        if kind in ("mousedown", "touchstart", "pointerdown"):
            self.pointer_down(*self._coordinates(event))
        elif kind in ("mousemove", "touchmove", "pointermove"):
            self.pointer_move(*self._coordinates(event))
        elif kind in ("mouseup", "touchend", "pointerup"):
            self.pointer_up()
        elif kind in ("mouseleave", "touchcancel", "pointerleave", "pointercancel"):
            self.pointer_leave()
        elif kind in ("focus", "scroll"):
            self.ensure_restored()
        elif kind == "resize":
            self.resize(int(event.get("width", self.width)))
        elif kind == "contextlost":
            self.lose_context()
        else:
            logger.debug(f"Ignoring signature event '{kind}'")

        return kind.startswith("touch") and self._state is SignatureState.DRAWING

    @staticmethod
    def _coordinates(event: Mapping[str, Any]) -> Point:
        touches = event.get("touches")
        if touches:
            touch: Dict[str, Any] = touches[0]
            rect = event.get("rect") or {}
            return (
                float(touch.get("clientX", 0)) - float(rect.get("left", 0)),
                float(touch.get("clientY", 0)) - float(rect.get("top", 0)),
            )
        return float(event.get("offsetX", 0)), float(event.get("offsetY", 0))

    # -------------------------------------------------------------------------
    # Surface lifecycle
    # -------------------------------------------------------------------------

    def ensure_restored(self) -> bool:
        """
        Repaint the committed signature if the raster was wiped.

        Returns:
            True if the raster was repainted
        """
        if self._destroyed or not self._committed or not self.is_raster_blank():
            return False
        restored = self._paint(self._committed)
        if restored:
            logger.info("Signature surface restored from last commit")
        return restored

    def resize(self, width: int) -> None:
        """The canvas was resized, which wipes its pixels."""
        if self._destroyed:
            return
        self._raster = self._blank_raster(width)

    def lose_context(self) -> None:
        """The browser dropped the canvas context, which wipes its pixels."""
        if self._destroyed or self._raster is None:
            return
        self._raster = self._blank_raster(self._raster.width)

    def destroy(self) -> None:
        """Release the raster. Later commits are logged and ignored."""
        self._destroyed = True
        self._raster = None

    def _blank_raster(self, width: int) -> Image.Image:
        return Image.new("RGBA", (max(int(width), 1), self.height), (0, 0, 0, 0))

    def _paint(self, artifact: str) -> bool:
        try:
            image = load_signature_image(artifact)
        except ValueError as e:
            logger.warning(f"Could not paint signature: {e}")
            return False
        # crop() pads with transparent pixels when the artifact is smaller
        self._raster.alpha_composite(image.crop((0, 0, self._raster.width, self._raster.height)))
        return True
