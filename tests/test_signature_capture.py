"""
Unit tests for the SignatureCapture pad.

Covers the Idle/Drawing state machine, the blank signature, browser event
mapping and restoration of a wiped raster.
"""

from unittest.mock import MagicMock

import pytest

from modules.signature_capture import (
    DATA_URL_PREFIX,
    SignatureCapture,
    SignatureState,
    load_signature_image,
)

from conftest import draw_signature


@pytest.fixture
def on_change():
    return MagicMock()


@pytest.fixture
def pad(on_change):
    return SignatureCapture(on_change=on_change)


class TestDrawing:
    """Stroke lifecycle."""

    def test_new_pad_is_blank(self, pad):
        assert pad.value == ""
        assert pad.state is SignatureState.IDLE
        assert pad.is_raster_blank()

    def test_stroke_commits_png(self, pad, on_change):
        artifact = draw_signature(pad)

        assert artifact.startswith(DATA_URL_PREFIX)
        assert pad.state is SignatureState.IDLE
        on_change.assert_called_once_with(artifact)

    def test_artifact_has_surface_size(self, pad):
        image = load_signature_image(draw_signature(pad))
        assert image.size == (600, 200)

    def test_stroke_pixels_are_ink(self, pad):
        image = load_signature_image(draw_signature(pad))

        assert image.getpixel((10, 20))[3] == 255
        assert image.getpixel((590, 190))[3] == 0

    def test_move_while_idle_is_ignored(self, pad, on_change):
        pad.pointer_move(50, 50)

        assert pad.is_raster_blank()
        on_change.assert_not_called()

    def test_tap_without_movement_commits_blank(self, pad, on_change):
        pad.pointer_down(10, 10)
        assert pad.state is SignatureState.DRAWING

        pad.pointer_up()
        on_change.assert_called_once_with("")

    def test_leaving_surface_ends_stroke(self, pad, on_change):
        pad.pointer_down(10, 10)
        pad.pointer_move(60, 60)
        pad.pointer_leave()

        assert pad.state is SignatureState.IDLE
        assert pad.value.startswith(DATA_URL_PREFIX)

    def test_up_while_idle_is_ignored(self, pad, on_change):
        pad.pointer_up()
        on_change.assert_not_called()

    def test_clear(self, pad, on_change):
        draw_signature(pad)
        on_change.reset_mock()

        pad.clear()

        assert pad.value == ""
        assert pad.is_raster_blank()
        on_change.assert_called_once_with("")

    def test_clear_while_drawing_returns_to_idle(self, pad):
        pad.pointer_down(10, 10)
        pad.clear()
        assert pad.state is SignatureState.IDLE


class TestBrowserEvents:
    """Mouse and touch event dispatch."""

    def test_mouse_events(self, pad):
        assert pad.handle_event({"type": "mousedown", "offsetX": 10, "offsetY": 20}) is False
        pad.handle_event({"type": "mousemove", "offsetX": 100, "offsetY": 50})
        pad.handle_event({"type": "mouseup"})

        image = load_signature_image(pad.value)
        assert image.getpixel((10, 20))[3] == 255

    def test_touch_maps_through_bounding_box(self, pad):
        rect = {"left": 100, "top": 100}

        prevent = pad.handle_event({
            "type": "touchstart",
            "touches": [{"clientX": 110, "clientY": 120}],
            "rect": rect,
        })
        assert prevent is True

        assert pad.handle_event({
            "type": "touchmove",
            "touches": [{"clientX": 200, "clientY": 150}],
            "rect": rect,
        }) is True
        assert pad.handle_event({"type": "touchend"}) is False

        image = load_signature_image(pad.value)
        assert image.getpixel((10, 20))[3] == 255
        assert image.getpixel((100, 50))[3] == 255

    def test_pointer_aliases(self, pad):
        pad.handle_event({"type": "pointerdown", "offsetX": 5, "offsetY": 5})
        pad.handle_event({"type": "pointermove", "offsetX": 50, "offsetY": 5})
        pad.handle_event({"type": "pointerup"})
        assert pad.value.startswith(DATA_URL_PREFIX)

    def test_unknown_event_is_ignored(self, pad):
        assert pad.handle_event({"type": "wheel"}) is False
        assert pad.state is SignatureState.IDLE


class TestRestoration:
    """Repainting after the browser wipes the canvas."""

    def test_restore_after_context_loss(self, pad):
        draw_signature(pad)
        pad.lose_context()
        assert pad.is_raster_blank()

        assert pad.ensure_restored() is True
        assert not pad.is_raster_blank()

    def test_restore_after_resize(self, pad):
        draw_signature(pad)
        pad.handle_event({"type": "resize", "width": 800})

        assert pad.width == 800
        assert pad.is_raster_blank()

        pad.handle_event({"type": "focus"})
        assert not pad.is_raster_blank()

    def test_no_restore_when_raster_intact(self, pad):
        draw_signature(pad)
        assert pad.ensure_restored() is False

    def test_no_restore_without_commit(self, pad):
        pad.lose_context()
        assert pad.ensure_restored() is False

    def test_initial_value_is_painted(self, pad):
        artifact = draw_signature(pad)
        restored = SignatureCapture(value=artifact)

        assert restored.value == artifact
        assert not restored.is_raster_blank()

    def test_undecodable_initial_value(self):
        pad = SignatureCapture(value="data:image/png;base64,AAAA")
        assert pad.is_raster_blank()


class TestDestroy:
    """Use after the surface is released."""

    def test_commit_after_destroy_is_a_no_op(self, pad, on_change):
        pad.pointer_down(10, 10)
        pad.pointer_move(80, 40)
        pad.destroy()

        pad.pointer_up()

        assert pad.is_destroyed
        assert pad.value == ""
        on_change.assert_not_called()

    def test_drawing_after_destroy_is_ignored(self, pad, on_change):
        pad.destroy()
        pad.pointer_down(10, 10)
        pad.pointer_up()

        assert pad.state is SignatureState.IDLE
        on_change.assert_not_called()

    def test_no_restore_after_destroy(self, pad):
        draw_signature(pad)
        pad.destroy()
        assert pad.ensure_restored() is False
