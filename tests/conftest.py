"""Shared fixtures for the waiver portal tests."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from core.record_store import InMemoryRecordStore
from modules.document_renderer import DocumentRenderer
from modules.locations import PortalContext
from modules.signature_capture import SignatureCapture


FIXED_NOW = datetime(2026, 10, 19, 15, 4, 5, tzinfo=ZoneInfo("America/New_York"))
TODAY = "2026-10-19"

REPAIR_FIELDS = {
    "location": "Augusta",
    "deviceModel": "iPhone 13",
    "partBeingRepaired": "Screen",
    "fullName": "Jane Doe",
    "phoneNumber": "(555) 123-4567",
    "technicianName": "Shan",
    "repairAmount": "$89.99",
    "additionalNotes": "",
}


class ManualHandle:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Redirect scheduler driven by the test instead of a clock."""

    def __init__(self):
        self.scheduled = []

    def schedule(self, delay, callback):
        handle = ManualHandle(delay, callback)
        self.scheduled.append(handle)
        return handle

    def fire_all(self):
        for handle in list(self.scheduled):
            if not handle.cancelled:
                handle.callback()


def draw_signature(pad: SignatureCapture) -> str:
    """Draw one stroke on a pad and return the committed artifact."""
    pad.pointer_down(10, 20)
    pad.pointer_move(120, 60)
    pad.pointer_move(200, 40)
    pad.pointer_up()
    return pad.value


@pytest.fixture
def context():
    return PortalContext()


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def renderer(context):
    return DocumentRenderer(context, clock=lambda: FIXED_NOW)


@pytest.fixture
def signature_artifact():
    return draw_signature(SignatureCapture())
