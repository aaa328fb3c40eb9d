"""
Terms panel read tracking.

The customer must scroll the terms panel to the bottom before the form can
be submitted. The browser forwards the panel's scroll metrics; the gate
decides when the end has been reached and fires ``on_complete`` exactly once.

State:
    unread -> read    (one way; only reset() goes back)
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

DEFAULT_TOLERANCE_PX = 10


class TermsGate:
    """
    Tracks whether the terms panel was scrolled to its end.

    Usage:
        gate = TermsGate(on_complete=workflow.mark_terms_read)
        gate.measure(client_height=400, scroll_height=2400)
        gate.on_scroll(scroll_top=1995, client_height=400, scroll_height=2400)
        gate.has_read   # True
    """

    def __init__(
        self,
        on_complete: Optional[Callable[[], None]] = None,
        tolerance: int = DEFAULT_TOLERANCE_PX,
        complete_when_unscrollable: bool = True,
    ):
        """
        Args:
            on_complete: Called once, the first time the end is reached
            tolerance: Pixels short of the end that still count as the end
            complete_when_unscrollable: Treat a panel whose content fits
                without scrolling as read
        """
        self._on_complete = on_complete
        self.tolerance = tolerance
        self.complete_when_unscrollable = complete_when_unscrollable
        self._has_read = False
        self._lock = threading.Lock()

    @property
    def has_read(self) -> bool:
        return self._has_read

    def on_scroll(self, scroll_top: float, client_height: float, scroll_height: float) -> bool:
        """
        Handle a scroll event of the terms panel.

        Returns:
            Whether the terms have been read (after this event)
        """
        if scroll_top + client_height >= scroll_height - self.tolerance:
            self._complete("scrolled to end")
        return self._has_read

    def measure(self, client_height: float, scroll_height: float) -> bool:
        """
        Handle the panel being mounted or resized.

        A panel that cannot scroll never produces a scroll event, so this is
        the only chance to complete it.
        """
        if scroll_height <= client_height:
            if self.complete_when_unscrollable:
                self._complete("content fits without scrolling")
            else:
                logger.debug("Terms fit without scrolling; gate stays closed")
        return self._has_read

    def reset(self) -> None:
        with self._lock:
            self._has_read = False

    def _complete(self, reason: str) -> None:
        with self._lock:
            if self._has_read:
                return
            self._has_read = True

        logger.info(f"Terms read ({reason})")
        if self._on_complete is not None:
            self._on_complete()
