"""
Waiver submission workflow.

One WaiverWorkflow exists per open waiver form. It owns the draft, the terms
gate and the signature pad, and drives a submission through:

    EDITING -> SUBMITTING -> SUBMITTED -> PRESENTING -> REDIRECTED

Flow:
    1. Customer scrolls the terms to the end (TermsGate unblocks submit)
    2. Customer fills the form and signs (WaiverDraft / SignatureCapture)
    3. submit(): validate -> RecordStore.insert -> DocumentRenderer.render
    4. present(): result screen; redirect timer armed once a PDF exists
    5. Timer fires after the redirect delay -> REDIRECTED, on_redirect(url)

Failure handling:
    - Validation errors: stay EDITING, field errors set, nothing stored
    - Store error: back to EDITING, "Error saving data" notification,
      draft kept so the customer can resubmit
    - Render error: SUBMITTED without a document; the record is already
      stored, so the customer can only regenerate the PDF

Thread Safety:
    - Every state change happens under an RLock
    - The lock is released during the record store insert, so a second
      submit() arriving meanwhile sees SUBMITTING and gets BUSY
    - teardown() marks the workflow dead; late store results and timer
      callbacks are ignored afterwards
    - Signature pad batches run under the same lock and only while EDITING

Usage:
    workflow = WaiverWorkflow(REPAIR, context, store)
    workflow.terms.on_scroll(1995, 400, 2400)
    workflow.update_fields({"location": "Augusta", ...})
    workflow.signature_events([{...}])
    result = workflow.submit()
    if result.outcome is SubmitOutcome.SUBMITTED:
        workflow.present()
"""

from __future__ import annotations

import threading
import time
import uuid
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from core.exceptions import (
    PersistenceError,
    RenderError,
    ValidationError,
    WorkflowStateError,
)
from core.record_store import RecordStore, StoreResult
from logging_config import get_workflow_logger
from models.submission import (
    RenderedDocument,
    SubmissionResult,
    SubmitOutcome,
    WorkflowState,
)
from models.waiver import ValidatedWaiver, WaiverDraft
from modules.document_renderer import DocumentRenderer
from modules.formatting import today_in
from modules.locations import PortalContext
from modules.signature_capture import DEFAULT_HEIGHT, DEFAULT_WIDTH, SignatureCapture
from modules.terms_gate import DEFAULT_TOLERANCE_PX, TermsGate
from modules.validator import FormValidator
from modules.waiver_kinds import WaiverKind


DEFAULT_REDIRECT_DELAY = 3.0

BLOCKED_MESSAGE = "Please read the terms and conditions before submitting."
SAVE_ERROR_MESSAGE = (
    "Error saving data: There was an error saving your waiver data. Please try again."
)
RENDER_ERROR_MESSAGE = "There was an error generating the PDF. Please try again."


class TimerScheduler:
    """Runs redirect callbacks on daemon ``threading.Timer`` threads."""

    def schedule(self, delay: float, callback: Callable[[], None]):
        """
        Run ``callback`` after ``delay`` seconds.

        Returns:
            Handle with a ``cancel()`` method
        """
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class WaiverWorkflow:
    """
    State machine for one waiver form.

    Attributes:
        id: Workflow UUID (used in URLs and logs)
        kind: Waiver kind being filled in
        draft: Current form state
        terms: Terms panel gate
        signature: Signature pad
        errors: Field -> message from the last validation
        notification: Last transient message for the user
    """

    def __init__(
        self,
        kind: WaiverKind,
        context: PortalContext,
        store: RecordStore,
        renderer: Optional[DocumentRenderer] = None,
        scheduler: Optional[TimerScheduler] = None,
        redirect_delay: float = DEFAULT_REDIRECT_DELAY,
        landing_url: str = "/",
        on_redirect: Optional[Callable[[str], None]] = None,
        terms_tolerance: int = DEFAULT_TOLERANCE_PX,
        unscrollable_terms_count_as_read: bool = True,
        signature_width: int = DEFAULT_WIDTH,
        signature_height: int = DEFAULT_HEIGHT,
        today: Optional[Callable[[], str]] = None,
        workflow_id: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.id = workflow_id or str(uuid.uuid4())
        self.kind = kind
        self.context = context
        self.redirect_delay = redirect_delay
        self.landing_url = landing_url

        self._store = store
        self._renderer = renderer or DocumentRenderer(context)
        self._scheduler = scheduler or TimerScheduler()
        self._on_redirect = on_redirect
        self._today = today or (lambda: today_in(context.timezone))
        self._validator = FormValidator(kind, context)
        self._lock = threading.RLock()
        self._log = get_workflow_logger(self.id)
        self._clock = clock
        self._last_active = clock()

        self._state = WorkflowState.EDITING
        self._attempt = 0
        self._timer = None
        self._torn_down = False

        self.draft = WaiverDraft(kind, self._today())
        self.errors: Dict[str, str] = {}
        self.notification: Optional[str] = None
        self.validated: Optional[ValidatedWaiver] = None
        self.document: Optional[RenderedDocument] = None
        self.redirect_url: Optional[str] = None

        self.terms = TermsGate(
            on_complete=self._on_terms_read,
            tolerance=terms_tolerance,
            complete_when_unscrollable=unscrollable_terms_count_as_read,
        )
        self.signature = SignatureCapture(
            width=signature_width,
            height=signature_height,
            on_change=self._on_signature_change,
        )

        self._log.info(f"Opened {kind.slug} waiver for {self.draft.date}")

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def blocked(self) -> bool:
        """Submit is disabled until the terms have been read."""
        return not self.terms.has_read

    @property
    def pdf_generated(self) -> bool:
        return self.document is not None

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    def touch(self) -> None:
        """Record that the browser talked to this workflow."""
        self._last_active = self._clock()

    def idle_seconds(self) -> float:
        """Seconds since the last request for this workflow."""
        return self._clock() - self._last_active

    def status(self) -> Dict[str, Any]:
        """Snapshot for the status polling endpoint."""
        with self._lock:
            return {
                "id": self.id,
                "kind": self.kind.slug,
                "state": self._state.value,
                "blocked": self.blocked,
                "pdfGenerated": self.pdf_generated,
                "redirectUrl": self.redirect_url,
            }

    def staff_options(self) -> List[str]:
        """Staff members selectable for the currently chosen location."""
        return self.context.employees_for(self.draft.location)

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def set_field(self, name: str, value: Optional[str]) -> str:
        """
        Change one form field.

        Raises:
            WorkflowStateError: Form is no longer editable
            KeyError: Unknown field
        """
        with self._lock:
            self._require("set field", WorkflowState.EDITING)
            stored = self.draft.set_field(name, value)
            self.errors.pop(name, None)
            return stored

    def update_fields(self, values: Mapping[str, Optional[str]]) -> None:
        """
        Apply a posted form. The signature is owned by the pad and skipped.

        Raises:
            WorkflowStateError: Form is no longer editable
        """
        with self._lock:
            self._require("update fields", WorkflowState.EDITING)
            fields = {k: v for k, v in values.items() if k != "signature"}
            self.draft.update(fields)

    def _on_terms_read(self) -> None:
        self._log.info("Terms read; submit unblocked")

    def signature_events(self, events: Iterable[Mapping[str, Any]]) -> bool:
        """
        Replay a batch of pad events as one unit.

        Batches from concurrent requests never interleave, so a stroke is
        always drawn from its own points.

        Returns:
            True if the browser should suppress the last event's default
            action (touch scrolling)

        Raises:
            WorkflowStateError: Form is no longer editable
        """
        with self._lock:
            self._require("sign", WorkflowState.EDITING)
            prevent_default = False
            for event in events:
                prevent_default = self.signature.handle_event(event)
            return prevent_default

    def clear_signature(self) -> None:
        """
        Raises:
            WorkflowStateError: Form is no longer editable
        """
        with self._lock:
            self._require("clear signature", WorkflowState.EDITING)
            self.signature.clear()

    def restore_signature(self) -> bool:
        """Repaint a lost pad surface from the committed artifact."""
        with self._lock:
            return self.signature.ensure_restored()

    def _on_signature_change(self, artifact: str) -> None:
        with self._lock:
            self.draft.set_field("signature", artifact)
            if artifact:
                self.errors.pop("signature", None)

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def submit(self) -> SubmissionResult:
        """
        Validate, store and render the waiver.

        Returns:
            SubmissionResult describing what happened

        Raises:
            WorkflowStateError: The waiver was already submitted
        """
        with self._lock:
            if self._state is WorkflowState.SUBMITTING:
                self._log.info("Submit ignored; submission already in flight")
                return SubmissionResult(SubmitOutcome.BUSY)

            self._require("submit", WorkflowState.EDITING)

            if self.blocked:
                self._log.info("Submit blocked; terms not read")
                self.notification = BLOCKED_MESSAGE
                return SubmissionResult(SubmitOutcome.BLOCKED, notification=BLOCKED_MESSAGE)

            try:
                validated = self._validator.validate(self.draft).unwrap()
            except ValidationError as e:
                self.errors = e.errors
                self.notification = None
                self._log.info(f"Validation failed: {', '.join(sorted(e.errors))}")
                return SubmissionResult(SubmitOutcome.INVALID, errors=dict(e.errors))

            self.errors = {}
            self.notification = None
            self._attempt += 1
            attempt = self._attempt
            self._transition(WorkflowState.SUBMITTING)

        # Blocking call; lock released so status polls and BUSY checks proceed
        store_result = self._insert(validated)

        with self._lock:
            if self._torn_down or attempt != self._attempt:
                self._log.warning("Ignoring record store result for a closed workflow")
                outcome = SubmitOutcome.SUBMITTED if store_result.ok else SubmitOutcome.PERSISTENCE_FAILED
                return SubmissionResult(outcome)

            if not store_result.ok:
                error = PersistenceError(self.kind.collection, store_result.error)
                self._log.error(str(error))
                self.notification = SAVE_ERROR_MESSAGE
                self._transition(WorkflowState.EDITING)
                return SubmissionResult(
                    SubmitOutcome.PERSISTENCE_FAILED, notification=SAVE_ERROR_MESSAGE
                )

            self.validated = validated
            self._transition(WorkflowState.SUBMITTED)

            try:
                self.document = self._renderer.render(validated)
            except RenderError as e:
                self._log.error(f"Record stored but document failed: {e}")
                self.document = None
                self.notification = RENDER_ERROR_MESSAGE
            else:
                self.notification = None

            return SubmissionResult(
                SubmitOutcome.SUBMITTED,
                notification=self.notification,
                document=self.document,
            )

    def _insert(self, validated: ValidatedWaiver) -> StoreResult:
        try:
            return self._store.insert(self.kind.collection, validated.to_record())
        except Exception as e:
            # Store clients should report errors in the result; treat a raise the same way
            return StoreResult.failure(str(e))

    # -------------------------------------------------------------------------
    # After submission
    # -------------------------------------------------------------------------

    def present(self) -> None:
        """
        Show the result screen.

        The redirect timer is armed only once a document exists; without one
        the screen stays up so the customer can regenerate the PDF, and a
        successful regenerate arms the timer. Calling it again while
        presenting is a no-op.

        Raises:
            WorkflowStateError: Nothing has been submitted
        """
        with self._lock:
            if self._state is WorkflowState.PRESENTING:
                return
            self._require("present", WorkflowState.SUBMITTED)
            self._transition(WorkflowState.PRESENTING)
            if self.pdf_generated:
                self._arm_redirect()
            else:
                self._log.info("Presenting without a document; redirect waits for regenerate")

    def _arm_redirect(self) -> None:
        self._timer = self._scheduler.schedule(self.redirect_delay, self._fire_redirect)

    def _fire_redirect(self) -> None:
        with self._lock:
            if self._torn_down or self._state is not WorkflowState.PRESENTING:
                self._log.debug("Redirect timer fired after workflow moved on; ignored")
                return
            self._timer = None
            self.redirect_url = self.landing_url
            self._transition(WorkflowState.REDIRECTED)
            callback = self._on_redirect

        if callback is not None:
            callback(self.landing_url)

    def regenerate_document(self) -> RenderedDocument:
        """
        Render the stored waiver again. The record store is not touched.

        Raises:
            WorkflowStateError: Nothing has been submitted
            RenderError: Rendering failed again
        """
        with self._lock:
            self._require("regenerate document", WorkflowState.SUBMITTED, WorkflowState.PRESENTING)
            try:
                self.document = self._renderer.render(self.validated)
            except RenderError:
                self.notification = RENDER_ERROR_MESSAGE
                raise
            self.notification = None
            self._log.info(f"Regenerated {self.document.filename}")
            if self._state is WorkflowState.PRESENTING and self._timer is None:
                self._arm_redirect()
            return self.document

    def reset(self) -> None:
        """
        Start a fresh waiver of the same kind.

        Raises:
            WorkflowStateError: Nothing has been submitted
        """
        with self._lock:
            self._require("reset", WorkflowState.SUBMITTED, WorkflowState.PRESENTING)
            self._cancel_timer()
            self.draft = WaiverDraft(self.kind, self._today())
            self.terms.reset()
            self.signature.clear()
            self.errors = {}
            self.notification = None
            self.validated = None
            self.document = None
            self.redirect_url = None
            self._transition(WorkflowState.EDITING)

    def teardown(self) -> None:
        """Release the workflow. Pending timers and store results are dropped."""
        with self._lock:
            if self._torn_down:
                return
            self._torn_down = True
            self._cancel_timer()
            self.signature.destroy()
            self._log.info(f"Torn down in state {self._state.value}")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require(self, action: str, *states: WorkflowState) -> None:
        if self._state not in states:
            raise WorkflowStateError(action, self._state.value)

    def _transition(self, new_state: WorkflowState) -> None:
        self._log.info(f"{self._state.value} -> {new_state.value}")
        self._state = new_state

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
