"""
Waiver form routes.

Handles:
- /waivers/<kind>                        - Open a new form (or resume the open one)
- /waivers/<kind>/<id>                   - Show the form
- /waivers/<kind>/<id>/submit            - Submit the form
- /waivers/<kind>/<id>/confirmation      - Success screen (starts the redirect timer)
- /waivers/<kind>/<id>/document          - Download the generated PDF
- /waivers/<kind>/<id>/regenerate        - Render the PDF again
- /waivers/<kind>/<id>/reset             - Start a fresh waiver of the same kind

Every handler follows post/redirect/get: outcomes are flashed and the form
page re-renders from the workflow's state.
"""

import io
from typing import Optional

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    send_file,
    session,
    url_for,
)

from core.exceptions import RenderError, UnknownWaiverKindError, WorkflowStateError
from logging_config import get_logger
from models.submission import SubmitOutcome, WorkflowState
from modules.terms import terms_for
from modules.waiver_kinds import WaiverKind, get_waiver_kind
from services.waiver_workflow import WaiverWorkflow


# Module logger
logger = get_logger(__name__)

waivers_bp = Blueprint("waivers", __name__)


def _kind_or_404(slug: str) -> WaiverKind:
    try:
        return get_waiver_kind(slug)
    except UnknownWaiverKindError as e:
        logger.warning(str(e))
        abort(404)


def _registry():
    return current_app.config["WORKFLOW_REGISTRY"]


def _load(kind: WaiverKind, workflow_id: str) -> Optional[WaiverWorkflow]:
    workflow = _registry().get(workflow_id)
    if workflow is None or workflow.kind is not kind:
        return None
    return workflow


def _expired(kind: WaiverKind):
    flash("This waiver form is no longer open. Please start again.", "warning")
    return redirect(url_for("waivers.start", kind=kind.slug))


def _form_url(workflow: WaiverWorkflow) -> str:
    return url_for("waivers.form", kind=workflow.kind.slug, workflow_id=workflow.id)


def _confirmation_url(workflow: WaiverWorkflow) -> str:
    return url_for("waivers.confirmation", kind=workflow.kind.slug, workflow_id=workflow.id)


@waivers_bp.route("/waivers/<kind>", methods=["GET"])
def start(kind: str):
    """
    Open a waiver form.

    A browser that already has an unsubmitted form of this kind gets it back,
    so reloading the page does not lose what was typed.
    """
    waiver_kind = _kind_or_404(kind)
    registry = _registry()

    open_forms = dict(session.get("workflows", {}))
    existing_id = open_forms.get(waiver_kind.slug)
    workflow = registry.get(existing_id) if existing_id else None

    if workflow is None or workflow.state is not WorkflowState.EDITING:
        if existing_id:
            registry.close(existing_id)
        workflow = registry.open(waiver_kind)
        open_forms[waiver_kind.slug] = workflow.id
        session["workflows"] = open_forms
        session.modified = True

    return redirect(_form_url(workflow))


@waivers_bp.route("/waivers/<kind>/<workflow_id>", methods=["GET"])
def form(kind: str, workflow_id: str):
    """Display the waiver form."""
    waiver_kind = _kind_or_404(kind)
    workflow = _load(waiver_kind, workflow_id)
    if workflow is None:
        return _expired(waiver_kind)

    if workflow.state is WorkflowState.REDIRECTED:
        return redirect(workflow.landing_url)
    if workflow.state is not WorkflowState.EDITING and workflow.state is not WorkflowState.SUBMITTING:
        return redirect(_confirmation_url(workflow))

    context = workflow.context
    return render_template(
        "waiver_form.html",
        workflow=workflow,
        kind=waiver_kind,
        draft=workflow.draft.to_dict(),
        errors=workflow.errors,
        terms=terms_for(waiver_kind.terms_template, context.organization_name),
        locations=context.locations,
        staff_options=workflow.staff_options(),
        blocked=workflow.blocked,
        submitting=workflow.state is WorkflowState.SUBMITTING,
    )


@waivers_bp.route("/waivers/<kind>/<workflow_id>/submit", methods=["POST"])
def submit(kind: str, workflow_id: str):
    """
    Submit the waiver.

    Flow:
    1. Posted fields go into the draft (cleaned by the field input filters)
    2. Workflow validates, stores the record and renders the PDF
    3. Outcome is flashed; success goes to the confirmation page
    """
    waiver_kind = _kind_or_404(kind)
    workflow = _load(waiver_kind, workflow_id)
    if workflow is None:
        return _expired(waiver_kind)

    try:
        workflow.update_fields(request.form.to_dict())
        result = workflow.submit()
    except WorkflowStateError as e:
        logger.info(f"Submit on workflow {workflow_id[:8]} rejected: {e.message}")
        return redirect(_confirmation_url(workflow))

    if result.outcome is SubmitOutcome.SUBMITTED:
        if result.notification:
            flash(result.notification, "error")
        return redirect(_confirmation_url(workflow))

    if result.outcome is SubmitOutcome.INVALID:
        flash("Please correct the highlighted fields.", "error")
    elif result.outcome is SubmitOutcome.PERSISTENCE_FAILED:
        flash(result.notification, "error")
    elif result.outcome is SubmitOutcome.BLOCKED:
        flash(result.notification, "warning")
    elif result.outcome is SubmitOutcome.BUSY:
        flash("Your waiver is already being submitted.", "info")

    return redirect(_form_url(workflow))


@waivers_bp.route("/waivers/<kind>/<workflow_id>/confirmation", methods=["GET"])
def confirmation(kind: str, workflow_id: str):
    """
    Display the submission result.

    With a generated PDF the workflow starts its redirect timer, the page
    downloads the document and polls the status endpoint until the timer
    fires. Without one the page stays up and offers to generate it again.
    """
    waiver_kind = _kind_or_404(kind)
    workflow = _load(waiver_kind, workflow_id)
    if workflow is None:
        return _expired(waiver_kind)

    if workflow.state in (WorkflowState.EDITING, WorkflowState.SUBMITTING):
        return redirect(_form_url(workflow))
    if workflow.state is WorkflowState.REDIRECTED:
        return redirect(workflow.landing_url)

    workflow.present()

    return render_template(
        "confirmation.html",
        workflow=workflow,
        kind=waiver_kind,
        redirecting=workflow.pdf_generated,
        redirect_delay=workflow.redirect_delay,
    )


@waivers_bp.route("/waivers/<kind>/<workflow_id>/document", methods=["GET"])
def document(kind: str, workflow_id: str):
    """Download the generated PDF."""
    waiver_kind = _kind_or_404(kind)
    workflow = _load(waiver_kind, workflow_id)
    if workflow is None:
        return _expired(waiver_kind)

    rendered = workflow.document
    if rendered is None:
        flash("No PDF is available for this waiver yet.", "warning")
        return redirect(_confirmation_url(workflow))

    return send_file(
        io.BytesIO(rendered.content),
        mimetype=rendered.mimetype,
        as_attachment=True,
        download_name=rendered.filename,
    )


@waivers_bp.route("/waivers/<kind>/<workflow_id>/regenerate", methods=["POST"])
def regenerate(kind: str, workflow_id: str):
    """Render the stored waiver again and return to the result screen."""
    waiver_kind = _kind_or_404(kind)
    workflow = _load(waiver_kind, workflow_id)
    if workflow is None:
        return _expired(waiver_kind)

    try:
        workflow.regenerate_document()
    except WorkflowStateError as e:
        logger.info(f"Regenerate on workflow {workflow_id[:8]} rejected: {e.message}")
        return redirect(_form_url(workflow))
    except RenderError:
        flash(workflow.notification, "error")
        return redirect(_confirmation_url(workflow))

    return redirect(_confirmation_url(workflow))


@waivers_bp.route("/waivers/<kind>/<workflow_id>/reset", methods=["POST"])
def reset(kind: str, workflow_id: str):
    """Clear the form for the next customer."""
    waiver_kind = _kind_or_404(kind)
    workflow = _load(waiver_kind, workflow_id)
    if workflow is None:
        return _expired(waiver_kind)

    try:
        workflow.reset()
    except WorkflowStateError as e:
        logger.info(f"Reset on workflow {workflow_id[:8]} rejected: {e.message}")

    return redirect(_form_url(workflow))
