"""
API routes (AJAX endpoints).

The browser forwards widget events here as JSON; the workflow does the work.

Handles:
- /api/waivers/<id>/fields               - Set one field (input filter, staff list)
- /api/waivers/<id>/terms/scroll         - Terms panel scroll metrics
- /api/waivers/<id>/terms/measure        - Terms panel mounted or resized
- /api/waivers/<id>/signature/events     - Pointer / touch / canvas events
- /api/waivers/<id>/signature/clear      - Clear the signature pad
- /api/waivers/<id>/signature/restore    - Repaint check on focus / scroll
- /api/waivers/<id>/status               - Poll workflow state (redirect)
- /api/waivers/<id>/teardown             - Page is being left
"""

from flask import Blueprint, current_app, request

from core.exceptions import WorkflowStateError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api/waivers")


def _workflow(workflow_id: str):
    return current_app.config["WORKFLOW_REGISTRY"].get(workflow_id)


def _not_found(workflow_id: str):
    return {"error": f"No open waiver {workflow_id}"}, 404


def _json() -> dict:
    return request.get_json(silent=True) or {}


def _number(data: dict, key: str) -> float:
    try:
        return float(data.get(key, 0))
    except (TypeError, ValueError):
        return 0.0


@api_bp.route("/<workflow_id>/fields", methods=["POST"])
def set_field(workflow_id: str):
    """
    Set one form field as the user types.

    Returns the value actually stored, so the browser can show the filtered
    input (e.g. digits only for phone numbers), plus the staff list for the
    current location.
    """
    workflow = _workflow(workflow_id)
    if workflow is None:
        return _not_found(workflow_id)

    data = _json()
    name = data.get("name", "")
    if name == "signature":
        return {"error": "The signature is set through the signature pad"}, 400

    try:
        stored = workflow.set_field(name, data.get("value"))
    except KeyError:
        return {"error": f"Unknown field: {name}"}, 400
    except WorkflowStateError as e:
        return {"error": e.message}, 409

    return {
        "name": name,
        "value": stored,
        "draft": workflow.draft.to_dict(),
        "staffOptions": workflow.staff_options(),
    }


@api_bp.route("/<workflow_id>/terms/scroll", methods=["POST"])
def terms_scroll(workflow_id: str):
    workflow = _workflow(workflow_id)
    if workflow is None:
        return _not_found(workflow_id)

    data = _json()
    has_read = workflow.terms.on_scroll(
        _number(data, "scrollTop"),
        _number(data, "clientHeight"),
        _number(data, "scrollHeight"),
    )
    return {"hasRead": has_read, "blocked": workflow.blocked}


@api_bp.route("/<workflow_id>/terms/measure", methods=["POST"])
def terms_measure(workflow_id: str):
    workflow = _workflow(workflow_id)
    if workflow is None:
        return _not_found(workflow_id)

    data = _json()
    has_read = workflow.terms.measure(
        _number(data, "clientHeight"),
        _number(data, "scrollHeight"),
    )
    return {"hasRead": has_read, "blocked": workflow.blocked}


@api_bp.route("/<workflow_id>/signature/events", methods=["POST"])
def signature_events(workflow_id: str):
    """
    Replay a batch of canvas events.

    Body: {"events": [{"type": "mousedown", "offsetX": 10, "offsetY": 12}, ...]}
    A single event object is accepted as well.
    """
    workflow = _workflow(workflow_id)
    if workflow is None:
        return _not_found(workflow_id)

    data = _json()
    events = data.get("events")
    if events is None:
        events = [data] if data else []

    try:
        prevent_default = workflow.signature_events(
            event for event in events if isinstance(event, dict)
        )
    except WorkflowStateError as e:
        return {"error": e.message}, 409

    return {
        "preventDefault": prevent_default,
        "state": workflow.signature.state.value,
        "hasSignature": bool(workflow.signature.value),
    }


@api_bp.route("/<workflow_id>/signature/clear", methods=["POST"])
def signature_clear(workflow_id: str):
    workflow = _workflow(workflow_id)
    if workflow is None:
        return _not_found(workflow_id)

    try:
        workflow.clear_signature()
    except WorkflowStateError as e:
        return {"error": e.message}, 409
    return {"hasSignature": False}


@api_bp.route("/<workflow_id>/signature/restore", methods=["POST"])
def signature_restore(workflow_id: str):
    """
    Repaint check after focus or scroll.

    Returns the committed artifact when the server-side surface had to be
    restored, so the browser can redraw its canvas from it.
    """
    workflow = _workflow(workflow_id)
    if workflow is None:
        return _not_found(workflow_id)

    restored = workflow.restore_signature()
    return {
        "restored": restored,
        "value": workflow.signature.value if restored else None,
    }


@api_bp.route("/<workflow_id>/status", methods=["GET"])
def status(workflow_id: str):
    """
    AJAX endpoint to poll the workflow state.

    The confirmation page polls this until ``state`` is "redirected" and then
    navigates to ``redirectUrl``.
    """
    workflow = _workflow(workflow_id)
    if workflow is None:
        return _not_found(workflow_id)
    return workflow.status()


@api_bp.route("/<workflow_id>/teardown", methods=["POST"])
def teardown(workflow_id: str):
    """Beacon sent when the page is left; releases the workflow."""
    registry = current_app.config["WORKFLOW_REGISTRY"]
    closed = registry.close(workflow_id)
    if closed:
        logger.info(f"Workflow {workflow_id[:8]} closed by browser")
    return {"closed": closed}
