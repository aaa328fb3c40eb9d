"""
Registry of open waiver workflows.

Flask handles each request on a worker thread, so the workflows a browser
talks to live here between requests, keyed by workflow id. The id travels in
the URL; the session remembers which workflow belongs to the browser.

Thread Safety:
    - Uses threading.Lock for all dictionary access
    - Workflows guard their own state; the registry only stores them

Usage:
    # At app startup
    registry = WorkflowRegistry(factory)

    # Opening a form (request thread)
    workflow = registry.open(REPAIR)

    # Later requests
    workflow = registry.get(workflow_id)

    # Browser left the page
    registry.close(workflow_id)
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional

from logging_config import get_logger
from models.submission import WorkflowState
from modules.waiver_kinds import WaiverKind
from .waiver_workflow import WaiverWorkflow


# Module logger
logger = get_logger(__name__)

WorkflowFactory = Callable[[WaiverKind], WaiverWorkflow]


class WorkflowRegistry:
    """
    Thread-safe storage for open workflows.

    Finished workflows (torn down or redirected) and workflows nobody has
    touched for ``idle_timeout`` seconds are pruned whenever a new one is
    opened. A page closed without its teardown beacon (crash, killed tab)
    is therefore released once it goes idle.
    """

    def __init__(self, factory: WorkflowFactory, idle_timeout: Optional[float] = None):
        """
        Args:
            factory: Builds a new workflow for a waiver kind
            idle_timeout: Seconds without requests before an open workflow
                is torn down; None keeps idle workflows
        """
        self._factory = factory
        self._idle_timeout = idle_timeout
        self._workflows: Dict[str, WaiverWorkflow] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._workflows)

    def open(self, kind: WaiverKind) -> WaiverWorkflow:
        """Create and register a workflow for ``kind``."""
        self.prune()
        workflow = self._factory(kind)
        with self._lock:
            self._workflows[workflow.id] = workflow
        logger.info(f"Registered workflow {workflow.id[:8]} ({kind.slug})")
        return workflow

    def get(self, workflow_id: str) -> Optional[WaiverWorkflow]:
        """Workflow with this id, or None if it is unknown or closed. Counts as activity."""
        with self._lock:
            workflow = self._workflows.get(workflow_id)
        if workflow is not None:
            workflow.touch()
        return workflow

    def close(self, workflow_id: str) -> bool:
        """
        Tear down and forget a workflow.

        Returns:
            True if a workflow was closed
        """
        with self._lock:
            workflow = self._workflows.pop(workflow_id, None)
        if workflow is None:
            return False
        workflow.teardown()
        logger.debug(f"Closed workflow {workflow_id[:8]}")
        return True

    def prune(self) -> int:
        """
        Drop finished and idle workflows.

        Returns:
            Number of workflows removed
        """
        with self._lock:
            finished: List[str] = [
                wid for wid, wf in self._workflows.items() if self._is_finished(wf)
            ]
            removed = [self._workflows.pop(wid) for wid in finished]

        for workflow in removed:
            workflow.teardown()
        if removed:
            logger.info(f"Pruned {len(removed)} finished or idle workflow(s)")
        return len(removed)

    def _is_finished(self, workflow: WaiverWorkflow) -> bool:
        if workflow.is_torn_down or workflow.state is WorkflowState.REDIRECTED:
            return True
        return (
            self._idle_timeout is not None
            and workflow.idle_seconds() > self._idle_timeout
        )

    def shutdown(self) -> int:
        """
        Tear down every open workflow (called at app shutdown).

        Returns:
            Number of workflows closed
        """
        with self._lock:
            workflows = list(self._workflows.values())
            self._workflows.clear()

        for workflow in workflows:
            workflow.teardown()
        logger.info(f"Closed {len(workflows)} open workflow(s)")
        return len(workflows)
