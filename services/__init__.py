"""
Services layer for the waiver portal.

This module contains the business logic services:
- WaiverWorkflow: State machine for one open waiver form
- WorkflowRegistry: Open workflows shared across request threads

Thread Model:
    Main Thread (Flask)
    ├── Request threads (touch workflows through the registry)
    └── Redirect timer threads (one per presented workflow)

Each workflow guards its own state with an RLock.
"""

from .waiver_workflow import WaiverWorkflow, TimerScheduler
from .workflow_registry import WorkflowRegistry

__all__ = [
    "WaiverWorkflow",
    "TimerScheduler",
    "WorkflowRegistry",
]
