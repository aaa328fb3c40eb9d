"""
Core module for the waiver portal.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- record_store: Clients for the shared record store (Supabase / in-memory)
"""

from .exceptions import (
    WaiverPortalError,
    ConfigurationError,
    UnknownWaiverKindError,
    WorkflowStateError,
    ValidationError,
    PersistenceError,
    RenderError,
    ClientIntegrityError,
)
from .record_store import (
    RecordStore,
    StoreResult,
    SupabaseRecordStore,
    InMemoryRecordStore,
    create_record_store,
)

__all__ = [
    "WaiverPortalError",
    "ConfigurationError",
    "UnknownWaiverKindError",
    "WorkflowStateError",
    "ValidationError",
    "PersistenceError",
    "RenderError",
    "ClientIntegrityError",
    "RecordStore",
    "StoreResult",
    "SupabaseRecordStore",
    "InMemoryRecordStore",
    "create_record_store",
]
