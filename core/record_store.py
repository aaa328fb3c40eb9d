"""
Record store clients.

The record store is the shared backend that keeps waiver records in named
collections (``repair_waivers``, ``selling_waivers``, ``purchase_waivers``).
The waiver workflow only ever inserts; reading, searching and editing records
belong to the admin side of the portal.

Every client answers an insert with a ``StoreResult`` carrying either the
stored rows or an error message, never both. Backend exceptions are turned
into an error result at this boundary so the workflow has a single failure
path to handle.

Backends:
    SupabaseRecordStore - the shared Supabase project (production)
    InMemoryRecordStore - in-process lists (development and tests)

Usage:
    store = create_record_store(app.config)
    result = store.insert("repair_waivers", {"full_name": "Jane Doe", ...})
    if result.error:
        # show "Error saving data", keep the draft
"""

from __future__ import annotations

import copy
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import ConfigurationError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class StoreResult:
    """
    Outcome of a record store insert.

    Exactly one of ``data`` / ``error`` is meaningful: a successful insert has
    ``error is None`` and the stored rows in ``data``.
    """

    data: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, rows: List[Dict[str, Any]]) -> "StoreResult":
        return cls(data=list(rows), error=None)

    @classmethod
    def failure(cls, message: str) -> "StoreResult":
        return cls(data=[], error=message or "Unknown record store error")


class RecordStore(ABC):
    """Create operation against a named collection."""

    @abstractmethod
    def insert(self, collection: str, payload: Mapping[str, Any]) -> StoreResult:
        """
        Insert one record.

        Args:
            collection: Collection (table) name, e.g. "repair_waivers"
            payload: Column -> value mapping

        Returns:
            StoreResult with the stored row(s) or an error message
        """


class SupabaseRecordStore(RecordStore):
    """
    Record store backed by a Supabase project.

    The supabase client is created once; each insert is a single PostgREST
    round trip. Retries are left to the client library.
    """

    def __init__(self, url: str, key: str, client=None):
        """
        Args:
            url: Supabase project URL
            key: API key (anon or service role)
            client: Pre-built supabase Client (tests inject a mock)
        """
        if client is None:
            if not url:
                raise ConfigurationError("Supabase URL is not configured", "SUPABASE_URL")
            if not key:
                raise ConfigurationError("Supabase key is not configured", "SUPABASE_KEY")

            from supabase import create_client

            client = create_client(url, key)

        self._client = client
        logger.info("Supabase record store ready")

    def insert(self, collection: str, payload: Mapping[str, Any]) -> StoreResult:
        try:
            response = self._client.table(collection).insert(dict(payload)).execute()
        except Exception as e:
            # postgrest raises APIError, httpx raises transport errors
            logger.error(f"Insert into {collection} failed: {e}")
            return StoreResult.failure(str(e))

        rows = list(response.data or [])
        logger.info(f"Inserted {len(rows)} row(s) into {collection}")
        return StoreResult.success(rows)


class InMemoryRecordStore(RecordStore):
    """
    Record store that keeps rows in process memory.

    Rows get an ``id`` and ``created_at`` like the Supabase tables do.
    ``fail_next(message)`` makes the next insert return an error, which is
    handy for exercising the "Error saving data" path by hand.
    """

    def __init__(self):
        self._collections: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()
        self._pending_failure: Optional[str] = None

    def insert(self, collection: str, payload: Mapping[str, Any]) -> StoreResult:
        with self._lock:
            if self._pending_failure is not None:
                message, self._pending_failure = self._pending_failure, None
                logger.warning(f"Simulated insert failure for {collection}: {message}")
                return StoreResult.failure(message)

            row = dict(payload)
            row["id"] = str(uuid.uuid4())
            row["created_at"] = datetime.now(timezone.utc).isoformat()
            self._collections.setdefault(collection, []).append(row)

        logger.info(f"Stored record {row['id'][:8]} in {collection}")
        return StoreResult.success([copy.deepcopy(row)])

    def fail_next(self, message: str = "Simulated record store outage") -> None:
        with self._lock:
            self._pending_failure = message

    def records(self, collection: str) -> List[Dict[str, Any]]:
        """Copies of all rows stored in ``collection`` (oldest first)."""
        with self._lock:
            return copy.deepcopy(self._collections.get(collection, []))

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collections.get(collection, []))


def create_record_store(config: Mapping[str, Any]) -> RecordStore:
    """
    Build the record store selected by RECORD_STORE_BACKEND.

    Raises:
        ConfigurationError: Unknown backend or missing Supabase credentials
    """
    backend = str(config.get("RECORD_STORE_BACKEND", "memory")).lower()

    if backend == "supabase":
        return SupabaseRecordStore(
            url=config.get("SUPABASE_URL", ""),
            key=config.get("SUPABASE_KEY", ""),
        )

    if backend == "memory":
        logger.warning("Using in-memory record store - records are lost on restart")
        return InMemoryRecordStore()

    raise ConfigurationError(
        f"Unknown record store backend: {backend}", "RECORD_STORE_BACKEND"
    )
