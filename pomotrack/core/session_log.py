"""Append-only log of finished sessions.

The log owns the ordered sequence of :class:`SessionRecord` objects
(insertion order is completion order) and mirrors it to the persistence
gateway.  When the gateway fails the log keeps working from memory.
"""

import dataclasses
import logging
import threading
from typing import Iterator, Optional

from pomotrack.core.models import SessionRecord, next_session_id
from pomotrack.persistence.base import MAX_HISTORY, PersistenceGateway

logger = logging.getLogger(__name__)


class SessionLog:
    """In-memory session history backed by an optional store."""

    def __init__(self, store: Optional[PersistenceGateway] = None) -> None:
        self.store = store
        self._records: list[SessionRecord] = []
        self._lock = threading.Lock()

    def __iter__(self) -> Iterator[SessionRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> tuple[SessionRecord, ...]:
        with self._lock:
            return tuple(self._records)

    def load(self) -> None:
        """Replace the in-memory history with what the store holds."""
        if self.store is None:
            return
        with self._lock:
            try:
                self._records = list(self.store.load_history())
            except Exception:
                logger.exception("Failed to load session history; starting empty")

    def append(self, record: SessionRecord) -> SessionRecord:
        """Append *record* and return it with its assigned id."""
        with self._lock:
            if self.store is not None:
                try:
                    history = self.store.append_session(record)
                    self._records = list(history)
                    return self._records[-1]
                except Exception:
                    logger.exception("Failed to persist session; keeping it in memory only")

            last_id = self._records[-1].id if self._records else 0
            stored = dataclasses.replace(record, id=next_session_id(last_id, record.timestamp))
            self._records.append(stored)
            if len(self._records) > MAX_HISTORY:
                del self._records[: len(self._records) - MAX_HISTORY]
            return stored

    def clear(self) -> None:
        with self._lock:
            if self.store is not None:
                try:
                    self.store.clear_history()
                except Exception:
                    logger.exception("Failed to clear stored session history")
            self._records = []

    def replace(self, records: list[SessionRecord]) -> None:
        """Adopt *records* wholesale, e.g. after an import."""
        with self._lock:
            self._records = list(records[-MAX_HISTORY:])

    def recent(self, limit: int = 10) -> list[SessionRecord]:
        """Return the last *limit* records, newest first."""
        if limit <= 0:
            return []
        with self._lock:
            return list(reversed(self._records[-limit:]))
