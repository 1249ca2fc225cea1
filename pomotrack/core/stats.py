"""Cumulative Pomodoro counters and their persistence."""

import dataclasses
import logging
import threading
from typing import Optional

from pomotrack.core.models import StatsSnapshot
from pomotrack.persistence.base import PersistenceGateway

logger = logging.getLogger(__name__)


class StatsAggregator:
    """Owns the :class:`StatsSnapshot` and writes it back on every change.

    The snapshot is always saved whole.  A failing store is logged and the
    in-memory counters stay authoritative.  Changes and their writes happen
    under one lock, so the stored snapshot is never older than memory.
    """

    def __init__(
        self,
        store: Optional[PersistenceGateway] = None,
        snapshot: Optional[StatsSnapshot] = None,
    ) -> None:
        self.store = store
        self._snapshot = snapshot or StatsSnapshot()
        self._lock = threading.RLock()

    @property
    def snapshot(self) -> StatsSnapshot:
        return self._snapshot

    def load(self) -> StatsSnapshot:
        """Merge stored counters over the current snapshot."""
        if self.store is None:
            return self._snapshot
        with self._lock:
            try:
                saved = self.store.load_stats()
            except Exception:
                logger.exception("Failed to load stats; using defaults")
                return self._snapshot
            if saved:
                self._snapshot = StatsSnapshot.from_dict(saved, base=self._snapshot)
            return self._snapshot

    def update(self, **changes: int) -> StatsSnapshot:
        """Apply a partial update, e.g. ``update(daily_goal=6)``."""
        with self._lock:
            self._snapshot = dataclasses.replace(self._snapshot, **changes)
            self._persist()
            return self._snapshot

    def record_focus_session(self, minutes: int) -> StatsSnapshot:
        """Count one naturally completed focus session of *minutes*."""
        with self._lock:
            s = self._snapshot
            return self.update(
                completed_sessions=s.completed_sessions + 1,
                total_minutes=s.total_minutes + minutes,
                streak_count=s.streak_count + 1,
            )

    def reset(self) -> StatsSnapshot:
        """Zero the counters, keeping the goals."""
        return self.update(completed_sessions=0, total_minutes=0, streak_count=0)

    def replace(self, snapshot: StatsSnapshot) -> None:
        """Adopt *snapshot* without writing it, e.g. after an import."""
        with self._lock:
            self._snapshot = snapshot

    def _persist(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save_stats(self._snapshot)
        except Exception:
            logger.exception("Failed to save stats")
