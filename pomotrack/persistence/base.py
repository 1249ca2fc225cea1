"""Abstract persistence gateway for settings, stats and session history."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pomotrack.core.models import SessionRecord, Settings, StatsSnapshot

# Oldest records beyond this count are dropped on append.
MAX_HISTORY = 1000


class PersistenceGateway(ABC):
    """Load/save interface consumed by the timer, stats and session log.

    Callers treat every method as fallible: failures are caught and
    logged at the call site and in-memory state is kept.
    """

    @abstractmethod
    def load_settings(self) -> Optional[dict[str, Any]]:
        """Return stored settings in exported-key form, or ``None``."""
        pass

    @abstractmethod
    def save_settings(self, settings: Settings) -> None:
        pass

    @abstractmethod
    def load_stats(self) -> Optional[dict[str, Any]]:
        """Return stored stats in exported-key form, or ``None``."""
        pass

    @abstractmethod
    def save_stats(self, stats: StatsSnapshot) -> None:
        pass

    @abstractmethod
    def load_history(self) -> list[SessionRecord]:
        pass

    @abstractmethod
    def append_session(self, record: SessionRecord) -> list[SessionRecord]:
        """Persist *record* (assigning its id) and return the full history."""
        pass

    @abstractmethod
    def clear_history(self) -> list[SessionRecord]:
        """Delete all history and return the (empty) history."""
        pass

    @abstractmethod
    def replace_history(self, records: list[SessionRecord]) -> None:
        pass
