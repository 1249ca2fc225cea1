"""Abstract base classes for OS notification and tray display gateways."""

from abc import ABC, abstractmethod

from pomotrack.core.models import TrayStatus


class Notifier(ABC):
    """Delivers a desktop notification.

    Implementations may raise; the timer catches and logs any failure.
    """

    @abstractmethod
    def notify(self, title: str, body: str, urgent: bool = False, silent: bool = False) -> None:
        pass


class TrayDisplay(ABC):
    """Receives the tray title/tooltip on every tick and transition."""

    @abstractmethod
    def update(self, status: TrayStatus) -> None:
        pass
