"""Events the model posts to whoever listens (usually the UI)."""

import logging
from dataclasses import dataclass
from typing import Callable, Literal

logger = logging.getLogger(__name__)

Severity = Literal["info", "warning", "error"]


@dataclass(frozen=True)
class InitDone:
    pass


@dataclass(frozen=True)
class ShutDown:
    pass


@dataclass(frozen=True)
class ItemsLoaded:
    length: int
    cursor: int


@dataclass(frozen=True)
class Alert:
    severity: Severity
    text: str


Event = InitDone | ShutDown | ItemsLoaded | Alert
Listener = Callable[[Event], None]


class EventBus:
    """Synchronous fan-out of model events.

    Listeners run in subscription order at the moment an event is emitted,
    so they observe events in the same order operations settle.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: Event) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener failed on %r", event)

    def alert(self, severity: Severity, text: str) -> None:
        self.emit(Alert(severity, text))

    def info(self, text: str) -> None:
        self.alert("info", text)

    def warning(self, text: str) -> None:
        self.alert("warning", text)

    def error(self, text: str) -> None:
        self.alert("error", text)
