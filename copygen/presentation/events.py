"""Typed presentation events and the bus that carries them.

The reveal scheduler publishes what happened to the text; the scroll
synchronizer and the chat session subscribe. Neither reaches into the other.
"""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from copygen.core.logging import get_logger

logger = get_logger(__name__)


class StructuralReason(str, Enum):
    """Why a structural advance fired."""

    LINE = "line"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class PresentationEvent:
    """Base class for everything published on the bus."""


@dataclass(frozen=True)
class RevealStarted(PresentationEvent):
    message_id: str
    full_text: str


@dataclass(frozen=True)
class RevealWaiting(PresentationEvent):
    """Reveal bound to an empty text: only the placeholder is shown."""

    message_id: str


@dataclass(frozen=True)
class RevealProgress(PresentationEvent):
    message_id: str
    visible_text: str
    cursor_index: int


@dataclass(frozen=True)
class StructuralAdvance(PresentationEvent):
    """The revealed text gained a line or reached a paragraph boundary."""

    message_id: str
    line_count: int
    reason: StructuralReason


@dataclass(frozen=True)
class RevealCompleted(PresentationEvent):
    message_id: str
    full_text: str


@dataclass(frozen=True)
class RevealCancelled(PresentationEvent):
    message_id: str
    cursor_index: int


@dataclass(frozen=True)
class ViewportChanged(PresentationEvent):
    width: float
    height: float
    keyboard_visible: bool


@dataclass(frozen=True)
class KeyboardToggled(PresentationEvent):
    visible: bool


E = TypeVar("E", bound=PresentationEvent)
Handler = Callable[[Any], None]


class EventBus:
    """Synchronous in-process publish/subscribe keyed by event type.

    Handlers run in subscription order. A failing handler is logged and skipped
    so one subscriber never stops delivery to the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register handler for event_type (and its subclasses). Returns an unsubscribe callable."""
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event: PresentationEvent) -> None:
        for event_type, handlers in list(self._handlers.items()):
            if not isinstance(event, event_type):
                continue
            for handler in list(handlers):
                try:
                    handler(event)
                except Exception:
                    logger.debug(
                        f"Presentation handler failed for {type(event).__name__}", exc_info=True
                    )
