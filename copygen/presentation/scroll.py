"""Keeps the active message on screen as it grows."""

from collections.abc import Callable
from typing import Protocol

from copygen.core.logging import get_logger
from copygen.presentation.events import (
    EventBus,
    KeyboardToggled,
    RevealCompleted,
    RevealStarted,
    StructuralAdvance,
    ViewportChanged,
)
from copygen.presentation.timers import Clock, TimerHandle

logger = get_logger(__name__)

DEFAULT_SETTLE_DELAY = 0.05
DEFAULT_TOUCH_CORRECTION_DELAY = 0.25
DEFAULT_SAFETY_MARGIN = 100

SCROLL_TRIGGERS = (RevealStarted, StructuralAdvance, RevealCompleted, ViewportChanged, KeyboardToggled)


class ScrollTarget(Protocol):
    """The transcript container being kept in view."""

    def scroll_to_bottom(self, margin: int) -> None: ...


class ScrollSynchronizer:
    """Scrolls the transcript after structural events and geometry changes.

    Requests arriving while a scroll is still settling are coalesced into it.
    On touch platforms each scroll is followed by one corrective re-scroll to
    catch viewport resizes caused by the on-screen keyboard. Scrolling is
    best-effort: target failures are logged and dropped.
    """

    def __init__(
        self,
        clock: Clock,
        target: ScrollTarget,
        touch_platform: bool = False,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        touch_correction_delay: float = DEFAULT_TOUCH_CORRECTION_DELAY,
        safety_margin: int = DEFAULT_SAFETY_MARGIN,
    ):
        self._clock = clock
        self._target = target
        self.touch_platform = touch_platform
        self.settle_delay = settle_delay
        self.touch_correction_delay = touch_correction_delay
        self.safety_margin = safety_margin
        self._pending: TimerHandle | None = None
        self._correction: TimerHandle | None = None
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def scroll_pending(self) -> bool:
        return self._pending is not None

    def attach(self, bus: EventBus) -> None:
        for event_type in SCROLL_TRIGGERS:
            self._unsubscribers.append(bus.subscribe(event_type, self._on_event))

    def _on_event(self, _event: object) -> None:
        self.request_scroll()

    def request_scroll(self) -> None:
        if self._pending is not None:
            return
        self._pending = self._clock.call_later(self.settle_delay, self._perform)

    def _perform(self) -> None:
        self._pending = None
        self._scroll()
        if self.touch_platform:
            if self._correction is not None:
                self._correction.cancel()
            self._correction = self._clock.call_later(self.touch_correction_delay, self._correct)

    def _correct(self) -> None:
        self._correction = None
        self._scroll()

    def _scroll(self) -> None:
        try:
            self._target.scroll_to_bottom(self.safety_margin)
        except Exception:
            logger.debug("Scroll target unavailable", exc_info=True)

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        for handle in (self._pending, self._correction):
            if handle is not None:
                handle.cancel()
        self._pending = None
        self._correction = None
