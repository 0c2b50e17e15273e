"""Incremental reveal of a complete assistant answer, one character per tick."""

from dataclasses import dataclass
from enum import Enum

from copygen.core.logging import get_logger
from copygen.presentation.events import (
    EventBus,
    RevealCancelled,
    RevealCompleted,
    RevealProgress,
    RevealStarted,
    RevealWaiting,
    StructuralAdvance,
    StructuralReason,
)
from copygen.presentation.timers import Clock, TimerHandle

logger = get_logger(__name__)

DEFAULT_CHAR_INTERVAL = 0.015
WAITING_PLACEHOLDER = "..."


class RevealStatus(str, Enum):
    PENDING = "pending"
    REVEALING = "revealing"
    CANCELLED = "cancelled"
    COMPLETE = "complete"


@dataclass
class RevealState:
    """Progress of one reveal. visible_text is always a prefix of full_text."""

    message_id: str
    full_text: str
    visible_text: str = ""
    cursor_index: int = 0
    line_count: int = 1
    status: RevealStatus = RevealStatus.PENDING

    @property
    def finished(self) -> bool:
        return self.status in (RevealStatus.COMPLETE, RevealStatus.CANCELLED)

    @property
    def rendered_text(self) -> str:
        """What the transcript shows for this message right now."""
        if not self.full_text:
            return WAITING_PLACEHOLDER
        return self.visible_text


def count_lines(text: str) -> int:
    return text.count("\n") + 1


class RevealScheduler:
    """Reveals the text bound to one message slot.

    At most one timer is armed at any time. Binding a different text cancels the
    running reveal before the new one is scheduled, and each tick re-checks that
    it still belongs to the active reveal.
    """

    def __init__(self, clock: Clock, bus: EventBus, char_interval: float = DEFAULT_CHAR_INTERVAL):
        self._clock = clock
        self._bus = bus
        self.char_interval = char_interval
        self._state: RevealState | None = None
        self._timer: TimerHandle | None = None

    @property
    def state(self) -> RevealState | None:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is not None and not self._state.finished

    def reveal(self, message_id: str, full_text: str) -> RevealState:
        """
        Bind full_text to the slot and start revealing it.

        Re-binding the same message and text is a re-render and changes nothing.
        Anything else starts a fresh reveal at cursor 0.
        """
        current = self._state
        if (
            current is not None
            and current.message_id == message_id
            and current.full_text == full_text
            and current.status is not RevealStatus.CANCELLED
        ):
            return current

        self.cancel()

        state = RevealState(message_id=message_id, full_text=full_text)
        self._state = state

        if not full_text:
            self._bus.publish(RevealWaiting(message_id=message_id))
            return state

        state.status = RevealStatus.REVEALING
        logger.debug(
            f"Revealing {len(full_text)} characters", extra={"message_id": message_id}
        )
        self._bus.publish(RevealStarted(message_id=message_id, full_text=full_text))
        if not self._superseded(state):
            self._arm(state)
        return state

    def cancel(self) -> None:
        """Stop the active reveal. Idempotent; no-op once complete or cancelled."""
        state = self._state
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if state is None or state.finished:
            return

        state.status = RevealStatus.CANCELLED
        self._bus.publish(RevealCancelled(message_id=state.message_id, cursor_index=state.cursor_index))

    def _arm(self, state: RevealState) -> None:
        self._timer = self._clock.call_later(self.char_interval, self._tick, state)

    def _superseded(self, state: RevealState) -> bool:
        return state is not self._state or state.status is not RevealStatus.REVEALING

    def _tick(self, state: RevealState) -> None:
        if self._superseded(state):
            return
        self._timer = None

        text = state.full_text
        state.cursor_index += 1
        index = state.cursor_index
        state.visible_text = text[:index]
        self._bus.publish(
            RevealProgress(
                message_id=state.message_id,
                visible_text=state.visible_text,
                cursor_index=index,
            )
        )
        if self._superseded(state):
            return

        lines = count_lines(state.visible_text)
        paragraph = index >= 2 and text[index - 2 : index] == "\n\n"
        if lines > state.line_count or paragraph:
            state.line_count = lines
            self._bus.publish(
                StructuralAdvance(
                    message_id=state.message_id,
                    line_count=lines,
                    reason=StructuralReason.PARAGRAPH if paragraph else StructuralReason.LINE,
                )
            )

        # A subscriber may have rebound or cancelled this slot
        if self._superseded(state):
            return

        if index >= len(text):
            state.status = RevealStatus.COMPLETE
            self._bus.publish(RevealCompleted(message_id=state.message_id, full_text=text))
            return

        self._arm(state)
