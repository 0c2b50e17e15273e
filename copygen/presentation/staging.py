"""Holds back a new assistant message until its reveal is about to start."""

from collections.abc import Callable, Sequence

from copygen.core.logging import get_logger
from copygen.presentation.timers import Clock, TimerHandle
from copygen.presentation.transcript import Message, Transcript

logger = get_logger(__name__)

DEFAULT_STAGING_DELAY = 3.0


class MessageVisibilityStager:
    """Decides which transcript to render.

    The displayed transcript is always either the authoritative one or the
    authoritative one minus its last message, never further behind.
    """

    def __init__(
        self,
        clock: Clock,
        on_change: Callable[[Transcript], None] | None = None,
        delay: float = DEFAULT_STAGING_DELAY,
    ):
        self._clock = clock
        self._on_change = on_change
        self.delay = delay
        self._authoritative: Transcript = ()
        self._displayed: Transcript = ()
        self._timer: TimerHandle | None = None
        self._staged_id: str | None = None

    @property
    def displayed(self) -> Transcript:
        return self._displayed

    @property
    def authoritative(self) -> Transcript:
        return self._authoritative

    @property
    def pending(self) -> Message | None:
        """The assistant message currently held back, if any."""
        if self._timer is None:
            return None
        return self._authoritative[-1]

    def update(self, authoritative: Sequence[Message]) -> Transcript:
        """Receive the latest authoritative transcript and return what to render now."""
        authoritative = tuple(authoritative)
        self._authoritative = authoritative

        newest = authoritative[-1] if authoritative else None
        last_displayed = self._displayed[-1] if self._displayed else None

        if (
            newest is not None
            and newest.from_assistant
            and (last_displayed is None or last_displayed.id != newest.id)
        ):
            held_back = authoritative[:-1]
            if (
                self._timer is not None
                and self._displayed == held_back
                and self._staged_id == newest.id
            ):
                # Same message already waiting; keep the running delay
                return self._displayed
            self._cancel_timer()
            self._set_displayed(held_back)
            self._staged_id = newest.id
            self._timer = self._clock.call_later(self.delay, self._promote, newest.id)
            logger.debug(
                f"Staging assistant message for {self.delay}s", extra={"message_id": newest.id}
            )
            return self._displayed

        self._cancel_timer()
        self._set_displayed(authoritative)
        return self._displayed

    def reset(self, transcript: Sequence[Message]) -> Transcript:
        """Show a loaded history as-is, without staging its last message."""
        self._cancel_timer()
        self._authoritative = tuple(transcript)
        self._set_displayed(self._authoritative)
        return self._displayed

    def _promote(self, staged_id: str) -> None:
        self._timer = None
        # Content may have changed while staged; promote the latest transcript
        authoritative = self._authoritative
        if not authoritative or authoritative[-1].id != staged_id:
            return
        self._set_displayed(authoritative)

    def _set_displayed(self, transcript: Transcript) -> None:
        if transcript == self._displayed:
            return
        self._displayed = transcript
        if self._on_change is not None:
            self._on_change(transcript)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def close(self) -> None:
        self._cancel_timer()
