"""One chat's presentation pipeline: staging, reveal and scrolling wired together."""

from collections.abc import Sequence

from copygen.core.config import get_settings
from copygen.core.logging import get_logger
from copygen.presentation.events import EventBus, RevealCancelled, RevealCompleted
from copygen.presentation.reveal import RevealScheduler, RevealState
from copygen.presentation.scroll import ScrollSynchronizer, ScrollTarget
from copygen.presentation.staging import MessageVisibilityStager
from copygen.presentation.timers import Clock, ms
from copygen.presentation.transcript import Message, Transcript
from copygen.presentation.viewport import KeyboardTracker, ViewportGeometry

logger = get_logger(__name__)


class ChatPresentationSession:
    """Feeds new transcripts through the stager and reveals promoted answers.

    An assistant message joins settled_transcript once its reveal has completed
    or been superseded; user messages settle as soon as they are displayed.
    """

    def __init__(
        self,
        clock: Clock,
        target: ScrollTarget,
        touch_platform: bool = False,
        char_interval: float = 0.015,
        staging_delay: float = 3.0,
        settle_delay: float = 0.05,
        touch_correction_delay: float = 0.25,
        safety_margin: int = 100,
    ):
        self.bus = EventBus()
        self.reveal = RevealScheduler(clock, self.bus, char_interval=char_interval)
        self.scroll = ScrollSynchronizer(
            clock,
            target,
            touch_platform=touch_platform,
            settle_delay=settle_delay,
            touch_correction_delay=touch_correction_delay,
            safety_margin=safety_margin,
        )
        self.scroll.attach(self.bus)
        self.keyboard = KeyboardTracker(self.bus)
        self.stager = MessageVisibilityStager(clock, on_change=self._on_displayed, delay=staging_delay)
        self._settled_ids: set[str] = set()
        self._unsubscribers = [
            self.bus.subscribe(RevealCompleted, self._on_reveal_finished),
            # A superseded answer is shown in full rather than left half-revealed
            self.bus.subscribe(RevealCancelled, self._on_reveal_finished),
        ]

    @classmethod
    def from_settings(
        cls, clock: Clock, target: ScrollTarget, touch_platform: bool = False
    ) -> "ChatPresentationSession":
        settings = get_settings()
        return cls(
            clock,
            target,
            touch_platform=touch_platform,
            char_interval=ms(settings.REVEAL_CHAR_INTERVAL_MS),
            staging_delay=ms(settings.STAGING_DELAY_MS),
            settle_delay=ms(settings.SCROLL_SETTLE_MS),
            touch_correction_delay=ms(settings.SCROLL_TOUCH_CORRECTION_MS),
            safety_margin=settings.SCROLL_SAFETY_MARGIN_PX,
        )

    @property
    def displayed(self) -> Transcript:
        return self.stager.displayed

    @property
    def settled_transcript(self) -> Transcript:
        return tuple(
            m for m in self.stager.displayed if not m.from_assistant or m.id in self._settled_ids
        )

    @property
    def active_reveal(self) -> RevealState | None:
        state = self.reveal.state
        if state is None or state.finished:
            return None
        return state

    def load_history(self, transcript: Sequence[Message]) -> None:
        """Show previously stored messages without animating any of them."""
        self._settled_ids.update(m.id for m in transcript)
        self.stager.reset(transcript)

    def receive(self, transcript: Sequence[Message]) -> Transcript:
        return self.stager.update(transcript)

    def on_viewport_change(self, geometry: ViewportGeometry) -> None:
        self.keyboard.update(geometry)

    def _on_displayed(self, displayed: Transcript) -> None:
        if not displayed:
            return
        newest = displayed[-1]
        if newest.from_assistant and newest.id not in self._settled_ids:
            self.reveal.reveal(newest.id, newest.content)
        else:
            self.scroll.request_scroll()

    def _on_reveal_finished(self, event: RevealCompleted | RevealCancelled) -> None:
        self._settled_ids.add(event.message_id)
        logger.debug("Message revealed", extra={"message_id": event.message_id})

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self.stager.close()
        self.reveal.cancel()
        self.scroll.close()
