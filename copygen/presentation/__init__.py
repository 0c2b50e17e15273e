"""Incremental presentation of assistant answers in the chat transcript."""

from copygen.presentation.events import (
    EventBus,
    KeyboardToggled,
    RevealCancelled,
    RevealCompleted,
    RevealProgress,
    RevealStarted,
    RevealWaiting,
    StructuralAdvance,
    StructuralReason,
    ViewportChanged,
)
from copygen.presentation.reveal import RevealScheduler, RevealState, RevealStatus
from copygen.presentation.scroll import ScrollSynchronizer, ScrollTarget
from copygen.presentation.session import ChatPresentationSession
from copygen.presentation.staging import MessageVisibilityStager
from copygen.presentation.transcript import Message, Transcript

__all__ = [
    "ChatPresentationSession",
    "EventBus",
    "KeyboardToggled",
    "Message",
    "MessageVisibilityStager",
    "RevealCancelled",
    "RevealCompleted",
    "RevealProgress",
    "RevealScheduler",
    "RevealStarted",
    "RevealState",
    "RevealStatus",
    "RevealWaiting",
    "ScrollSynchronizer",
    "ScrollTarget",
    "StructuralAdvance",
    "StructuralReason",
    "Transcript",
    "ViewportChanged",
]
