"""Timer protocol shared by the presentation components.

Any object with an asyncio-style ``call_later`` works as a clock, including a
running ``asyncio`` event loop. Delays are in seconds.
"""

from collections.abc import Callable
from typing import Any, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


def ms(value: int | float) -> float:
    """Milliseconds to clock seconds."""
    return value / 1000.0
