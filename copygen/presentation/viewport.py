"""Device and on-screen keyboard detection from viewport geometry."""

import re
from dataclasses import dataclass

from copygen.presentation.events import EventBus, KeyboardToggled, ViewportChanged

MOBILE_MAX_WIDTH = 768
# Visible height shrinking by more than this share means the keyboard is up
KEYBOARD_HEIGHT_RATIO = 0.20

_MOBILE_UA = re.compile(r"android|webos|iphone|ipad|ipod|blackberry|iemobile|opera mini", re.I)


def is_touch_platform(user_agent: str, viewport_width: float) -> bool:
    """Mobile user agent or a narrow screen."""
    return bool(_MOBILE_UA.search(user_agent or "")) or viewport_width <= MOBILE_MAX_WIDTH


@dataclass(frozen=True)
class ViewportGeometry:
    width: float
    height: float


class KeyboardTracker:
    """Turns raw viewport resizes into ViewportChanged and KeyboardToggled events.

    The first geometry seen is the baseline: the keyboard is considered visible
    whenever the visible height drops more than 20% below it.
    """

    def __init__(self, bus: EventBus):
        self._bus = bus
        self._baseline_height: float | None = None
        self.keyboard_visible = False

    def update(self, geometry: ViewportGeometry) -> None:
        if self._baseline_height is None or self._baseline_height <= 0:
            self._baseline_height = geometry.height

        # A hidden tab or iframe reports zero height; no baseline to compare against yet
        if self._baseline_height <= 0:
            visible = False
        else:
            shrink = (self._baseline_height - geometry.height) / self._baseline_height
            visible = shrink > KEYBOARD_HEIGHT_RATIO

        self._bus.publish(
            ViewportChanged(width=geometry.width, height=geometry.height, keyboard_visible=visible)
        )
        if visible != self.keyboard_visible:
            self.keyboard_visible = visible
            self._bus.publish(KeyboardToggled(visible=visible))
