"""
Input events delivered by the grabbed overlay and the filter deciding
which of them dismiss the dialog.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from PySide6.QtCore import Qt

from break_overlay import logger as app_logger

_LOGGER = app_logger.get_logger()


class EventKind(Enum):
    MOTION = "motion"
    BUTTON_PRESS = "button-press"
    TOUCH_BEGIN = "touch-begin"
    KEY_PRESS = "key-press"
    ENTER = "enter"
    LEAVE = "leave"
    STAGE_STATE = "stage-state"
    DESTROY = "destroy"
    CLIENT_MESSAGE = "client-message"
    DELETE = "delete"
    OTHER = "other"


class EventAction(Enum):
    DISMISS = "dismiss"
    BLOCK = "block"
    PROPAGATE = "propagate"


STRUCTURAL_EVENTS = frozenset(
    {
        EventKind.ENTER,
        EventKind.LEAVE,
        EventKind.STAGE_STATE,
        EventKind.DESTROY,
        EventKind.CLIENT_MESSAGE,
        EventKind.DELETE,
    }
)

_MEDIA_KEY_NAMES = (
    "Key_AudioCycleTrack",
    "Key_AudioForward",
    "Key_VolumeDown",
    "Key_MediaNext",
    "Key_MediaPause",
    "Key_MediaPlay",
    "Key_MediaTogglePlayPause",
    "Key_MediaPrevious",
    "Key_VolumeUp",
    "Key_AudioRandomPlay",
    "Key_MediaRecord",
    "Key_AudioRepeat",
    "Key_AudioRewind",
    "Key_MediaStop",
    "Key_MicMute",
    "Key_VolumeMute",
    "Key_MonBrightnessDown",
    "Key_MonBrightnessUp",
    "Key_Display",
)

# Hardware media/brightness keys keep working without dismissing the dialog.
MEDIA_KEYS = frozenset(
    getattr(Qt.Key, name).value for name in _MEDIA_KEY_NAMES if hasattr(Qt.Key, name)
)


@dataclass(frozen=True)
class InputEvent:
    kind: EventKind
    x: float = 0.0
    y: float = 0.0
    key: Optional[int] = None
    has_device: bool = True


class InputEventFilter:
    """
    Decides which overlay events dismiss the dialog.

    Pointer motion only counts once it moves further than
    ``motion_distance`` from the previous sample, so jitter and accidental
    touches are tolerated. Clicks, touches and keys dismiss, except the
    media key allow-list. While armed the filter is the overlay's event
    handler; `handle` returns True when the event is consumed, the same
    convention as ``QObject.eventFilter``.
    """

    def __init__(self, overlay, on_dismiss: Callable[[], None], *, motion_distance: int = 20) -> None:
        self._overlay = overlay
        self._on_dismiss = on_dismiss
        self._motion_distance = motion_distance
        self._armed = False
        self._last_x = -1.0
        self._last_y = -1.0

    @property
    def armed(self) -> bool:
        return self._armed

    def arm(self) -> None:
        if self._armed:
            return
        self._last_x = -1.0
        self._last_y = -1.0
        self._overlay.set_event_handler(self.handle)
        self._armed = True
        _LOGGER.debug("Input event filter armed.")

    def disarm(self) -> None:
        if not self._armed:
            return
        self._overlay.set_event_handler(None)
        self._armed = False
        _LOGGER.debug("Input event filter disarmed.")

    def handle(self, event: InputEvent) -> bool:
        action = self.classify(event)
        if action is EventAction.DISMISS:
            _LOGGER.info("Dismissing break dialog on {} event.", event.kind.value)
            self._on_dismiss()
        return action is not EventAction.PROPAGATE

    def classify(self, event: InputEvent) -> EventAction:
        if not event.has_device:
            return EventAction.BLOCK

        if event.kind in STRUCTURAL_EVENTS:
            return EventAction.PROPAGATE

        if event.kind is EventKind.MOTION:
            return self._classify_motion(event)

        if event.kind is EventKind.KEY_PRESS:
            if event.key in MEDIA_KEYS:
                return EventAction.PROPAGATE
            return EventAction.DISMISS

        if event.kind in (EventKind.BUTTON_PRESS, EventKind.TOUCH_BEGIN):
            return EventAction.DISMISS

        return EventAction.BLOCK

    def _classify_motion(self, event: InputEvent) -> EventAction:
        dx = event.x - self._last_x if self._last_x >= 0 else 0.0
        dy = event.y - self._last_y if self._last_y >= 0 else 0.0
        self._last_x = event.x
        self._last_y = event.y

        if dx * dx + dy * dy > self._motion_distance * self._motion_distance:
            return EventAction.DISMISS
        return EventAction.BLOCK
