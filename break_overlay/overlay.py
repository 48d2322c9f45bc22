"""
Full-screen dimming surface shown behind the break countdown.
"""

from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QEasingCurve, QEvent, QPropertyAnimation, Qt, Signal
from PySide6.QtGui import QColor, QGuiApplication, QPainter
from PySide6.QtWidgets import QApplication, QHBoxLayout, QLabel, QVBoxLayout, QWidget

from break_overlay.events import MEDIA_KEYS, STRUCTURAL_EVENTS, EventKind, InputEvent

_EVENT_KINDS = {
    QEvent.Type.MouseMove: EventKind.MOTION,
    QEvent.Type.MouseButtonPress: EventKind.BUTTON_PRESS,
    QEvent.Type.TouchBegin: EventKind.TOUCH_BEGIN,
    QEvent.Type.KeyPress: EventKind.KEY_PRESS,
    QEvent.Type.Enter: EventKind.ENTER,
    QEvent.Type.Leave: EventKind.LEAVE,
    QEvent.Type.WindowStateChange: EventKind.STAGE_STATE,
    QEvent.Type.DeferredDelete: EventKind.DESTROY,
    QEvent.Type.Close: EventKind.DELETE,
}


class Overlay(QWidget):
    """
    Frameless, always-on-top window covering the primary screen.

    While reactive (i.e. grabbed) it translates input to `InputEvent` and
    asks the installed event handler whether to consume it. Without a
    handler, input is swallowed except structural events and media keys.
    When not reactive it is transparent to the mouse.
    """

    keyFocusOut = Signal()

    def __init__(self, *, brightness: float = 0.4, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        flags = (
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.Tool
            | Qt.WindowType.WindowStaysOnTopHint
        )
        self.setWindowFlags(flags)
        self.setObjectName("BreakOverlay")
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground, True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMouseTracking(True)
        self.setWindowOpacity(0.0)

        self._dim_color = QColor(0, 0, 0, int(255 * (1.0 - brightness)))
        self._reactive = False
        self._event_handler: Optional[Callable[[InputEvent], bool]] = None
        self._fade = QPropertyAnimation(self, b"windowOpacity", self)
        self._fade.setEasingCurve(QEasingCurve.Type.OutQuad)

        self._minutes_label = QLabel()
        self._minutes_label.setAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
        self._separator_label = QLabel(":")
        self._seconds_label = QLabel()
        self._seconds_label.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter)
        self._description_label = QLabel()
        self._description_label.setWordWrap(True)
        self._description_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        timer_row = QHBoxLayout()
        timer_row.setSpacing(4)
        timer_row.addStretch()
        timer_row.addWidget(self._minutes_label)
        timer_row.addWidget(self._separator_label)
        timer_row.addWidget(self._seconds_label)
        timer_row.addStretch()

        layout = QVBoxLayout(self)
        layout.addStretch()
        layout.addLayout(timer_row)
        layout.addWidget(self._description_label)
        layout.addStretch()

        self.setStyleSheet(
            """
            QWidget#BreakOverlay QLabel {
                color: white;
                font-size: 20px;
                font-weight: 600;
            }
            """
        )
        for label in (self._minutes_label, self._separator_label, self._seconds_label):
            label.setStyleSheet("font-size: 72px; font-weight: 300;")

        self._set_mouse_transparent(True)

    def light_on(self, duration_ms: int = 0) -> None:
        self._fade_to(1.0, duration_ms)

    def light_off(self, duration_ms: int = 0) -> None:
        self._fade_to(0.0, duration_ms)

    def show(self) -> None:
        self._cover_primary_screen()
        super().show()

    def set_reactive(self, reactive: bool) -> None:
        self._reactive = reactive
        self._set_mouse_transparent(not reactive)

    def is_reactive(self) -> bool:
        return self._reactive

    def set_event_handler(self, handler: Optional[Callable[[InputEvent], bool]]) -> None:
        self._event_handler = handler

    def take_key_focus(self) -> None:
        self.activateWindow()
        self.setFocus(Qt.FocusReason.OtherFocusReason)

    def contains_focus(self) -> bool:
        focus = QApplication.focusWidget()
        return focus is not None and (focus is self or self.isAncestorOf(focus))

    def set_description(self, text: str) -> None:
        self._description_label.setText(text)

    def set_remaining(self, seconds: float) -> None:
        remaining = max(seconds, 0.0)
        self._minutes_label.setText("%d" % (remaining // 60))
        self._seconds_label.setText("%02d" % (remaining % 60))

    def dispose(self) -> None:
        self._fade.stop()
        self.hide()
        self.deleteLater()

    def event(self, event: QEvent) -> bool:  # noqa: N802
        kind = _EVENT_KINDS.get(event.type())
        if kind is None or not self._reactive:
            return super().event(event)

        translated = _translate(event, kind)
        handler = self._event_handler
        consumed = handler(translated) if handler is not None else _swallowed_by_default(translated)
        if not consumed:
            return super().event(event)
        event.accept()
        return True

    def focusOutEvent(self, event) -> None:  # noqa: N802
        super().focusOutEvent(event)
        self.keyFocusOut.emit()

    def paintEvent(self, event) -> None:  # noqa: N802
        painter = QPainter(self)
        painter.fillRect(self.rect(), self._dim_color)
        painter.end()

    def _fade_to(self, opacity: float, duration_ms: int) -> None:
        self._fade.stop()
        if duration_ms <= 0:
            self.setWindowOpacity(opacity)
            return
        self._fade.setDuration(duration_ms)
        self._fade.setStartValue(self.windowOpacity())
        self._fade.setEndValue(opacity)
        self._fade.start()

    def _set_mouse_transparent(self, transparent: bool) -> None:
        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents, transparent)

    def _cover_primary_screen(self) -> None:
        screen = QGuiApplication.primaryScreen()
        if screen is None:
            return
        self.setGeometry(screen.geometry())


def _swallowed_by_default(event: InputEvent) -> bool:
    if event.kind in STRUCTURAL_EVENTS:
        return False
    return not (event.kind is EventKind.KEY_PRESS and event.key in MEDIA_KEYS)


def _translate(event: QEvent, kind: EventKind) -> InputEvent:
    device = event.device() if hasattr(event, "device") else True
    if kind is EventKind.MOTION:
        position = event.globalPosition()
        return InputEvent(kind=kind, x=position.x(), y=position.y(), has_device=device is not None)
    if kind is EventKind.KEY_PRESS:
        return InputEvent(kind=kind, key=int(event.key()), has_device=device is not None)
    return InputEvent(kind=kind, has_device=device is not None)

