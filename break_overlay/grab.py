"""
Exclusive keyboard/pointer grab for the overlay surface.
"""

from __future__ import annotations

from typing import Optional, Protocol

from PySide6.QtWidgets import QWidget

from break_overlay import logger as app_logger

_LOGGER = app_logger.get_logger()


class GrabManager(Protocol):
    def acquire(self, surface, timestamp: Optional[int] = None) -> bool: ...

    def release(self, surface, timestamp: Optional[int] = None) -> None: ...


class QtGrabManager:
    """
    Grabs keyboard and mouse for one widget at a time.

    The grab is a process-wide resource: while one surface holds it, other
    surfaces are refused. The host may also refuse when the widget is not
    mapped yet or another widget already grabbed the keyboard.
    """

    def __init__(self) -> None:
        self._holder: Optional[QWidget] = None

    @property
    def holder(self) -> Optional[QWidget]:
        return self._holder

    def acquire(self, surface: QWidget, timestamp: Optional[int] = None) -> bool:
        if self._holder is not None:
            return self._holder is surface
        if not surface.isVisible():
            return False

        surface.activateWindow()
        surface.grabKeyboard()
        surface.grabMouse()
        if QWidget.keyboardGrabber() is not surface or QWidget.mouseGrabber() is not surface:
            _LOGGER.debug("Host refused grab for {} (request time {})", surface.objectName(), timestamp)
            surface.releaseKeyboard()
            surface.releaseMouse()
            return False

        self._holder = surface
        return True

    def release(self, surface: QWidget, timestamp: Optional[int] = None) -> None:
        if self._holder is not surface:
            return
        surface.releaseKeyboard()
        surface.releaseMouse()
        self._holder = None
