"""
Break dialog: the modal dialog plus idle handling and the break countdown.
"""

from __future__ import annotations

from typing import Callable, Optional

from break_overlay import logger as app_logger
from break_overlay.dialog import ModalDialog
from break_overlay.events import InputEventFilter
from break_overlay.focused_window import FocusedWindowInfo, get_focused_window_info
from break_overlay.idle_gate import IdleActivityGate
from break_overlay.settings import DialogSettings
from break_overlay.state import DialogState
from break_overlay.timer import TimerSnapshot

DEFAULT_DESCRIPTION = "It's time to take a break"


class BreakDialog:
    """
    Composes `ModalDialog`, `IdleActivityGate` and `InputEventFilter` into
    the dialog shown at the start of a break.

    Lifecycle signals (`opening`, `opened`, `closing`, `closed`,
    `stateChanged`, `modalOpened`) are those of the underlying `ModalDialog`.
    """

    def __init__(
        self,
        timer,
        *,
        overlay,
        scheduler,
        idle_monitor,
        grab_manager,
        settings: Optional[DialogSettings] = None,
        focused_window_info: Callable[[], FocusedWindowInfo] = get_focused_window_info,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._logger = app_logger.get_logger()
        self.timer = timer
        self.description = DEFAULT_DESCRIPTION
        self.snapshot = TimerSnapshot()

        dialog_kwargs = {"clock": clock} if clock is not None else {}
        self.dialog = ModalDialog(
            overlay,
            scheduler=scheduler,
            idle_monitor=idle_monitor,
            grab_manager=grab_manager,
            settings=settings,
            **dialog_kwargs,
        )
        self._overlay = overlay
        self._event_filter = InputEventFilter(
            overlay,
            self._dismiss,
            motion_distance=self.dialog.settings.motion_distance_to_close,
        )
        self._gate = IdleActivityGate(
            self.dialog,
            idle_monitor=idle_monitor,
            scheduler=scheduler,
            timer=timer,
            event_filter=self._event_filter,
            focused_window_info=focused_window_info,
        )
        self._timer_connected = False

        self.opening = self.dialog.opening
        self.opened = self.dialog.opened
        self.closing = self.dialog.closing
        self.closed = self.dialog.closed
        self.stateChanged = self.dialog.stateChanged
        self.modalOpened = self.dialog.modalOpened

        self.dialog.opening.connect(self._connect_timer)
        self.dialog.closing.connect(self._disconnect_timer)
        overlay.set_description(self.description)

    @property
    def state(self) -> DialogState:
        return self.dialog.state

    @property
    def event_filter(self) -> InputEventFilter:
        return self._event_filter

    def open(self, animate: bool = True) -> None:
        self.dialog.open(animate)

    def close(self, animate: bool = True) -> None:
        self.dialog.close(animate)

    def push_modal(self, timestamp: Optional[int] = None) -> bool:
        return self.dialog.push_modal(timestamp)

    def pop_modal(self, timestamp: Optional[int] = None) -> None:
        self.dialog.pop_modal(timestamp)

    def open_when_idle(self) -> None:
        self._gate.open_when_idle()

    def set_description(self, text: str) -> None:
        self.description = text
        self._overlay.set_description(text)

    def destroy(self) -> None:
        if self.dialog.is_destroyed:
            return
        self._disconnect_timer()
        self._gate.destroy()
        self.dialog.opening.disconnect(self._connect_timer)
        self.dialog.closing.disconnect(self._disconnect_timer)
        self.dialog.destroy()

    def _dismiss(self) -> None:
        self.dialog.close(True)

    def _connect_timer(self) -> None:
        if self._timer_connected:
            return
        self.timer.updated.connect(self._on_timer_update)
        self._timer_connected = True
        self._on_timer_update()

    def _disconnect_timer(self) -> None:
        if not self._timer_connected:
            return
        self.timer.updated.disconnect(self._on_timer_update)
        self._timer_connected = False

    def _on_timer_update(self) -> None:
        self.snapshot = TimerSnapshot.capture(self.timer)
        if self.snapshot.is_break:
            self._overlay.set_remaining(self.snapshot.remaining_seconds)
