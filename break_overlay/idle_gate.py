"""
Idle-driven opening and activity-driven closing of the break dialog.
"""

from __future__ import annotations

from typing import Callable, Optional

from break_overlay import logger as app_logger
from break_overlay.events import InputEventFilter
from break_overlay.focused_window import FocusedWindowInfo
from break_overlay.idle_monitor import IdleMonitorProtocol
from break_overlay.scheduler import Scheduler
from break_overlay.state import DialogState
from break_overlay.timer import TimerSource

_LOGGER = app_logger.get_logger()


class IdleActivityGate:
    """
    Opens the dialog after a long global idle period and closes it once the
    user is active again.

    Closing is two-staged: the dialog is first left on screen for the
    minimum display time, and only then the input filter is armed, so input
    that was already in flight when the dialog appeared does not dismiss it.
    """

    def __init__(
        self,
        dialog,
        *,
        idle_monitor: IdleMonitorProtocol,
        scheduler: Scheduler,
        timer: TimerSource,
        event_filter: InputEventFilter,
        focused_window_info: Callable[[], FocusedWindowInfo],
    ) -> None:
        self._dialog = dialog
        self._idle_monitor = idle_monitor
        self._scheduler = scheduler
        self._timer = timer
        self._event_filter = event_filter
        self._focused_window_info = focused_window_info
        self._settings = dialog.settings

        self._open_when_idle_watch: Optional[int] = None
        self._close_when_active_task: Optional[int] = None
        self._close_when_active_watch: Optional[int] = None

        self._dialog.opening.connect(self._on_opening)
        self._dialog.closing.connect(self.disconnect_all)

    def open_when_idle(self) -> None:
        """Schedule the dialog to open once the user has been idle long enough."""
        if self._dialog.state in (DialogState.OPENED, DialogState.OPENING):
            return

        if self._open_when_idle_watch is None:
            self._open_when_idle_watch = self._idle_monitor.add_idle_watch(
                self._settings.idle_time_to_open_ms, self._on_idle_for_open
            )

    def _on_idle_for_open(self) -> None:
        self._open_when_idle_watch = None

        info = self._focused_window_info()
        if info.is_player and info.is_fullscreen:
            _LOGGER.debug("Not reopening break dialog over fullscreen player {}.", info.process_name)
            return

        if not self._timer.is_break():
            return
        if self._timer.get_remaining() < self._settings.open_when_idle_min_remaining_s:
            return

        _LOGGER.info("User is idle during a break; reopening break dialog.")
        self._dialog.open(True)

    def _on_opening(self) -> None:
        if self._close_when_active_task is None:
            self._close_when_active_task = self._scheduler.schedule_once(
                self._settings.min_display_time_ms, self._on_min_display_time_elapsed
            )

    def _on_min_display_time_elapsed(self) -> None:
        self._close_when_active_task = None

        try:
            idle_ms = self._idle_monitor.get_idle_time()
        except OSError as exc:
            _LOGGER.warning("Unable to query idle time; closing on next input: {}", exc)
            self.close_when_active()
            return

        if idle_ms < self._settings.idle_time_to_close_ms:
            self.close_when_active()
        elif self._close_when_active_watch is None:
            self._close_when_active_watch = self._idle_monitor.add_user_active_watch(
                self._on_user_active
            )

    def _on_user_active(self) -> None:
        self._close_when_active_watch = None
        self.close_when_active()

    def close_when_active(self) -> None:
        """Let the next qualifying input event close the dialog."""
        if self._dialog.state in (DialogState.CLOSED, DialogState.CLOSING):
            return
        self._event_filter.arm()

    def disconnect_all(self) -> None:
        """Drop everything that is no longer needed once the dialog closes."""
        if self._open_when_idle_watch is not None:
            self._idle_monitor.remove_watch(self._open_when_idle_watch)
            self._open_when_idle_watch = None

        self._event_filter.disarm()

        if self._close_when_active_task is not None:
            self._scheduler.cancel(self._close_when_active_task)
            self._close_when_active_task = None

        if self._close_when_active_watch is not None:
            self._idle_monitor.remove_watch(self._close_when_active_watch)
            self._close_when_active_watch = None

    def destroy(self) -> None:
        self.disconnect_all()
        self._dialog.opening.disconnect(self._on_opening)
        self._dialog.closing.disconnect(self.disconnect_all)
