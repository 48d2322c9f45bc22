"""
Modal grab acquisition for the break dialog.

The grab is not taken right away: the user may be in the middle of typing
when the dialog appears. We wait until the dialog has been visible for a
moment and input has gone quiet, then try to grab. A host that refuses the
grab is retried at a fixed rate for a bounded time, after which the dialog
gives up and closes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from break_overlay import logger as app_logger
from break_overlay.idle_monitor import IdleMonitorProtocol
from break_overlay.scheduler import Scheduler
from break_overlay.settings import DialogSettings
from break_overlay.state import DialogState

if TYPE_CHECKING:
    from break_overlay.grab import GrabManager

_LOGGER = app_logger.get_logger()


class ModalAcquisitionController:
    def __init__(
        self,
        dialog,
        *,
        overlay,
        scheduler: Scheduler,
        idle_monitor: IdleMonitorProtocol,
        grab_manager: GrabManager,
        settings: DialogSettings,
        clock: Callable[[], int],
    ) -> None:
        self._dialog = dialog
        self._overlay = overlay
        self._scheduler = scheduler
        self._idle_monitor = idle_monitor
        self._grab_manager = grab_manager
        self._settings = settings
        self._clock = clock

        self._has_modal = False
        self._delay_task: Optional[int] = None
        self._idle_watch: Optional[int] = None
        self._retry_task: Optional[int] = None
        self._focus_out_connected = False
        self._attempts = 0
        self._timestamp: Optional[int] = None

    @property
    def has_modal(self) -> bool:
        return self._has_modal

    @property
    def attempts(self) -> int:
        return self._attempts

    def start(self) -> None:
        """Schedule the grab sequence; called whenever the dialog opens."""
        self._cancel_delay()
        self._delay_task = self._scheduler.schedule_once(
            self._settings.push_modal_delay_ms, self._on_delay_elapsed
        )

    def push_modal(self, timestamp: Optional[int] = None) -> bool:
        if self._has_modal:
            return True

        if self._dialog.state in (DialogState.CLOSED, DialogState.CLOSING):
            return False

        if not self._grab_manager.acquire(self._overlay, timestamp):
            return False

        self._disconnect_pending()
        self._has_modal = True
        self._overlay.set_reactive(True)
        self._overlay.take_key_focus()

        if not self._focus_out_connected:
            self._overlay.keyFocusOut.connect(self._on_key_focus_out)
            self._focus_out_connected = True

        _LOGGER.info("Break dialog is now modal (attempts={}).", max(self._attempts, 1))
        self._dialog.modalOpened.emit()
        return True

    def pop_modal(self, timestamp: Optional[int] = None) -> None:
        self._disconnect_pending()

        if self._focus_out_connected:
            self._overlay.keyFocusOut.disconnect(self._on_key_focus_out)
            self._focus_out_connected = False

        if not self._has_modal:
            return

        self._grab_manager.release(self._overlay, timestamp)
        self._has_modal = False
        self._overlay.set_reactive(False)
        _LOGGER.debug("Break dialog released its grab.")

    def _on_delay_elapsed(self) -> None:
        self._delay_task = None
        if self._idle_watch is None:
            self._idle_watch = self._idle_monitor.add_idle_watch(
                self._settings.idle_time_to_push_modal_ms, self._on_became_idle
            )

    def _on_became_idle(self) -> None:
        # Idle watches are one-shot; only forget the id.
        self._idle_watch = None
        self._timestamp = self._clock()
        self._attempts = 1

        if self.push_modal(self._timestamp):
            return

        _LOGGER.debug(
            "Grab refused; retrying every {} ms for up to {} attempts.",
            self._settings.push_modal_interval_ms,
            self._settings.push_modal_max_attempts,
        )
        self._cancel_retry()
        self._retry_task = self._scheduler.schedule_repeating(
            self._settings.push_modal_interval_ms, self._on_retry
        )

    def _on_retry(self) -> bool:
        if self._attempts >= self._settings.push_modal_max_attempts:
            _LOGGER.warning(
                "Giving up on modal grab after {} attempts; closing break dialog.",
                self._attempts,
            )
            self._retry_task = None
            self._dialog.close(True)
            return False

        self._attempts += 1
        # Retries reuse the original request time.
        if self.push_modal(self._timestamp):
            return False
        return True

    def _on_key_focus_out(self) -> None:
        if not self._overlay.contains_focus():
            _LOGGER.info("Break dialog lost key focus; closing.")
            self._dialog.close(True)

    def _disconnect_pending(self) -> None:
        self._cancel_delay()
        self._cancel_retry()
        if self._idle_watch is not None:
            self._idle_monitor.remove_watch(self._idle_watch)
            self._idle_watch = None

    def _cancel_delay(self) -> None:
        if self._delay_task is not None:
            self._scheduler.cancel(self._delay_task)
            self._delay_task = None

    def _cancel_retry(self) -> None:
        if self._retry_task is not None:
            self._scheduler.cancel(self._retry_task)
            self._retry_task = None
