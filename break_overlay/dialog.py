"""
Open/close state machine of the full-screen break dialog.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable, Optional

from PySide6.QtCore import QObject, Signal

from break_overlay import logger as app_logger
from break_overlay.idle_monitor import IdleMonitorProtocol
from break_overlay.modal import ModalAcquisitionController
from break_overlay.scheduler import Scheduler
from break_overlay.settings import DialogSettings
from break_overlay.state import DialogState

if TYPE_CHECKING:
    from break_overlay.grab import GrabManager


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class ModalDialog(QObject):
    """
    Full-screen dialog that fades the overlay in and out and turns modal
    once the user had a chance to see it.

    The dialog owns the overlay; the overlay only talks back through its
    signals. Repeated `open`/`close` calls in a state that is already
    heading the same way are no-ops and never re-emit the lifecycle signals.
    """

    opening = Signal()
    opened = Signal()
    closing = Signal()
    closed = Signal()
    stateChanged = Signal(object)
    modalOpened = Signal()

    def __init__(
        self,
        overlay,
        *,
        scheduler: Scheduler,
        idle_monitor: IdleMonitorProtocol,
        grab_manager: GrabManager,
        settings: Optional[DialogSettings] = None,
        clock: Callable[[], int] = _monotonic_ms,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger()
        self._overlay = overlay
        self._scheduler = scheduler
        self._settings = settings or DialogSettings()
        self._state = DialogState.CLOSED
        self._transition_task: Optional[int] = None
        self._destroyed = False
        self._modal = ModalAcquisitionController(
            self,
            overlay=overlay,
            scheduler=scheduler,
            idle_monitor=idle_monitor,
            grab_manager=grab_manager,
            settings=self._settings,
            clock=clock,
        )

    @property
    def state(self) -> DialogState:
        return self._state

    @property
    def overlay(self):
        return self._overlay

    @property
    def settings(self) -> DialogSettings:
        return self._settings

    @property
    def has_modal(self) -> bool:
        return self._modal.has_modal

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def _set_state(self, state: DialogState) -> None:
        if self._state is state:
            return
        self._logger.debug("Break dialog state {} -> {}", self._state.name, state.name)
        self._state = state
        self.stateChanged.emit(state)

    def open(self, animate: bool = True) -> None:
        """Gradually open the dialog and try to make it modal once seen."""
        if self._destroyed or self._state in (DialogState.OPENED, DialogState.OPENING):
            return

        self._modal.start()

        self._overlay.raise_()
        self._cancel_transition()
        self._overlay.show()
        self._set_state(DialogState.OPENING)
        self.opening.emit()

        if animate:
            self._overlay.light_on(self._settings.fade_in_ms)
            self._transition_task = self._scheduler.schedule_once(
                self._settings.fade_in_ms, self._on_open_complete
            )
        else:
            self._overlay.light_on(0)
            self._on_open_complete()

    def close(self, animate: bool = True) -> None:
        if self._destroyed or self._state in (DialogState.CLOSED, DialogState.CLOSING):
            return

        self.pop_modal()
        self._set_state(DialogState.CLOSING)
        self.closing.emit()

        self._cancel_transition()

        if animate:
            self._overlay.light_off(self._settings.fade_out_ms)
            self._transition_task = self._scheduler.schedule_once(
                self._settings.fade_out_ms, self._on_close_complete
            )
        else:
            self._overlay.light_off(0)
            self._on_close_complete()

    def push_modal(self, timestamp: Optional[int] = None) -> bool:
        return self._modal.push_modal(timestamp)

    def pop_modal(self, timestamp: Optional[int] = None) -> None:
        """
        Drop modal status without closing the dialog.

        This makes the dialog insensitive, so it needs to be followed shortly
        by either `close` or `push_modal`.
        """
        self._modal.pop_modal(timestamp)

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self._modal.pop_modal()
        self._cancel_transition()
        self._overlay.dispose()
        self._logger.debug("Break dialog destroyed in state {}", self._state.name)

    def _cancel_transition(self) -> None:
        if self._transition_task is not None:
            self._scheduler.cancel(self._transition_task)
            self._transition_task = None

    def _on_open_complete(self) -> None:
        self._transition_task = None
        self._set_state(DialogState.OPENED)
        self.opened.emit()

    def _on_close_complete(self) -> None:
        self._transition_task = None
        self._overlay.hide()
        self._set_state(DialogState.CLOSED)
        self.closed.emit()
