"""
Application coordinator alternating work intervals and breaks.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from PySide6.QtCore import QObject, QTimer
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QApplication, QMenu, QStyle, QSystemTrayIcon

from break_overlay import logger as app_logger
from break_overlay.break_dialog import BreakDialog
from break_overlay.grab import QtGrabManager
from break_overlay.idle_monitor import IdleMonitor
from break_overlay.overlay import Overlay
from break_overlay.scheduler import QtScheduler
from break_overlay.settings import DialogSettingsManager
from break_overlay.state import DialogState
from break_overlay.timer import BreakTimer

APP_NAME = "Break Overlay"
APP_VERSION = "1.0.0"
DEFAULT_WORK_SECONDS = 25 * 60
DEFAULT_BREAK_SECONDS = 5 * 60


@dataclass
class AppCoordinator(QObject):
    work_seconds: int = DEFAULT_WORK_SECONDS
    break_seconds: int = DEFAULT_BREAK_SECONDS
    settings_manager: DialogSettingsManager = field(default_factory=DialogSettingsManager)

    def __post_init__(self) -> None:
        super().__init__()
        self._logger = app_logger.get_logger()
        self._manual_shutdown_requested = False

        settings = self.settings_manager.read_settings()
        self._scheduler = QtScheduler(self)
        self._idle_monitor = IdleMonitor(parent=self)
        self._timer = BreakTimer(parent=self)
        self._dialog = BreakDialog(
            self._timer,
            overlay=Overlay(brightness=settings.blur_brightness),
            scheduler=self._scheduler,
            idle_monitor=self._idle_monitor,
            grab_manager=QtGrabManager(),
            settings=settings,
        )

        self._timer.breakStarted.connect(self._on_break_started)
        self._timer.breakFinished.connect(self._on_break_finished)
        self._dialog.closed.connect(self._on_dialog_closed)
        self._dialog.modalOpened.connect(self._on_modal_opened)

        self._work_timer = QTimer(self)
        self._work_timer.setSingleShot(True)
        self._work_timer.timeout.connect(self._start_break)

        self._tray = QSystemTrayIcon(self)
        tray_icon = QApplication.style().standardIcon(QStyle.StandardPixmap.SP_ComputerIcon)
        self._tray.setIcon(tray_icon)
        self._tray.setToolTip(f"{APP_NAME} v{APP_VERSION}")

        menu = QMenu()
        break_action = QAction("Take a Break Now", menu)
        skip_action = QAction("Skip Break", menu)
        exit_action = QAction("Exit", menu)
        menu.addAction(break_action)
        menu.addAction(skip_action)
        menu.addSeparator()
        menu.addAction(exit_action)
        self._tray.setContextMenu(menu)

        break_action.triggered.connect(self._start_break)
        skip_action.triggered.connect(self._timer.stop)
        exit_action.triggered.connect(self.shutdown)

    def start(self) -> None:
        self._logger.info(
            "Starting break coordinator: work {} s, break {} s.",
            self.work_seconds,
            self.break_seconds,
        )
        self._tray.show()
        self._work_timer.start(self.work_seconds * 1000)

    def shutdown(self) -> None:
        self._logger.info("Shutting down application on user request.")
        self._manual_shutdown_requested = True
        self._work_timer.stop()
        self._dialog.destroy()
        self._tray.hide()
        QApplication.instance().quit()

    @property
    def manual_shutdown_requested(self) -> bool:
        return self._manual_shutdown_requested

    def _start_break(self) -> None:
        if self._timer.is_break():
            return
        self._work_timer.stop()
        self._timer.start_break(self.break_seconds)

    def _on_break_started(self) -> None:
        self._logger.info("Break started; opening break dialog.")
        self._dialog.open(True)

    def _on_break_finished(self) -> None:
        self._logger.info("Break finished; back to work for {} s.", self.work_seconds)
        self._dialog.close(True)
        self._work_timer.start(self.work_seconds * 1000)

    def _on_dialog_closed(self) -> None:
        if self._timer.is_break() and self._dialog.state is DialogState.CLOSED:
            self._logger.debug("Break dialog dismissed during break; reopening when idle.")
            self._dialog.open_when_idle()

    def _on_modal_opened(self) -> None:
        self._logger.info("System modal opened by break dialog.")
