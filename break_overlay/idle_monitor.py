"""
Idle monitoring using Win32 GetLastInputInfo, with one-shot idle and
user-active watches.
"""

from __future__ import annotations

import ctypes
import sys
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from PySide6.QtCore import QObject, QTimer

from break_overlay import logger as app_logger

_LOGGER = app_logger.get_logger()

WatchCallback = Callable[[], None]


class IdleMonitorProtocol(Protocol):
    def get_idle_time(self) -> int: ...

    def add_idle_watch(self, threshold_ms: int, callback: WatchCallback) -> int: ...

    def add_user_active_watch(self, callback: WatchCallback) -> int: ...

    def remove_watch(self, watch_id: int) -> None: ...


@dataclass
class _Watch:
    callback: WatchCallback
    # None marks a user-active watch.
    threshold_ms: Optional[int] = None


class IdleMonitor(QObject):
    """
    Periodically polls system idle time and runs watch callbacks.

    An idle watch fires once idle time reaches its threshold. A user-active
    watch fires once idle time drops, i.e. on the first input after it was
    added. Watches are removed before their callback runs. Polling only runs
    while at least one watch is registered.
    """

    def __init__(self, poll_interval_ms: int = 100, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._poll_interval_ms = poll_interval_ms
        self._timer = QTimer(self)
        self._timer.setInterval(self._poll_interval_ms)
        self._timer.timeout.connect(self._check_idle)  # type: ignore[arg-type]
        self._watches: Dict[int, _Watch] = {}
        self._next_id = 1
        self._last_idle_ms = 0
        self._idle_ms_provider: Optional[Callable[[], int]] = None

    def set_idle_ms_provider(self, provider: Callable[[], int]) -> None:
        """
        Override idle time acquisition. Primarily used for testing.
        """
        self._idle_ms_provider = provider

    def get_idle_time(self) -> int:
        return self._get_idle_ms()

    def add_idle_watch(self, threshold_ms: int, callback: WatchCallback) -> int:
        return self._add(_Watch(callback=callback, threshold_ms=int(threshold_ms)))

    def add_user_active_watch(self, callback: WatchCallback) -> int:
        return self._add(_Watch(callback=callback))

    def remove_watch(self, watch_id: int) -> None:
        self._watches.pop(watch_id, None)
        if not self._watches:
            self._timer.stop()

    def _add(self, watch: _Watch) -> int:
        watch_id = self._next_id
        self._next_id += 1
        self._watches[watch_id] = watch
        if not self._timer.isActive():
            try:
                self._last_idle_ms = self._get_idle_ms()
            except OSError:
                self._last_idle_ms = 0
            self._timer.start()
        return watch_id

    def _check_idle(self) -> None:
        try:
            idle_ms = self._get_idle_ms()
        except OSError as exc:
            # If querying idle time fails, pause monitoring rather than crashing.
            _LOGGER.warning("Unable to query idle time; pausing idle watches: {}", exc)
            self._timer.stop()
            return

        became_active = idle_ms < self._last_idle_ms
        self._last_idle_ms = idle_ms

        due = [
            watch_id
            for watch_id, watch in self._watches.items()
            if (watch.threshold_ms is None and became_active)
            or (watch.threshold_ms is not None and idle_ms >= watch.threshold_ms)
        ]
        for watch_id in due:
            # An earlier callback may already have removed this watch.
            watch = self._watches.pop(watch_id, None)
            if watch is not None:
                watch.callback()

        if not self._watches:
            self._timer.stop()

    def _get_idle_ms(self) -> int:
        if self._idle_ms_provider is not None:
            return self._idle_ms_provider()

        last_input_info = _get_last_input_info()
        tick_count_ms = _get_tick_count_ms()
        return max(0, tick_count_ms - last_input_info)


def _get_last_input_info() -> int:
    if sys.platform != "win32":
        raise OSError("GetLastInputInfo is only available on Windows")

    class LASTINPUTINFO(ctypes.Structure):
        _fields_ = [("cbSize", ctypes.c_uint), ("dwTime", ctypes.c_uint)]

    user32 = ctypes.windll.user32  # type: ignore[attr-defined]
    last_input = LASTINPUTINFO()
    last_input.cbSize = ctypes.sizeof(LASTINPUTINFO)

    if not user32.GetLastInputInfo(ctypes.byref(last_input)):
        raise ctypes.WinError()  # type: ignore[attr-defined]

    return last_input.dwTime


def _get_tick_count_ms() -> int:
    kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
    # dwTime from GetLastInputInfo is a 32-bit tick count.
    return int(kernel32.GetTickCount())
