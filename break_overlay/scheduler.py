"""
Cancellable delayed callbacks on top of the Qt event loop.
"""

from __future__ import annotations

from typing import Callable, Dict, Protocol

from PySide6.QtCore import QObject, QTimer


class Scheduler(Protocol):
    def schedule_once(self, delay_ms: int, callback: Callable[[], None]) -> int: ...

    def schedule_repeating(self, interval_ms: int, callback: Callable[[], bool]) -> int: ...

    def cancel(self, task_id: int) -> None: ...


class QtScheduler(QObject):
    """
    Hands out integer task ids for QTimer-driven callbacks.

    One-shot tasks are forgotten once they run. Repeating tasks keep firing
    for as long as their callback returns True. A cancelled id never fires.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._timers: Dict[int, QTimer] = {}
        self._next_id = 1

    def schedule_once(self, delay_ms: int, callback: Callable[[], None]) -> int:
        task_id = self._allocate_id()

        def _fire() -> None:
            if self._discard(task_id):
                callback()

        self._start_timer(task_id, delay_ms, single_shot=True, slot=_fire)
        return task_id

    def schedule_repeating(self, interval_ms: int, callback: Callable[[], bool]) -> int:
        task_id = self._allocate_id()

        def _tick() -> None:
            if task_id not in self._timers:
                return
            if not callback():
                self._discard(task_id)

        self._start_timer(task_id, interval_ms, single_shot=False, slot=_tick)
        return task_id

    def cancel(self, task_id: int) -> None:
        self._discard(task_id)

    def pending(self) -> int:
        return len(self._timers)

    def _allocate_id(self) -> int:
        task_id = self._next_id
        self._next_id += 1
        return task_id

    def _start_timer(self, task_id: int, interval_ms: int, *, single_shot: bool, slot) -> None:
        timer = QTimer(self)
        timer.setSingleShot(single_shot)
        timer.setInterval(max(0, int(interval_ms)))
        timer.timeout.connect(slot)  # type: ignore[arg-type]
        self._timers[task_id] = timer
        timer.start()

    def _discard(self, task_id: int) -> bool:
        timer = self._timers.pop(task_id, None)
        if timer is None:
            return False
        timer.stop()
        timer.deleteLater()
        return True
