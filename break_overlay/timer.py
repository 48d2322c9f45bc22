"""
Break timer consumed by the dialog.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol

from PySide6.QtCore import QObject, QTimer, Signal


class TimerSource(Protocol):
    updated: Signal

    def is_break(self) -> bool: ...

    def get_remaining(self) -> float: ...


@dataclass(frozen=True)
class TimerSnapshot:
    is_break: bool = False
    remaining_seconds: float = 0.0

    @classmethod
    def capture(cls, timer: TimerSource) -> "TimerSnapshot":
        return cls(is_break=timer.is_break(), remaining_seconds=max(timer.get_remaining(), 0.0))


class BreakTimer(QObject):
    """
    Minimal countdown with a break phase.

    Emits `updated` once per tick while running, `breakStarted` when a break
    begins and `breakFinished` when its countdown runs out or it is stopped.
    """

    updated = Signal()
    breakStarted = Signal()
    breakFinished = Signal()

    def __init__(self, tick_interval_ms: int = 1000, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._is_break = False
        self._deadline = 0.0
        self._ticker = QTimer(self)
        self._ticker.setInterval(tick_interval_ms)
        self._ticker.timeout.connect(self._on_tick)  # type: ignore[arg-type]

    def is_break(self) -> bool:
        return self._is_break

    def get_remaining(self) -> float:
        if not self._is_break:
            return 0.0
        return max(self._deadline - time.monotonic(), 0.0)

    def start_break(self, duration_seconds: float) -> None:
        self._is_break = True
        self._deadline = time.monotonic() + duration_seconds
        self._ticker.start()
        self.breakStarted.emit()
        self.updated.emit()

    def stop(self) -> None:
        if not self._is_break:
            return
        self._is_break = False
        self._ticker.stop()
        self.updated.emit()
        self.breakFinished.emit()

    def _on_tick(self) -> None:
        if self.get_remaining() <= 0.0:
            self.stop()
            return
        self.updated.emit()
