from __future__ import annotations

import os
import tempfile
from pathlib import Path

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault(
    "BREAK_OVERLAY_LOG_DIR", str(Path(tempfile.gettempdir()) / "break-overlay-tests")
)

import pytest  # noqa: E402
from PySide6.QtCore import QObject, Signal  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from break_overlay.break_dialog import BreakDialog  # noqa: E402
from break_overlay.focused_window import FocusedWindowInfo  # noqa: E402
from break_overlay.settings import DialogSettings  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


class FakeScheduler:
    """Manual clock; callbacks only run from `advance`."""

    def __init__(self) -> None:
        self.now = 0
        self._tasks = {}
        self._next_id = 1
        self.scheduled = []

    def schedule_once(self, delay_ms, callback):
        return self._add(delay_ms, None, callback)

    def schedule_repeating(self, interval_ms, callback):
        return self._add(interval_ms, interval_ms, callback)

    def cancel(self, task_id):
        self._tasks.pop(task_id, None)

    def pending(self):
        return len(self._tasks)

    def advance(self, ms):
        target = self.now + ms
        while True:
            due = [(task[0], task_id) for task_id, task in self._tasks.items() if task[0] <= target]
            if not due:
                break
            when, task_id = min(due)
            self.now = when
            _, interval, callback = self._tasks[task_id]
            if interval is None:
                del self._tasks[task_id]
                callback()
                continue
            keep = callback()
            if task_id in self._tasks:
                if keep:
                    self._tasks[task_id][0] = when + max(interval, 1)
                else:
                    del self._tasks[task_id]
        self.now = target

    def _add(self, delay, interval, callback):
        task_id = self._next_id
        self._next_id += 1
        self._tasks[task_id] = [self.now + delay, interval, callback]
        self.scheduled.append((delay, interval))
        return task_id


class FakeIdleMonitor:
    def __init__(self) -> None:
        self.idle_time = 0
        self.error = None
        self._watches = {}
        self._next_id = 1
        self.removed = []

    def get_idle_time(self):
        if self.error is not None:
            raise self.error
        return self.idle_time

    def add_idle_watch(self, threshold_ms, callback):
        return self._add(threshold_ms, callback)

    def add_user_active_watch(self, callback):
        return self._add(None, callback)

    def remove_watch(self, watch_id):
        self.removed.append(watch_id)
        self._watches.pop(watch_id, None)

    def idle_thresholds(self):
        return sorted(t for t, _ in self._watches.values() if t is not None)

    def active_watch_count(self):
        return sum(1 for t, _ in self._watches.values() if t is None)

    def watch_count(self):
        return len(self._watches)

    def set_idle(self, idle_ms):
        became_active = idle_ms < self.idle_time
        self.idle_time = idle_ms
        for watch_id, (threshold, callback) in list(self._watches.items()):
            due = became_active if threshold is None else idle_ms >= threshold
            if due and self._watches.pop(watch_id, None) is not None:
                callback()

    def _add(self, threshold, callback):
        watch_id = self._next_id
        self._next_id += 1
        self._watches[watch_id] = (threshold, callback)
        return watch_id


class FakeGrabManager:
    def __init__(self, succeed=True) -> None:
        self.succeed = succeed
        self.attempts = []
        self.releases = []
        self.holder = None

    def acquire(self, surface, timestamp=None):
        self.attempts.append(timestamp)
        if self.holder is not None or not self.succeed:
            return False
        self.holder = surface
        return True

    def release(self, surface, timestamp=None):
        self.releases.append(timestamp)
        if self.holder is surface:
            self.holder = None


class FakeOverlay(QObject):
    keyFocusOut = Signal()

    def __init__(self) -> None:
        super().__init__()
        self.calls = []
        self.visible = False
        self.reactive = False
        self.focused = False
        self.description = None
        self.remaining = None
        self.disposed = False
        self.event_handler = None

    def raise_(self):
        self.calls.append("raise")

    def show(self):
        self.calls.append("show")
        self.visible = True

    def hide(self):
        self.calls.append("hide")
        self.visible = False

    def light_on(self, duration_ms=0):
        self.calls.append(("light_on", duration_ms))

    def light_off(self, duration_ms=0):
        self.calls.append(("light_off", duration_ms))

    def set_reactive(self, reactive):
        self.reactive = reactive

    def take_key_focus(self):
        self.focused = True

    def contains_focus(self):
        return self.focused

    def set_description(self, text):
        self.description = text

    def set_remaining(self, seconds):
        self.remaining = seconds

    def dispose(self):
        self.disposed = True

    def set_event_handler(self, handler):
        self.event_handler = handler

    def deliver(self, event):
        if self.reactive and self.event_handler is not None:
            return self.event_handler(event)
        return None

    def lose_focus(self):
        self.focused = False
        self.keyFocusOut.emit()


class FakeTimer(QObject):
    updated = Signal()

    def __init__(self, is_break=True, remaining=300.0) -> None:
        super().__init__()
        self.breaking = is_break
        self.remaining = remaining

    def is_break(self):
        return self.breaking

    def get_remaining(self):
        return self.remaining


class Recorder:
    """Collects emitted lifecycle signal names in order."""

    def __init__(self, dialog) -> None:
        self.events = []
        self.states = []
        for name in ("opening", "opened", "closing", "closed", "modalOpened"):
            getattr(dialog, name).connect(lambda name=name: self.events.append(name))
        dialog.stateChanged.connect(self.states.append)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def idle_monitor():
    return FakeIdleMonitor()


@pytest.fixture
def grab_manager():
    return FakeGrabManager()


@pytest.fixture
def overlay():
    return FakeOverlay()


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def settings():
    return DialogSettings()


@pytest.fixture
def window_info():
    holder = {"info": FocusedWindowInfo()}
    return holder


@pytest.fixture
def make_break_dialog(scheduler, idle_monitor, grab_manager, overlay, timer, window_info):
    created = []

    def _make(settings=None):
        dialog = BreakDialog(
            timer,
            overlay=overlay,
            scheduler=scheduler,
            idle_monitor=idle_monitor,
            grab_manager=grab_manager,
            settings=settings or DialogSettings(),
            focused_window_info=lambda: window_info["info"],
            clock=lambda: 1000 + scheduler.now,
        )
        created.append(dialog)
        return dialog

    yield _make
    for dialog in created:
        dialog.destroy()
