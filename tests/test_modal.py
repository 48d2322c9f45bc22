from __future__ import annotations

from dataclasses import replace

import pytest

from break_overlay.dialog import ModalDialog
from break_overlay.settings import DialogSettings
from break_overlay.state import DialogState

from conftest import Recorder


@pytest.fixture
def make_dialog(overlay, scheduler, idle_monitor, grab_manager):
    created = []

    def _make(settings=None):
        dialog = ModalDialog(
            overlay,
            scheduler=scheduler,
            idle_monitor=idle_monitor,
            grab_manager=grab_manager,
            settings=settings or DialogSettings(),
            clock=lambda: 5000 + scheduler.now,
        )
        created.append(dialog)
        return dialog

    yield _make
    for dialog in created:
        dialog.destroy()


def test_push_modal_delay_is_clamped_to_zero():
    settings = DialogSettings(min_display_time_ms=500, idle_time_to_push_modal_ms=600)
    assert settings.push_modal_delay_ms == 0
    assert replace(settings, min_display_time_ms=1000).push_modal_delay_ms == 400


def test_idle_watch_armed_immediately_with_default_timings(make_dialog, scheduler, idle_monitor):
    make_dialog().open(False)

    assert (0, None) in scheduler.scheduled
    assert idle_monitor.idle_thresholds() == []

    scheduler.advance(0)

    assert idle_monitor.idle_thresholds() == [600]


def test_idle_watch_waits_for_settle_delay(make_dialog, scheduler, idle_monitor):
    make_dialog(DialogSettings(min_display_time_ms=1000)).open(False)

    scheduler.advance(399)
    assert idle_monitor.idle_thresholds() == []

    scheduler.advance(1)
    assert idle_monitor.idle_thresholds() == [600]


def test_grab_acquired_once_input_goes_quiet(make_dialog, scheduler, idle_monitor, grab_manager, overlay):
    dialog = make_dialog()
    recorder = Recorder(dialog)
    dialog.open(False)
    scheduler.advance(0)

    scheduler.advance(250)
    idle_monitor.set_idle(600)

    assert dialog.has_modal is True
    assert grab_manager.attempts == [5250]
    assert overlay.reactive is True
    assert overlay.focused is True
    assert "modalOpened" in recorder.events
    assert idle_monitor.watch_count() == 0
    assert scheduler.pending() == 0


def test_refused_grab_is_retried_with_original_timestamp(make_dialog, scheduler, idle_monitor, grab_manager):
    grab_manager.succeed = False
    dialog = make_dialog()
    dialog.open(False)
    scheduler.advance(0)
    idle_monitor.set_idle(600)

    scheduler.advance(16 * 5)
    grab_manager.succeed = True
    scheduler.advance(16)

    assert dialog.has_modal is True
    assert grab_manager.attempts == [5000] * 7
    assert (16, 16) in scheduler.scheduled
    assert scheduler.pending() == 0


def test_retry_budget_exhaustion_forces_close(make_dialog, scheduler, idle_monitor, grab_manager):
    grab_manager.succeed = False
    dialog = make_dialog(DialogSettings(push_modal_rate=10, push_modal_time_limit_s=2))
    recorder = Recorder(dialog)
    dialog.open(False)
    scheduler.advance(0)
    idle_monitor.set_idle(600)

    scheduler.advance(100 * 30)

    assert len(grab_manager.attempts) == 20
    assert dialog.state is DialogState.CLOSED
    assert recorder.events[-2:] == ["closing", "closed"]
    assert scheduler.pending() == 0


def test_default_retry_budget_caps_attempts(make_dialog, scheduler, idle_monitor, grab_manager):
    grab_manager.succeed = False
    dialog = make_dialog()
    dialog.open(False)
    scheduler.advance(0)
    idle_monitor.set_idle(600)

    scheduler.advance(1_000_000)

    assert len(grab_manager.attempts) == 60 * 1000
    assert dialog.state is DialogState.CLOSED


def test_close_cancels_pending_acquisition(make_dialog, scheduler, idle_monitor, grab_manager):
    grab_manager.succeed = False
    dialog = make_dialog()
    dialog.open(False)
    scheduler.advance(0)
    idle_monitor.set_idle(600)
    scheduler.advance(16 * 3)

    dialog.close(False)
    attempts = len(grab_manager.attempts)
    scheduler.advance(10_000)

    assert len(grab_manager.attempts) == attempts
    assert scheduler.pending() == 0
    assert idle_monitor.watch_count() == 0


def test_close_before_idle_removes_watch(make_dialog, scheduler, idle_monitor, grab_manager):
    dialog = make_dialog()
    dialog.open(False)
    scheduler.advance(0)

    dialog.close(False)
    idle_monitor.set_idle(600)

    assert idle_monitor.watch_count() == 0
    assert grab_manager.attempts == []


def test_close_releases_grab_exactly_once(make_dialog, scheduler, idle_monitor, grab_manager, overlay):
    dialog = make_dialog()
    dialog.open(False)
    scheduler.advance(0)
    idle_monitor.set_idle(600)

    dialog.close(True)
    dialog.close(True)
    dialog.pop_modal()
    scheduler.advance(1000)

    assert grab_manager.releases == [None]
    assert grab_manager.holder is None
    assert overlay.reactive is False


def test_destroy_releases_held_grab(make_dialog, scheduler, idle_monitor, grab_manager):
    dialog = make_dialog()
    dialog.open(False)
    scheduler.advance(0)
    idle_monitor.set_idle(600)

    dialog.destroy()

    assert grab_manager.holder is None
    assert len(grab_manager.releases) == 1


def test_second_open_does_not_duplicate_watches(make_dialog, scheduler, idle_monitor):
    dialog = make_dialog()
    dialog.open(True)
    dialog.open(True)
    scheduler.advance(0)

    assert idle_monitor.idle_thresholds() == [600]


def test_push_modal_refused_when_closed(make_dialog, grab_manager):
    dialog = make_dialog()

    assert dialog.push_modal() is False
    assert grab_manager.attempts == []


def test_push_modal_while_holding_does_not_reacquire(make_dialog, grab_manager):
    dialog = make_dialog()
    dialog.open(False)

    assert dialog.push_modal(42) is True
    assert dialog.push_modal(43) is True
    assert grab_manager.attempts == [42]


def test_losing_key_focus_closes_dialog(make_dialog, scheduler, idle_monitor, overlay):
    dialog = make_dialog()
    dialog.open(False)
    scheduler.advance(0)
    idle_monitor.set_idle(600)

    overlay.lose_focus()

    assert dialog.state is DialogState.CLOSING


def test_focus_out_within_overlay_keeps_dialog(make_dialog, scheduler, idle_monitor, overlay):
    dialog = make_dialog()
    dialog.open(False)
    scheduler.advance(0)
    idle_monitor.set_idle(600)

    overlay.keyFocusOut.emit()

    assert dialog.state is DialogState.OPENED


def test_focus_loss_ignored_after_pop_modal(make_dialog, scheduler, idle_monitor, overlay):
    dialog = make_dialog()
    dialog.open(False)
    scheduler.advance(0)
    idle_monitor.set_idle(600)

    dialog.pop_modal()
    overlay.lose_focus()

    assert dialog.state is DialogState.OPENED
    assert dialog.has_modal is False
