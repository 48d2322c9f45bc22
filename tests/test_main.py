from __future__ import annotations

import sys

import pytest

from break_overlay.app import DEFAULT_BREAK_SECONDS, DEFAULT_WORK_SECONDS
from break_overlay.main import SingleInstance, parse_args


def test_defaults():
    args = parse_args([])

    assert (args.work, args.break_seconds) == (DEFAULT_WORK_SECONDS, DEFAULT_BREAK_SECONDS)
    assert args.test is False
    assert args.verbose is False


def test_interval_flags():
    args = parse_args(["--work", "600", "--break", "90", "-v"])

    assert (args.work, args.break_seconds) == (600, 90)
    assert args.verbose is True


@pytest.mark.skipif(sys.platform == "win32", reason="Windows uses a named mutex")
def test_second_instance_is_refused_until_release(tmp_path):
    first = SingleInstance("BreakOverlay.Test", lock_dir=str(tmp_path))
    second = SingleInstance("BreakOverlay.Test", lock_dir=str(tmp_path))

    assert first.acquire() is True
    assert second.acquire() is False

    first.release()
    assert second.acquire() is True
    second.release()
