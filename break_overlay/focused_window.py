"""
Foreground window lookup used to avoid covering fullscreen video playback.
"""

from __future__ import annotations

import ctypes
import sys
from dataclasses import dataclass
from pathlib import PureWindowsPath
from typing import Optional

from break_overlay import logger as app_logger

_LOGGER = app_logger.get_logger()

MEDIA_PLAYERS = frozenset(
    {
        "vlc.exe",
        "mpv.exe",
        "mpc-hc.exe",
        "mpc-hc64.exe",
        "mpc-be64.exe",
        "potplayermini64.exe",
        "wmplayer.exe",
        "video.ui.exe",
        "kodi.exe",
        "plex.exe",
        "totem",
        "celluloid",
        "smplayer",
    }
)

_PROCESS_QUERY_LIMITED_INFORMATION = 0x1000
_MONITOR_DEFAULTTONEAREST = 2


@dataclass(frozen=True)
class FocusedWindowInfo:
    process_name: Optional[str] = None
    is_player: bool = False
    is_fullscreen: bool = False


class _RECT(ctypes.Structure):
    _fields_ = [
        ("left", ctypes.c_long),
        ("top", ctypes.c_long),
        ("right", ctypes.c_long),
        ("bottom", ctypes.c_long),
    ]


class _MONITORINFO(ctypes.Structure):
    _fields_ = [
        ("cbSize", ctypes.c_ulong),
        ("rcMonitor", _RECT),
        ("rcWork", _RECT),
        ("dwFlags", ctypes.c_ulong),
    ]


def get_focused_window_info() -> FocusedWindowInfo:
    """
    Describe the foreground window.

    Falls back to an empty description when the platform cannot be queried,
    which callers treat as "not a fullscreen player".
    """
    try:
        return _query_foreground_window()
    except OSError as exc:
        _LOGGER.debug("Foreground window query failed: {}", exc)
        return FocusedWindowInfo()


def _query_foreground_window() -> FocusedWindowInfo:
    if sys.platform != "win32":
        raise OSError("Foreground window query is only available on Windows")

    user32 = ctypes.windll.user32  # type: ignore[attr-defined]
    hwnd = user32.GetForegroundWindow()
    if not hwnd:
        return FocusedWindowInfo()

    process_name = _process_name_for_window(hwnd)
    return FocusedWindowInfo(
        process_name=process_name,
        is_player=is_media_player(process_name),
        is_fullscreen=_covers_monitor(hwnd),
    )


def is_media_player(process_name: Optional[str]) -> bool:
    return bool(process_name) and process_name.lower() in MEDIA_PLAYERS


def _process_name_for_window(hwnd) -> Optional[str]:
    user32 = ctypes.windll.user32  # type: ignore[attr-defined]
    kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]

    pid = ctypes.c_ulong()
    user32.GetWindowThreadProcessId(hwnd, ctypes.byref(pid))
    handle = kernel32.OpenProcess(_PROCESS_QUERY_LIMITED_INFORMATION, False, pid.value)
    if not handle:
        return None
    try:
        size = ctypes.c_ulong(260)
        buffer = ctypes.create_unicode_buffer(size.value)
        if not kernel32.QueryFullProcessImageNameW(handle, 0, buffer, ctypes.byref(size)):
            raise ctypes.WinError()  # type: ignore[attr-defined]
        return PureWindowsPath(buffer.value).name
    finally:
        kernel32.CloseHandle(handle)


def _covers_monitor(hwnd) -> bool:
    user32 = ctypes.windll.user32  # type: ignore[attr-defined]

    window = _RECT()
    if not user32.GetWindowRect(hwnd, ctypes.byref(window)):
        raise ctypes.WinError()  # type: ignore[attr-defined]

    monitor = user32.MonitorFromWindow(hwnd, _MONITOR_DEFAULTTONEAREST)
    info = _MONITORINFO()
    info.cbSize = ctypes.sizeof(_MONITORINFO)
    if not user32.GetMonitorInfoW(monitor, ctypes.byref(info)):
        raise ctypes.WinError()  # type: ignore[attr-defined]

    screen = info.rcMonitor
    return (
        window.left <= screen.left
        and window.top <= screen.top
        and window.right >= screen.right
        and window.bottom >= screen.bottom
    )
