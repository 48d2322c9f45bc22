"""
Entry point for the break overlay application.
"""

from __future__ import annotations

import argparse
import ctypes
import sys
from typing import List, Optional

from PySide6.QtCore import QDir, QLockFile
from PySide6.QtWidgets import QApplication

from break_overlay import logger as app_logger
from break_overlay.app import DEFAULT_BREAK_SECONDS, DEFAULT_WORK_SECONDS, AppCoordinator
from break_overlay.settings import APPLICATION_NAME, ORGANIZATION_NAME

_LOGGER = app_logger.get_logger()
INSTANCE_KEY = f"{ORGANIZATION_NAME}.{APPLICATION_NAME}"
_ERROR_ALREADY_EXISTS = 183


class SingleInstance:
    """
    Keeps a second break overlay from starting in the same user session.

    Two overlays would fight over the modal grab, each retrying until its
    budget runs out. On Windows this is a per-session named mutex; elsewhere
    a lock file in the temp directory, which Qt removes again when the
    owning process died without releasing it.
    """

    def __init__(self, key: str = INSTANCE_KEY, lock_dir: Optional[str] = None) -> None:
        self._key = key
        self._mutex = None
        self._lock_file: Optional[QLockFile] = None
        self._lock_path = QDir(lock_dir or QDir.tempPath()).filePath(f"{key}.lock")

    def acquire(self) -> bool:
        if sys.platform == "win32":
            return self._acquire_mutex()
        lock_file = QLockFile(self._lock_path)
        lock_file.setStaleLockTime(0)
        if not lock_file.tryLock(0):
            _LOGGER.debug("Lock file {} is held by another instance.", self._lock_path)
            return False
        self._lock_file = lock_file
        return True

    def release(self) -> None:
        if self._lock_file is not None:
            self._lock_file.unlock()
            self._lock_file = None
        if self._mutex is not None:
            kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
            kernel32.ReleaseMutex(self._mutex)
            kernel32.CloseHandle(self._mutex)
            self._mutex = None

    def _acquire_mutex(self) -> bool:
        kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
        ctypes.set_last_error(0)
        handle = kernel32.CreateMutexW(None, False, f"Local\\{self._key}")
        if not handle:
            _LOGGER.warning("Could not create instance mutex (error {}); continuing.", ctypes.get_last_error())
            return True
        if ctypes.get_last_error() == _ERROR_ALREADY_EXISTS:
            kernel32.CloseHandle(handle)
            return False
        self._mutex = handle
        return True


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="break-overlay", description="Full-screen break reminder.")
    parser.add_argument("--work", type=int, default=DEFAULT_WORK_SECONDS, help="work interval in seconds")
    parser.add_argument("--break", dest="break_seconds", type=int, default=DEFAULT_BREAK_SECONDS,
                        help="break duration in seconds")
    parser.add_argument("--test", action="store_true", help="short intervals (10 s work, 20 s break)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to the console")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    work_seconds, break_seconds = (10, 20) if args.test else (args.work, args.break_seconds)
    if args.verbose:
        app_logger.set_console_level("DEBUG")

    instance = SingleInstance()
    if not instance.acquire():
        _LOGGER.info("Break overlay is already running; exiting.")
        return 0

    try:
        app = QApplication(sys.argv[:1])
        app.setQuitOnLastWindowClosed(False)
        app.setOrganizationName(ORGANIZATION_NAME)
        app.setApplicationName(APPLICATION_NAME)
        coordinator = AppCoordinator(work_seconds=work_seconds, break_seconds=break_seconds)
        coordinator.start()
        _LOGGER.info("Started: {} s work, {} s break. Log file: {}", work_seconds, break_seconds,
                     app_logger.configure())
        return app.exec()
    finally:
        instance.release()


if __name__ == "__main__":
    raise SystemExit(main())
