"""
QSettings-backed timing configuration for the break dialog.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Optional, Tuple, Union

from PySide6.QtCore import QSettings

from break_overlay import logger as app_logger

_LOGGER = app_logger.get_logger()

ORGANIZATION_NAME = "BreakOverlay"
APPLICATION_NAME = "Dialog"
_GROUP = "Dialog"

Number = Union[int, float]


@dataclass(frozen=True)
class DialogSettings:
    # Time between input events before the dialog turns modal. A little
    # higher than the gap between key presses of a slow typist (~523 ms).
    idle_time_to_push_modal_ms: int = 600
    push_modal_time_limit_s: int = 1000
    push_modal_rate: int = 60
    motion_distance_to_close: int = 20

    idle_time_to_open_ms: int = 60000
    idle_time_to_close_ms: int = 600
    min_display_time_ms: int = 500

    fade_in_ms: int = 300
    fade_out_ms: int = 300
    blur_brightness: float = 0.4

    open_when_idle_min_remaining_s: float = 3.0

    @property
    def push_modal_delay_ms(self) -> int:
        return max(self.min_display_time_ms - self.idle_time_to_push_modal_ms, 0)

    @property
    def push_modal_interval_ms(self) -> int:
        return 1000 // self.push_modal_rate

    @property
    def push_modal_max_attempts(self) -> int:
        return self.push_modal_rate * self.push_modal_time_limit_s


# Safe bounds per key; values outside are clamped.
_BOUNDS: dict[str, Tuple[Number, Number]] = {
    "idle_time_to_push_modal_ms": (0, 10000),
    "push_modal_time_limit_s": (1, 3600),
    "push_modal_rate": (1, 1000),
    "motion_distance_to_close": (0, 1000),
    "idle_time_to_open_ms": (1000, 3600000),
    "idle_time_to_close_ms": (0, 60000),
    "min_display_time_ms": (0, 60000),
    "fade_in_ms": (0, 5000),
    "fade_out_ms": (0, 5000),
    "blur_brightness": (0.0, 1.0),
    "open_when_idle_min_remaining_s": (0.0, 600.0),
}


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class DialogSettingsManager:
    """Loads persisted overrides from QSettings and clamps invalid data."""

    def __init__(self, *, store: Optional[QSettings] = None) -> None:
        self._store = store or QSettings(ORGANIZATION_NAME, APPLICATION_NAME)

    def read_settings(self) -> DialogSettings:
        defaults = DialogSettings()
        values = {}
        self._store.beginGroup(_GROUP)
        try:
            for field_info in fields(DialogSettings):
                default = getattr(defaults, field_info.name)
                values[field_info.name] = self._read_value(field_info.name, default)
        finally:
            self._store.endGroup()
        return DialogSettings(**values)

    def _read_value(self, name: str, default: Number) -> Number:
        key = _camel_case(name)
        if not self._store.contains(key):
            return default
        raw = self._store.value(key)
        try:
            value = self._coerce(raw, type(default))
        except ValueError:
            _LOGGER.warning("Setting {} has unexpected value {!r}; using default.", key, raw)
            return default

        low, high = _BOUNDS[name]
        if value < low or value > high:
            _LOGGER.warning(
                "Setting {}={} is out of bounds. Clamping to safe bounds.",
                key,
                value,
            )
        return type(default)(max(low, min(high, value)))

    @staticmethod
    def _coerce(raw, target: type) -> Number:
        if isinstance(raw, bool) or raw is None:
            raise ValueError(raw)
        try:
            if target is int:
                return int(float(raw))
            return float(raw)
        except (TypeError, ValueError) as exc:
            raise ValueError(raw) from exc
