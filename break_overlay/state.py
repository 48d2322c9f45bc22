"""
Dialog lifecycle states.
"""

from __future__ import annotations

from enum import Enum


class DialogState(Enum):
    OPENED = 0
    CLOSED = 1
    OPENING = 2
    CLOSING = 3
