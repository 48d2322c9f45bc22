"""
Break overlay dialog: lifecycle, modal grab and idle handling.
"""

from .break_dialog import BreakDialog  # noqa: F401
from .dialog import DialogState, ModalDialog  # noqa: F401
from .settings import DialogSettings  # noqa: F401
