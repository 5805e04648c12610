"""
Keystroke backends, one per platform, chosen at startup.
"""

import sys
from typing import Optional

from loguru import logger

from aido.core.errors import KeyboardUnavailableError
from aido.keyboard.base import BaseKeyboard, FocusHandle

__all__ = ["BaseKeyboard", "FocusHandle", "create_keyboard"]


def create_keyboard(platform: Optional[str] = None) -> BaseKeyboard:
    """
    Build the keystroke backend for a platform.

    Args:
        platform: sys.platform value (defaults to the running platform)

    Raises:
        KeyboardUnavailableError: No backend for this platform, or its helper is missing
    """
    platform = platform or sys.platform

    if platform == "darwin":
        from aido.keyboard.macos import MacKeyboard
        keyboard = MacKeyboard()
    elif platform.startswith("linux") or platform.startswith("freebsd"):
        from aido.keyboard.linux import XdotoolKeyboard
        keyboard = XdotoolKeyboard()
    elif platform == "win32":
        from aido.keyboard.windows import WindowsKeyboard
        keyboard = WindowsKeyboard()
    else:
        raise KeyboardUnavailableError(f"Typing is not implemented on {platform}; use --execute")

    logger.debug(f"Keyboard backend: {keyboard.name}")
    return keyboard
