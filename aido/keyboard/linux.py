"""
Linux/X11 keystrokes through xdotool.
"""

import os
import shutil
import subprocess
from typing import Callable, Mapping, Optional

from loguru import logger

from aido.core.errors import DeliveryError, KeyboardUnavailableError
from aido.keyboard.base import BaseKeyboard, FocusHandle

TYPE_DELAY_MS = "12"


class XdotoolKeyboard(BaseKeyboard):
    """Keystrokes via xdotool on an X11 display."""

    name = "xdotool"

    def __init__(
        self,
        runner: Callable = subprocess.run,
        which: Callable = shutil.which,
        environ: Optional[Mapping[str, str]] = None
    ):
        environ = os.environ if environ is None else environ
        if not environ.get("DISPLAY"):
            raise KeyboardUnavailableError(
                "Typing needs an X11 display (DISPLAY is not set). Use --execute instead."
            )
        if which("xdotool") is None:
            raise KeyboardUnavailableError("xdotool not found; install it or use --execute")
        self._run = runner

    def _xdotool(self, *args: str) -> str:
        try:
            result = self._run(["xdotool", *args], capture_output=True, text=True)
        except OSError as e:
            raise DeliveryError(f"Error executing xdotool: {e}") from e
        if result.returncode != 0:
            raise DeliveryError(f"xdotool {args[0]} failed: {(result.stderr or '').strip()}", result.returncode)
        return (result.stdout or "").strip()

    def send_text(self, text: str) -> None:
        lines = text.split("\n")
        for i, line in enumerate(lines):
            if line:
                self._xdotool("type", "--clearmodifiers", "--delay", TYPE_DELAY_MS, "--", line)
            if i < len(lines) - 1:
                self.send_newline()

    def send_newline(self) -> None:
        self._xdotool("key", "--clearmodifiers", "Return")

    def current_focus(self) -> FocusHandle:
        window = self._xdotool("getactivewindow")
        logger.debug(f"Active window: {window}")
        return window
