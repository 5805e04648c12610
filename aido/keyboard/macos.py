"""
macOS keystrokes through AppleScript (System Events).
Requires the terminal to have Accessibility permission.
"""

import shutil
import subprocess
from typing import Callable, List

from loguru import logger

from aido.core.errors import DeliveryError, KeyboardUnavailableError
from aido.keyboard.base import BaseKeyboard, FocusHandle

FOCUS_SCRIPT = """
tell application "System Events"
    set frontProc to first application process whose frontmost is true
    set procId to unix id of frontProc
    try
        set winName to name of front window of frontProc
    on error
        set winName to ""
    end try
    return (procId as text) & "|" & winName
end tell
"""


def applescript_string(text: str) -> str:
    """Quote text as an AppleScript string literal."""
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class MacKeyboard(BaseKeyboard):
    """Keystrokes via osascript."""

    name = "macos"

    def __init__(self, runner: Callable = subprocess.run, which: Callable = shutil.which):
        if which("osascript") is None:
            raise KeyboardUnavailableError("osascript not found; cannot type on this system")
        self._run = runner

    def _osascript(self, script: str) -> str:
        try:
            result = self._run(["osascript", "-e", script], capture_output=True, text=True)
        except OSError as e:
            raise DeliveryError(f"Error executing osascript: {e}") from e
        if result.returncode != 0:
            raise DeliveryError(f"Error executing osascript: {(result.stderr or '').strip()}", result.returncode)
        return (result.stdout or "").strip()

    def send_text(self, text: str) -> None:
        lines: List[str] = text.split("\n")
        for i, line in enumerate(lines):
            if line:
                self._osascript(f'tell application "System Events" to keystroke {applescript_string(line)}')
            if i < len(lines) - 1:
                self.send_newline()

    def send_newline(self) -> None:
        self._osascript('tell application "System Events" to keystroke return')

    def current_focus(self) -> FocusHandle:
        focus = self._osascript(FOCUS_SCRIPT)
        logger.debug(f"Focused window: {focus!r}")
        return focus
