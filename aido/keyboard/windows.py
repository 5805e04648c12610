"""
Windows keystrokes through user32 SendInput.
Focus is the foreground window, its GUI thread and the control holding focus.
"""

import ctypes
from ctypes import wintypes
from typing import NamedTuple

from loguru import logger

from aido.core.errors import DeliveryError, KeyboardUnavailableError
from aido.keyboard.base import BaseKeyboard

INPUT_KEYBOARD = 1
KEYEVENTF_KEYUP = 0x0002
KEYEVENTF_UNICODE = 0x0004
VK_RETURN = 0x0D

ULONG_PTR = ctypes.c_size_t


class KEYBDINPUT(ctypes.Structure):
    _fields_ = [
        ("wVk", wintypes.WORD),
        ("wScan", wintypes.WORD),
        ("dwFlags", wintypes.DWORD),
        ("time", wintypes.DWORD),
        ("dwExtraInfo", ULONG_PTR),
    ]


class MOUSEINPUT(ctypes.Structure):
    _fields_ = [
        ("dx", wintypes.LONG),
        ("dy", wintypes.LONG),
        ("mouseData", wintypes.DWORD),
        ("dwFlags", wintypes.DWORD),
        ("time", wintypes.DWORD),
        ("dwExtraInfo", ULONG_PTR),
    ]


class HARDWAREINPUT(ctypes.Structure):
    _fields_ = [
        ("uMsg", wintypes.DWORD),
        ("wParamL", wintypes.WORD),
        ("wParamH", wintypes.WORD),
    ]


class _INPUTUNION(ctypes.Union):
    _fields_ = [("ki", KEYBDINPUT), ("mi", MOUSEINPUT), ("hi", HARDWAREINPUT)]


class INPUT(ctypes.Structure):
    _fields_ = [("type", wintypes.DWORD), ("union", _INPUTUNION)]


class GUITHREADINFO(ctypes.Structure):
    _fields_ = [
        ("cbSize", wintypes.DWORD),
        ("flags", wintypes.DWORD),
        ("hwndActive", wintypes.HWND),
        ("hwndFocus", wintypes.HWND),
        ("hwndCapture", wintypes.HWND),
        ("hwndMenuOwner", wintypes.HWND),
        ("hwndMoveSize", wintypes.HWND),
        ("hwndCaret", wintypes.HWND),
        ("rcCaret", wintypes.RECT),
    ]


class FocusedControl(NamedTuple):
    window: int
    thread_id: int
    control: int


def _key_input(vk: int = 0, scan: int = 0, flags: int = 0) -> INPUT:
    return INPUT(type=INPUT_KEYBOARD, union=_INPUTUNION(ki=KEYBDINPUT(wVk=vk, wScan=scan, dwFlags=flags)))


def _utf16_units(text: str):
    data = text.encode("utf-16-le")
    return [int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2)]


class WindowsKeyboard(BaseKeyboard):
    """Keystrokes via SendInput with KEYEVENTF_UNICODE."""

    name = "windows"

    def __init__(self):
        try:
            self._user32 = ctypes.WinDLL("user32", use_last_error=True)
        except (AttributeError, OSError) as e:
            raise KeyboardUnavailableError(f"user32.dll is not available: {e}") from e

        self._user32.SendInput.argtypes = (wintypes.UINT, ctypes.POINTER(INPUT), ctypes.c_int)
        self._user32.SendInput.restype = wintypes.UINT
        self._user32.GetForegroundWindow.restype = wintypes.HWND
        self._user32.GetWindowThreadProcessId.argtypes = (wintypes.HWND, ctypes.POINTER(wintypes.DWORD))
        self._user32.GetWindowThreadProcessId.restype = wintypes.DWORD
        self._user32.GetGUIThreadInfo.argtypes = (wintypes.DWORD, ctypes.POINTER(GUITHREADINFO))
        self._user32.GetGUIThreadInfo.restype = wintypes.BOOL

    def _send_inputs(self, inputs) -> None:
        array = (INPUT * len(inputs))(*inputs)
        sent = self._user32.SendInput(len(inputs), array, ctypes.sizeof(INPUT))
        if sent != len(inputs):
            error = ctypes.get_last_error()
            raise DeliveryError(f"Sending inputs failed: {ctypes.FormatError(error)} (error {error})")

    def _send_unit(self, unit: int) -> None:
        self._send_inputs([
            _key_input(scan=unit, flags=KEYEVENTF_UNICODE),
            _key_input(scan=unit, flags=KEYEVENTF_UNICODE | KEYEVENTF_KEYUP),
        ])

    def send_text(self, text: str) -> None:
        for char in text:
            if char == "\n":
                self.send_newline()
                continue
            for unit in _utf16_units(char):
                self._send_unit(unit)

    def send_newline(self) -> None:
        self._send_inputs([_key_input(vk=VK_RETURN), _key_input(vk=VK_RETURN, flags=KEYEVENTF_KEYUP)])

    def current_focus(self) -> FocusedControl:
        hwnd = self._user32.GetForegroundWindow()
        thread_id = self._user32.GetWindowThreadProcessId(hwnd, None)

        info = GUITHREADINFO(cbSize=ctypes.sizeof(GUITHREADINFO))
        if not self._user32.GetGUIThreadInfo(thread_id, ctypes.byref(info)):
            error = ctypes.get_last_error()
            raise DeliveryError(f"Cannot read focused control: {ctypes.FormatError(error)} (error {error})")

        control = FocusedControl(window=hwnd or 0, thread_id=thread_id, control=info.hwndFocus or 0)
        logger.debug(f"Focused control: {control}")
        return control
