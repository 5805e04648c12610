"""
Keystroke backend interface.
Every platform backend must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Hashable

# Opaque, equality-comparable identifier of the focused window/control
FocusHandle = Hashable


class BaseKeyboard(ABC):
    """Synthetic keystrokes into whatever window has focus."""

    name = "base"

    @abstractmethod
    def send_text(self, text: str) -> None:
        """
        Type text literally. Embedded newlines become Return presses.

        Raises:
            DeliveryError: The platform refused the keystrokes
        """
        pass

    @abstractmethod
    def send_newline(self) -> None:
        """Press Return once."""
        pass

    @abstractmethod
    def current_focus(self) -> FocusHandle:
        """
        Identify the focused window/control right now.

        Raises:
            DeliveryError: Focus cannot be read
        """
        pass

    def focus_equals(self, handle: FocusHandle) -> bool:
        """True when the focus is still on the window identified by handle."""
        return self.current_focus() == handle

    def __repr__(self) -> str:
        """String representation."""
        return f"{self.__class__.__name__}()"
