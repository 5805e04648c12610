"""
Delivery Engine - makes the resolved command take effect.

Execute mode runs the command through the detected shell. Type mode replays
it as keystrokes into the window that had focus when generation started.
"""

import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from loguru import logger
from rich.console import Console

from aido.core.errors import DeliveryError, FocusChangedError
from aido.keyboard import BaseKeyboard, FocusHandle, create_keyboard

# Shells that understand `set -e` and read a script from stdin
STRICT_POSIX_SHELLS = frozenset({"bash", "sh", "zsh", "ksh", "dash"})
# Shells without a strict-mode directive; one invocation per command
LOOSE_SHELLS = frozenset({"fish", "tcsh", "csh"})
POWERSHELLS = frozenset({"powershell", "pwsh"})

FOCUS_WARNING = "Window focus changed during command generation."


class DeliveryMode(str, Enum):
    EXECUTE = "execute"
    TYPE = "type"


@dataclass(frozen=True)
class DeliveryPlan:
    """Commands to deliver, or an explanation to show instead."""
    commands: Tuple[str, ...] = ()
    explanation: str = ""

    @property
    def explain_only(self) -> bool:
        return not self.commands

    @classmethod
    def single(cls, command: str) -> "DeliveryPlan":
        return cls(commands=(command,))

    @classmethod
    def explain(cls, text: str) -> "DeliveryPlan":
        return cls(explanation=text)


def _press_enter() -> bool:
    try:
        Console(stderr=True).input("Press enter to continue")
    except EOFError:
        return False
    return True


class DeliveryEngine:
    """Delivers a DeliveryPlan exactly once, by execution or by typing."""

    def __init__(
        self,
        shell: str,
        mode: DeliveryMode,
        keyboard: Optional[BaseKeyboard] = None,
        interactive: bool = True,
        confirm: Optional[Callable[[], bool]] = None,
        warn: Optional[Callable[[str], None]] = None,
        runner: Optional[Callable] = None
    ):
        """
        Args:
            shell: Detected (or overridden) shell name
            mode: Execute or type
            keyboard: Keystroke backend; created for the platform in type mode
            interactive: Whether a focus change may block for confirmation
            confirm: Asks the user to acknowledge a focus change
            warn: Shows a warning to the user
            runner: subprocess.run compatible callable

        Raises:
            KeyboardUnavailableError: Type mode on a platform without a backend
        """
        self.shell = shell
        self.mode = DeliveryMode(mode)
        self.interactive = interactive
        self.confirm = confirm or _press_enter
        self.warn = warn or (lambda message: logger.warning(message))
        self._run = runner or subprocess.run

        if self.mode == DeliveryMode.TYPE and keyboard is None:
            keyboard = create_keyboard()
        self.keyboard = keyboard

        self._focus: Optional[FocusHandle] = None
        self._delivered = False

    def capture_focus(self) -> None:
        """Remember which window has focus. Call when generation begins."""
        if self.mode != DeliveryMode.TYPE:
            return
        self._focus = self.keyboard.current_focus()
        logger.debug(f"Captured focus: {self._focus!r}")

    def deliver(self, plan: DeliveryPlan) -> bool:
        """
        Execute or type the plan's commands.

        Returns:
            True if something was delivered, False for an explain-only plan

        Raises:
            DeliveryError: The plan was already delivered, the shell failed,
                or keystrokes could not be sent
            FocusChangedError: Focus moved and the user did not confirm
        """
        if plan.explain_only:
            logger.debug("Explain-only plan, nothing to deliver")
            return False
        if self._delivered:
            raise DeliveryError("Command was already delivered")
        self._delivered = True

        logger.info(f"Delivering {len(plan.commands)} command(s) in {self.mode.value} mode via {self.shell!r}")
        if self.mode == DeliveryMode.EXECUTE:
            self.execute(plan.commands)
        else:
            self.type_commands(plan.commands)
        return True

    # ------------------------------------------------------------------
    # Execute mode
    # ------------------------------------------------------------------
    def _invoke(self, args: Sequence[str], stdin: Optional[str] = None) -> None:
        try:
            result = self._run(list(args), input=stdin, text=True)
        except FileNotFoundError as e:
            raise DeliveryError(f"Shell not found: {args[0]} ({e})") from e
        except OSError as e:
            raise DeliveryError(f"Error executing command: {e}") from e

        if result.returncode != 0:
            raise DeliveryError(f"Command exited with status {result.returncode}", result.returncode)

    def execute(self, commands: Sequence[str]) -> None:
        shell = self.shell
        if not shell:
            raise DeliveryError("Could not detect your shell; pass --shell to execute commands")

        if shell in POWERSHELLS:
            for command in commands:
                self._invoke([shell, "-Command", command])
        elif shell == "cmd":
            for command in commands:
                self._invoke(["cmd", "/C", command])
        elif shell in LOOSE_SHELLS:
            for command in commands:
                self._invoke([shell, "-c", command])
        else:
            if shell not in STRICT_POSIX_SHELLS:
                logger.warning(f"Unknown shell {shell!r}, running the batch as a POSIX script")
            batch = "set -e\n" + "\n".join(commands) + "\n"
            self._invoke([shell], stdin=batch)

    # ------------------------------------------------------------------
    # Type mode
    # ------------------------------------------------------------------
    def _check_focus(self) -> None:
        if self._focus is None:
            logger.debug("No focus captured, skipping focus check")
            return
        if self.keyboard.focus_equals(self._focus):
            return

        self.warn(FOCUS_WARNING)
        if self.interactive and not self.confirm():
            raise FocusChangedError("Focus changed and typing was not confirmed")

    def type_commands(self, commands: Sequence[str]) -> None:
        self._check_focus()
        keyboard = self.keyboard

        if len(commands) == 1:
            keyboard.send_text(commands[0])
            return

        if self.shell in POWERSHELLS:
            opening, closing = "AiDo {", "}"
        else:
            opening, closing = "(", ")"

        keyboard.send_text(opening)
        keyboard.send_newline()
        for command in commands:
            keyboard.send_text(command)
            keyboard.send_newline()
        keyboard.send_text(closing)
