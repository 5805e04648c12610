"""
Status reporting: the thinking indicator, streamed answers and notices.
"""

from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from aido.llm.base_client import Message


class StatusReporter:
    """Handles user-facing output for one run."""

    def __init__(
        self,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
        interactive: bool = True,
        verbose: bool = False
    ):
        """
        Args:
            console: Where answers and commands are printed
            err_console: Where the thinking indicator and notices go
            interactive: Colour comment lines in streamed text
            verbose: Print debug details such as the assembled prompt
        """
        self.console = console or Console(soft_wrap=True)
        self.err_console = err_console or Console(stderr=True, soft_wrap=True)
        self.interactive = interactive
        self.verbose = verbose
        self._status = None
        self._at_line_start = True
        self._in_comment = False
        self._streamed = False

    # ------------------------------------------------------------------
    # Thinking indicator
    # ------------------------------------------------------------------
    def thinking(self, message: str = "Thinking ...") -> None:
        if self._status is not None:
            return
        self._status = self.err_console.status(Text(f"🤖 {message}", style="yellow"), spinner="dots")
        self._status.start()

    def stop_thinking(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    # ------------------------------------------------------------------
    # Streamed text
    # ------------------------------------------------------------------
    def stream_text(self, chunk: str) -> None:
        """Echo one text delta. Lines starting with '#' are shown in green."""
        self.stop_thinking()
        self._streamed = True

        if not self.interactive:
            self.console.out(chunk, end="", highlight=False)
            if chunk:
                self._at_line_start = chunk.endswith("\n")
            return

        text = Text()
        for char in chunk:
            if self._at_line_start and char == "#":
                self._in_comment = True
            text.append(char, style="green" if self._in_comment and char != "\n" else None)
            if char == "\n":
                self._in_comment = False
                self._at_line_start = True
            else:
                self._at_line_start = False
        self.console.print(text, end="")

    def end_stream(self) -> None:
        """Finish the streamed block with a newline if anything was echoed."""
        self.stop_thinking()
        if self._streamed and not self._at_line_start:
            self.console.print()
        self._streamed = False
        self._at_line_start = True
        self._in_comment = False

    # ------------------------------------------------------------------
    # Notices
    # ------------------------------------------------------------------
    def command(self, command: str, label: Optional[str] = None) -> None:
        if label:
            self.err_console.print(f"[bold]{label}[/bold]")
        self.console.print(Text(command, style="yellow"))

    def explanation(self, text: str, label: Optional[str] = None) -> None:
        if label:
            self.err_console.print(f"\n[bold]{label}[/bold]")
        if text:
            self.console.print(text, markup=False, highlight=False)

    def warning(self, message: str) -> None:
        self.stop_thinking()
        self.err_console.print(f"[yellow]{escape(message)}[/yellow]")

    def faint(self, message: str) -> None:
        self.stop_thinking()
        self.err_console.print(f"[dim]{escape(message)}[/dim]")

    def error(self, message: str) -> None:
        self.stop_thinking()
        self.err_console.print(f"[red]❌ {escape(message)}[/red]")

    def debug(self, message: str) -> None:
        if self.verbose:
            self.err_console.print(Text(f"Debug: {message}", style="dim"))

    def debug_messages(self, messages: Sequence[Message]) -> None:
        if not self.verbose:
            return
        for i, message in enumerate(messages):
            self.err_console.print(f"[dim]Debug: Message {i} - Role: {message.role}[/dim]")
            self.err_console.print(message.content, markup=False, highlight=False)
