"""
Completion stream consumer.

Pulls OpenAI-shaped chunks one at a time, echoes free text as it arrives and
accumulates a return_command function call. The stream is always closed.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple

from loguru import logger

from aido.core.errors import FunctionCallError, StreamError
from aido.core.tool_definitions import RETURN_COMMAND


class StreamState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ReturnCommand:
    """Decoded arguments of a return_command call."""
    command: str
    binaries: Tuple[str, ...] = ()

    @classmethod
    def from_json(cls, raw: str) -> "ReturnCommand":
        """
        Decode the accumulated argument string.

        Raises:
            FunctionCallError: Arguments are not a valid return_command payload
        """
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FunctionCallError(f"Error parsing function arguments: {e}: {raw!r}") from e

        if not isinstance(data, dict):
            raise FunctionCallError(f"Function arguments must be an object, got: {raw!r}")

        command = data.get("command", "")
        binaries = data.get("binaries") or []
        if not isinstance(command, str):
            raise FunctionCallError(f"'command' must be a string, got: {command!r}")
        if not isinstance(binaries, list) or not all(isinstance(b, str) for b in binaries):
            raise FunctionCallError(f"'binaries' must be a list of strings, got: {binaries!r}")

        return cls(command=command.strip(), binaries=tuple(b.strip() for b in binaries if b.strip()))


@dataclass
class StreamedCompletion:
    """Accumulator for one streamed response."""
    text: str = ""
    function_name: str = ""
    function_args: str = ""
    chunks: int = 0

    @property
    def function_called(self) -> bool:
        return bool(self.function_name)


@dataclass
class StreamResult:
    """Terminal outcome of one stream."""
    text: str
    function_name: str = ""
    function_args: str = ""
    command: Optional[ReturnCommand] = None

    @property
    def has_command(self) -> bool:
        return self.command is not None and bool(self.command.command)


@dataclass
class _FunctionFragment:
    index: int
    name: Optional[str]
    arguments: Optional[str]


class CompletionStreamConsumer:
    """
    Drive one completion stream to its end.

    States: IDLE -> ACCUMULATING -> COMPLETE, or ACCUMULATING -> ERROR when a
    chunk read fails.
    """

    def __init__(self, on_text: Optional[Callable[[str], None]] = None):
        """
        Args:
            on_text: Receives each free-text delta as soon as it arrives
        """
        self.on_text = on_text
        self.state = StreamState.IDLE
        self.completion = StreamedCompletion()
        self._tool_index: Optional[int] = None

    def consume(self, stream: Iterable[Any]) -> StreamResult:
        """
        Read the stream to completion.

        Args:
            stream: Chunk iterable, closed on every exit path

        Returns:
            StreamResult

        Raises:
            StreamError: A chunk could not be read
            FunctionCallError: return_command arguments are malformed
        """
        self.state = StreamState.IDLE
        self.completion = StreamedCompletion()
        self._tool_index = None

        try:
            iterator = iter(stream)
            while True:
                try:
                    chunk = next(iterator)
                except StopIteration:
                    break
                except Exception as e:
                    self.state = StreamState.ERROR
                    logger.error(f"Stream error after {self.completion.chunks} chunks: {e}")
                    raise StreamError(f"Stream error: {e}") from e

                self.state = StreamState.ACCUMULATING
                self.completion.chunks += 1
                self._process_chunk(chunk)
        finally:
            # Always close stream to stop server-side generation
            close = getattr(stream, "close", None)
            if callable(close):
                close()

        self.state = StreamState.COMPLETE
        return self._finish()

    def _process_chunk(self, chunk: Any) -> None:
        choices = getattr(chunk, "choices", None)
        if not choices:
            return
        delta = getattr(choices[0], "delta", None)
        if delta is None:
            return

        fragments = self._function_fragments(delta)
        if fragments:
            for fragment in fragments:
                self._accumulate_function(fragment)
            return

        content = getattr(delta, "content", None)
        if content:
            self.completion.text += content
            if self.on_text is not None:
                self.on_text(content)

    @staticmethod
    def _function_fragments(delta: Any) -> List[_FunctionFragment]:
        fragments = []
        for tool_call in getattr(delta, "tool_calls", None) or []:
            function = getattr(tool_call, "function", None)
            if function is None:
                continue
            fragments.append(_FunctionFragment(
                index=getattr(tool_call, "index", 0) or 0,
                name=getattr(function, "name", None),
                arguments=getattr(function, "arguments", None),
            ))

        # Legacy "functions" API shape
        function_call = getattr(delta, "function_call", None)
        if not fragments and function_call is not None:
            fragments.append(_FunctionFragment(
                index=0,
                name=getattr(function_call, "name", None),
                arguments=getattr(function_call, "arguments", None),
            ))
        return fragments

    def _accumulate_function(self, fragment: _FunctionFragment) -> None:
        if self._tool_index is None:
            self._tool_index = fragment.index
        elif fragment.index != self._tool_index:
            logger.debug(f"Ignoring extra tool call at index {fragment.index}")
            return

        if fragment.name:
            self.completion.function_name = fragment.name
        if fragment.arguments:
            self.completion.function_args += fragment.arguments

    def _finish(self) -> StreamResult:
        completion = self.completion
        logger.debug(
            f"Stream complete: chunks={completion.chunks}, "
            f"function={completion.function_name or '-'}, text_chars={len(completion.text)}"
        )

        command = None
        if completion.function_name == RETURN_COMMAND:
            command = ReturnCommand.from_json(completion.function_args)
        elif completion.function_called:
            logger.warning(f"Model called unknown function {completion.function_name!r}; treating as text")

        return StreamResult(
            text=completion.text,
            function_name=completion.function_name,
            function_args=completion.function_args,
            command=command,
        )


def consume_stream(stream: Iterable[Any], on_text: Optional[Callable[[str], None]] = None) -> StreamResult:
    """Consume a stream with a fresh consumer."""
    return CompletionStreamConsumer(on_text=on_text).consume(stream)
