"""
Mock LLM client used for offline/demo mode and tests.
Produces OpenAI-shaped streaming chunks without network access.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

from aido.core.tool_definitions import RETURN_COMMAND
from aido.llm.base_client import BaseLLMClient, Message


@dataclass
class MockFunctionDelta:
    """Fragment of a function call."""
    name: Optional[str] = None
    arguments: Optional[str] = None


@dataclass
class MockToolCallDelta:
    """Tool call delta (OpenAI streams these with an index)."""
    index: int = 0
    id: Optional[str] = None
    type: str = "function"
    function: Optional[MockFunctionDelta] = None


@dataclass
class MockDelta:
    """Mock delta for streaming."""
    role: Optional[str] = None
    content: Optional[str] = None
    tool_calls: Optional[List[MockToolCallDelta]] = None


@dataclass
class MockChoice:
    """Mock choice object for OpenAI-style responses."""
    index: int = 0
    delta: Any = None
    finish_reason: Optional[str] = None


@dataclass
class MockStreamChunk:
    """Mock streaming chunk."""
    choices: List[MockChoice] = field(default_factory=list)


def text_chunks(text: str) -> List[MockStreamChunk]:
    """Split text into word-sized content deltas."""
    words = text.split(" ")
    chunks = []
    for i, word in enumerate(words):
        chunks.append(MockStreamChunk(choices=[MockChoice(
            delta=MockDelta(
                role="assistant" if i == 0 else None,
                content=word + (" " if i < len(words) - 1 else "")
            ),
            finish_reason=None if i < len(words) - 1 else "stop"
        )]))
    return chunks


def function_chunks(name: str, fragments: Sequence[str]) -> List[MockStreamChunk]:
    """One chunk carrying the function name, then one per argument fragment."""
    chunks = [MockStreamChunk(choices=[MockChoice(delta=MockDelta(
        role="assistant",
        tool_calls=[MockToolCallDelta(id="call_mock", function=MockFunctionDelta(name=name, arguments=""))]
    ))])]
    for fragment in fragments:
        chunks.append(MockStreamChunk(choices=[MockChoice(delta=MockDelta(
            tool_calls=[MockToolCallDelta(function=MockFunctionDelta(arguments=fragment))]
        ))]))
    chunks.append(MockStreamChunk(choices=[MockChoice(delta=MockDelta(), finish_reason="tool_calls")]))
    return chunks


def command_chunks(command: str, binaries: Optional[List[str]] = None, pieces: int = 3) -> List[MockStreamChunk]:
    """A return_command call whose JSON arguments arrive in several fragments."""
    payload = json.dumps({"command": command, "binaries": binaries or []})
    size = max(1, -(-len(payload) // pieces))
    fragments = [payload[i:i + size] for i in range(0, len(payload), size)]
    return function_chunks(RETURN_COMMAND, fragments)


class MockStream:
    """Iterable stream with close(), optionally failing after N chunks."""

    def __init__(self, chunks: Sequence[Any], fail_after: Optional[int] = None, error: Optional[Exception] = None):
        self._chunks = list(chunks)
        self.fail_after = fail_after
        self.error = error or ConnectionError("mock stream reset")
        self.closed = False

    def __iter__(self) -> Iterator[Any]:
        for i, chunk in enumerate(self._chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise self.error
            yield chunk
        if self.fail_after is not None and self.fail_after >= len(self._chunks):
            raise self.error

    def close(self) -> None:
        self.closed = True


class MockLLMClient(BaseLLMClient):
    """
    Scripted client.

    With a script, each stream_chat() call pops the next entry (a chunk list
    or a MockStream). Without one, simple rules produce a plausible answer.
    """

    def __init__(self, script: Optional[List[Any]] = None, model: str = "mock-llm"):
        super().__init__(api_key="mock", model=model, temperature=0.0)
        self.script = list(script) if script is not None else None
        self.requests: List[Dict[str, Any]] = []
        self.streams: List[MockStream] = []

    def stream_chat(
        self,
        messages: Sequence[Message],
        tools: Optional[List[Dict[str, Any]]] = None
    ) -> MockStream:
        self.requests.append({"messages": list(messages), "tools": tools})

        if self.script is not None:
            if not self.script:
                raise AssertionError("MockLLMClient script exhausted")
            entry = self.script.pop(0)
            stream = entry if isinstance(entry, MockStream) else MockStream(entry)
        else:
            stream = MockStream(self._generate(messages, tools))

        self.streams.append(stream)
        return stream

    def list_models(self) -> List[str]:
        return ["mock-llm"]

    def _generate(self, messages: Sequence[Message], tools: Optional[List[Dict[str, Any]]]) -> List[MockStreamChunk]:
        """Rule-based answers for offline demos."""
        prompt = next((m.content for m in reversed(messages) if m.role == "user"), "").lower()

        if not tools:
            return text_chunks(
                "# Mock mode is active, no model was contacted.\n"
                f"You asked: {prompt.splitlines()[0] if prompt else '(nothing)'}\n"
            )

        if "missing" in prompt:
            return text_chunks("# Install the missing tools with your package manager and try again.")
        if "file" in prompt and ("list" in prompt or "show" in prompt):
            return command_chunks("ls -la", ["ls"])
        if "disk" in prompt or "space" in prompt:
            return command_chunks("df -h", ["df"])
        if "process" in prompt:
            return command_chunks("ps aux", ["ps"])
        return text_chunks("# The mock backend has no command for this request.")
