"""
Base LLM client interface.
All LLM backends must implement this interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class Message:
    """One conversation entry. Frozen: conversations grow by building new lists."""
    role: str
    content: str

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    def __init__(self, api_key: Optional[str], model: str, temperature: float = 0.2):
        """
        Initialize the LLM client.

        Args:
            api_key: API key for the provider
            model: Model identifier
            temperature: Sampling temperature
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature

    @abstractmethod
    def stream_chat(
        self,
        messages: Sequence[Message],
        tools: Optional[List[Dict[str, Any]]] = None
    ) -> Iterable[Any]:
        """
        Open a streamed chat completion.

        Args:
            messages: Ordered conversation
            tools: Function declarations the model may call

        Returns:
            Lazy, finite, non-restartable sequence of OpenAI-shaped chunks.
            The returned object may expose close(); callers must call it.
        """
        pass

    @abstractmethod
    def list_models(self) -> List[str]:
        """
        List model identifiers available to this key.

        Returns:
            Sorted model ids
        """
        pass

    def __repr__(self) -> str:
        """String representation."""
        return f"{self.__class__.__name__}(model={self.model})"
