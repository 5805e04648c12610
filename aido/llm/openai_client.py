"""
OpenAI LLM client implementation.
Streams chat completions, optionally with function declarations.
"""

from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from openai import APIError, OpenAI

from aido.core.errors import StreamError
from aido.llm.base_client import BaseLLMClient, Message


class OpenAIClient(BaseLLMClient):
    """OpenAI LLM client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.2,
        timeout: float = 60.0
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key
            model: Model name (gpt-4o, gpt-4-turbo, gpt-3.5-turbo, etc.)
            temperature: Sampling temperature
            timeout: Request timeout in seconds
        """
        super().__init__(api_key, model, temperature)
        self.client = OpenAI(api_key=api_key, timeout=timeout)
        logger.debug(f"OpenAI client initialized: {model}")

    def stream_chat(
        self,
        messages: Sequence[Message],
        tools: Optional[List[Dict[str, Any]]] = None
    ):
        """
        Open a streamed chat completion.

        Args:
            messages: Ordered conversation
            tools: Function declarations (command mode only)

        Returns:
            openai Stream of ChatCompletionChunk objects
        """
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.temperature,
            "stream": True,
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"

        logger.debug(f"Opening stream: model={self.model}, messages={len(messages)}, tools={bool(tools)}")
        try:
            return self.client.chat.completions.create(**request)
        except APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise StreamError(f"Completion request failed: {e}") from e

    def list_models(self) -> List[str]:
        try:
            return sorted(model.id for model in self.client.models.list())
        except APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise StreamError(f"Listing models failed: {e}") from e
