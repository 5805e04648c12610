"""
LLM integration layer for AIDO.
Provides a unified streaming interface over the model backend.
"""

from aido.llm.base_client import BaseLLMClient, Message
from aido.llm.openai_client import OpenAIClient
from aido.llm.mock_client import MockLLMClient
from aido.llm.llm_factory import LLMFactory, create_llm_client

__all__ = [
    "BaseLLMClient",
    "Message",
    "OpenAIClient",
    "MockLLMClient",
    "LLMFactory",
    "create_llm_client"
]
