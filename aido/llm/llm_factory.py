"""
LLM Factory - Creates the backend client for a run.
"""

from typing import Callable, Optional

from loguru import logger

from aido.core.config import Config
from aido.llm.base_client import BaseLLMClient
from aido.llm.mock_client import MockLLMClient
from aido.llm.openai_client import OpenAIClient


class LLMFactory:
    """Factory for creating LLM clients."""

    @staticmethod
    def create_client(
        model: Optional[str] = None,
        config: Optional[Config] = None,
        api_key_provider: Optional[Callable[[], str]] = None,
        mock: bool = False
    ) -> BaseLLMClient:
        """
        Create an LLM client.

        Args:
            model: Model identifier (falls back to config.default_model)
            config: Configuration object
            api_key_provider: Returns the API key; only called for real backends
            mock: Force the offline mock client

        Returns:
            Initialized LLM client
        """
        from aido.core.config import config as default_config

        config = config or default_config
        model = model or config.default_model

        # Short-circuit to mock client when offline mode is enabled
        if mock or config.mock_mode:
            logger.warning("Mock mode active – using MockLLMClient.")
            return MockLLMClient()

        if api_key_provider is None:
            from aido.core.credentials import get_api_key

            def api_key_provider():
                return get_api_key(config)

        logger.info(f"Creating LLM client for model: {model}")
        return OpenAIClient(
            api_key=api_key_provider(),
            model=model,
            temperature=config.temperature,
            timeout=config.request_timeout
        )


def create_llm_client(model: Optional[str] = None, **kwargs) -> BaseLLMClient:
    """Convenience wrapper around LLMFactory.create_client."""
    return LLMFactory.create_client(model=model, **kwargs)
