"""
Application-level exception types for AIDO.
"""

from typing import Optional


class AidoError(Exception):
    """Base exception for AIDO."""


class ConfigurationError(AidoError):
    """Base exception for configuration errors. Fatal, never retried."""


class TemplateError(ConfigurationError):
    """Raised when the prompt template store is missing or malformed."""


class CredentialsError(ConfigurationError):
    """Raised when no usable API key can be obtained."""


class FunctionCallError(ConfigurationError):
    """Raised when the model returns a structured call that cannot be decoded."""


class StreamError(AidoError):
    """Raised when reading the completion stream fails mid-response."""


class DeliveryError(AidoError):
    """Raised when a command cannot be executed or typed."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class KeyboardUnavailableError(DeliveryError):
    """Raised when no keystroke backend exists for this platform."""


class FocusChangedError(AidoError):
    """Raised when the focused window changed and the user did not confirm typing."""
