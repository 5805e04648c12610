"""
Core modules for AIDO: environment probing, streaming, negotiation and delivery.
"""

from aido.core.config import Config
from aido.core.environment import EnvironmentSnapshot, probe
from aido.core.errors import (
    AidoError,
    ConfigurationError,
    CredentialsError,
    DeliveryError,
    FocusChangedError,
    FunctionCallError,
    KeyboardUnavailableError,
    StreamError,
    TemplateError,
)

__all__ = [
    "Config",
    "EnvironmentSnapshot",
    "probe",
    "AidoError",
    "ConfigurationError",
    "CredentialsError",
    "DeliveryError",
    "FocusChangedError",
    "FunctionCallError",
    "KeyboardUnavailableError",
    "StreamError",
    "TemplateError",
]
