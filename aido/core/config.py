"""
Configuration management for AIDO.
Loads settings from environment variables and .env file.
"""

import os
import sys
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from loguru import logger

# Per-user state directory (log file, optional .env)
STATE_DIR = Path.home() / ".aido"

# Load environment variables from .env file
# Try current directory first, then the user state directory
_possible_env_paths = [
    Path.cwd() / ".env",
    STATE_DIR / ".env",
]
for _env_path in _possible_env_paths:
    if _env_path.exists():
        load_dotenv(_env_path)
        break

DEFAULT_MODEL = "gpt-4o"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"true", "1", "yes"}


class Config:
    """Configuration manager for AIDO."""

    def __init__(self):
        """Initialize configuration from environment variables."""

        # API Keys
        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
        self.config_file: Path = Path(
            os.getenv("AIDO_CONFIG_FILE", str(Path.home() / "ai.yaml"))
        ).expanduser()

        # Model Configuration
        self.default_model: str = os.getenv("AIDO_MODEL", DEFAULT_MODEL)
        self.temperature: float = float(os.getenv("AIDO_TEMPERATURE", "0.2"))
        self.request_timeout: float = float(os.getenv("AIDO_TIMEOUT", "60"))

        # Prompt templates: AI_HOME/prompts.yaml overrides the packaged store
        ai_home = os.getenv("AI_HOME")
        self.ai_home: Optional[Path] = Path(ai_home).expanduser() if ai_home else None

        # Logging
        self.log_level: str = os.getenv("LOG_LEVEL", "DEBUG")
        self.console_log_level: str = os.getenv("CONSOLE_LOG_LEVEL", "WARNING")
        self.log_file: Path = Path(os.getenv("LOG_FILE", str(STATE_DIR / "aido.log")))
        self.console_logging: bool = _env_flag("CONSOLE_LOGGING", "true")

        # Advanced Settings
        self.debug_mode: bool = _env_flag("DEBUG_MODE")

        # Mock / offline mode
        self.mock_mode: bool = _env_flag("MOCK_MODE")

    @property
    def prompts_file(self) -> Optional[Path]:
        """Template store override, or None for the packaged prompts.yaml."""
        if self.ai_home is None:
            return None
        return self.ai_home / "prompts.yaml"

    def setup_logging(self, debug: bool = False):
        """Configure loguru sinks. Console gets DEBUG when debug is requested."""
        logger.remove()  # Remove default handler

        if self.console_logging:
            logger.add(
                lambda msg: print(msg, end="", file=sys.stderr),
                level="DEBUG" if (debug or self.debug_mode) else self.console_log_level,
                colorize=True,
                format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
            )

        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                self.log_file,
                level=self.log_level,
                rotation="1 MB",
                retention="1 week",
                format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}"
            )
        except OSError as e:
            logger.warning(f"File logging disabled ({self.log_file}): {e}")

        if debug or self.debug_mode:
            logger.debug("Debug mode enabled")
        if self.mock_mode:
            logger.info("Mock mode enabled (LLM responses will be simulated)")

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(model={self.default_model}, "
            f"api_key={'set' if self.openai_api_key else 'unset'}, "
            f"mock={self.mock_mode})"
        )


# Global config instance
config = Config()
