"""
API key lookup and persistence.

The key comes from OPENAI_API_KEY, then from the YAML config file
(``openai.api_key``). When neither is set the user is asked once and the
answer is written back to the config file for later runs.
"""

import os
from pathlib import Path
from typing import Callable, Optional

import yaml
from loguru import logger
from rich.console import Console
from rich.prompt import Prompt

from aido.core.config import Config
from aido.core.errors import CredentialsError

ENV_VAR = "OPENAI_API_KEY"


def _read_config_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise CredentialsError(f"Error reading config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CredentialsError(f"Config file {path} must contain a mapping")
    return data


def read_api_key(config: Config) -> Optional[str]:
    """Return the configured API key, or None when nothing is configured."""
    env_key = os.getenv(ENV_VAR) or config.openai_api_key
    if env_key:
        return env_key

    data = _read_config_file(config.config_file)
    openai_section = data.get("openai") or {}
    if not isinstance(openai_section, dict):
        raise CredentialsError(f"'openai' in {config.config_file} must be a mapping")
    key = openai_section.get("api_key")
    return str(key).strip() if key else None


def write_api_key(config: Config, api_key: str) -> Path:
    """Store the key under openai.api_key, keeping any other settings in the file."""
    path = config.config_file
    data = _read_config_file(path)
    openai_section = data.get("openai")
    if not isinstance(openai_section, dict):
        openai_section = {}
    openai_section["api_key"] = api_key
    data["openai"] = openai_section

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, default_flow_style=False), encoding="utf-8")
        os.chmod(path, 0o600)
    except OSError as e:
        raise CredentialsError(f"Error writing config file {path}: {e}") from e

    logger.info(f"API key stored in {path}")
    return path


def _ask_api_key() -> str:
    return Prompt.ask("Enter your OpenAI API Key (configuration will be updated)", password=True)


def init_api_key(
    config: Config,
    console: Optional[Console] = None,
    ask: Optional[Callable[[], str]] = None
) -> str:
    """Prompt for a key and persist it."""
    console = console or Console(stderr=True)
    ask = ask or _ask_api_key

    console.print(
        "Please provide your OpenAI API key.\n"
        f"- Through an environment variable: {ENV_VAR}\n"
        f"- Through a configuration file:    {config.config_file}"
    )
    try:
        api_key = (ask() or "").strip()
    except EOFError as e:
        raise CredentialsError("No API key entered (stdin closed)") from e

    if not api_key:
        raise CredentialsError("No API key entered")

    path = write_api_key(config, api_key)
    console.print(f"API key added to your {path}")
    return api_key


def get_api_key(
    config: Config,
    console: Optional[Console] = None,
    ask: Optional[Callable[[], str]] = None
) -> str:
    """Return the API key, prompting once if none is configured."""
    api_key = read_api_key(config)
    if api_key:
        return api_key
    return init_api_key(config, console=console, ask=ask)
