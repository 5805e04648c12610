"""
AIDO Prompt Templates

Loads role-tagged message templates from a YAML store, fills in
environment placeholders and assembles the conversation sent to the model.
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml
from loguru import logger

from aido.core.environment import EnvironmentSnapshot
from aido.core.errors import TemplateError
from aido.llm.base_client import Message

# Prompt directory
PROMPTS_DIR = Path(__file__).parent
DEFAULT_PROMPTS_FILE = PROMPTS_DIR / "prompts.yaml"

TEMPLATE_KEYS = ("bash", "powershell", "command", "text")

PIPED_CONTEXT_HEADER = "Use the following additional context to improve your response:"


class Mode(str, Enum):
    """What the model is asked to produce."""
    COMMAND = "command"
    TEXT = "text"


@dataclass(frozen=True)
class PromptTemplateSet:
    """Message templates keyed by shell family and mode."""
    bash: Tuple[Message, ...]
    powershell: Tuple[Message, ...]
    command: Tuple[Message, ...]
    text: Tuple[Message, ...]

    def common(self, mode: Mode) -> Tuple[Message, ...]:
        return self.command if mode == Mode.COMMAND else self.text

    def for_shell(self, shell: str) -> Tuple[Message, ...]:
        return self.powershell if shell == "powershell" else self.bash


class PromptLoader:
    """Load and cache template sets from YAML files."""

    _cache: Dict[Path, PromptTemplateSet] = {}

    @classmethod
    def _parse_messages(cls, data: dict, key: str, path: Path) -> Tuple[Message, ...]:
        section = data.get(key)
        if not isinstance(section, dict) or not isinstance(section.get("messages"), list):
            raise TemplateError(f"Prompts file {path} is missing '{key}.messages'")

        messages = []
        for idx, entry in enumerate(section["messages"]):
            if not isinstance(entry, dict) or "role" not in entry or "content" not in entry:
                raise TemplateError(f"{path}: {key}.messages[{idx}] needs 'role' and 'content'")
            try:
                messages.append(Message(role=str(entry["role"]), content=str(entry["content"])))
            except ValueError as e:
                raise TemplateError(f"{path}: {key}.messages[{idx}]: {e}") from e
        return tuple(messages)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> PromptTemplateSet:
        """
        Load a template set.

        Args:
            path: YAML file; the packaged prompts.yaml when omitted

        Returns:
            PromptTemplateSet

        Raises:
            TemplateError: File missing, unreadable or malformed
        """
        path = Path(path) if path else DEFAULT_PROMPTS_FILE

        if path in cls._cache:
            return cls._cache[path]

        if not path.exists():
            raise TemplateError(f"Prompts file not found: {path}")

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error reading prompts file: {path}")
            raise TemplateError(f"Cannot parse prompts file {path}: {e}") from e

        if not isinstance(data, dict):
            raise TemplateError(f"Prompts file {path} must contain a mapping")

        templates = PromptTemplateSet(**{key: cls._parse_messages(data, key, path) for key in TEMPLATE_KEYS})
        cls._cache[path] = templates
        logger.debug(f"Loaded prompt templates from {path}")
        return templates

    @classmethod
    def clear_cache(cls):
        """Clear the template cache."""
        cls._cache.clear()


def load_templates(path: Optional[Path] = None) -> PromptTemplateSet:
    """Load the template store."""
    return PromptLoader.load(path)


def placeholder_values(env: EnvironmentSnapshot) -> Dict[str, str]:
    """Replacement text for every recognised placeholder."""
    return {
        "{shell}": env.shell,
        "{shell_version}": env.shell_version,
        "{system_info}": env.system_info,
        "{working_directory}": env.working_directory,
        "{package_managers}": ", ".join(env.package_managers),
        "{sudo}": "sudo" if env.sudo_available else "no sudo",
    }


def substitute(content: str, env: EnvironmentSnapshot) -> str:
    """Replace placeholders in one pass; replaced text is never rescanned."""
    values = placeholder_values(env)
    pattern = re.compile("|".join(re.escape(token) for token in values))
    return pattern.sub(lambda match: values[match.group(0)], content)


def with_piped_context(user_input: str, piped: Optional[str]) -> str:
    """Append piped stdin to the request as explicit additional context."""
    piped = (piped or "").strip()
    if not piped:
        return user_input
    return f"{user_input}\n\n{PIPED_CONTEXT_HEADER}\n\n---\n\n{piped}\n"


def assemble(
    user_input: str,
    mode: Mode,
    env: EnvironmentSnapshot,
    templates: PromptTemplateSet
) -> List[Message]:
    """
    Build the conversation for one request.

    Order: common messages for the mode, then shell messages (command mode
    only), then a single user message with the request.
    """
    selected = list(templates.common(mode))
    if mode == Mode.COMMAND:
        selected.extend(templates.for_shell(env.shell))

    messages = [Message(role=m.role, content=substitute(m.content, env)) for m in selected]
    messages.append(Message(role="user", content=user_input))
    return messages
