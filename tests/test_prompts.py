"""
Tests for template loading, placeholder substitution and conversation assembly.
"""

import re

import pytest

from aido.core.errors import TemplateError
from aido.prompts import (
    PIPED_CONTEXT_HEADER,
    Mode,
    assemble,
    load_templates,
    substitute,
    with_piped_context,
)

PLACEHOLDERS = ("{shell}", "{shell_version}", "{system_info}", "{working_directory}", "{package_managers}", "{sudo}")

SMALL_TEMPLATES = """
command:
  messages:
    - role: system
      content: "Shell {shell}, {sudo}, managers {package_managers}"
text:
  messages:
    - role: system
      content: "Text answers for {shell}"
bash:
  messages:
    - role: system
      content: "POSIX for {shell_version} with {sudo}"
powershell:
  messages:
    - role: system
      content: "PowerShell {shell_version}"
"""


@pytest.fixture
def templates():
    return load_templates()


@pytest.fixture
def templates_file(tmp_path):
    path = tmp_path / "prompts.yaml"
    path.write_text(SMALL_TEMPLATES, encoding="utf-8")
    return path


class TestLoadTemplates:
    def test_packaged_store_has_all_keys(self, templates):
        assert templates.command
        assert templates.text
        assert templates.bash
        assert templates.powershell

    def test_custom_path(self, templates_file):
        loaded = load_templates(templates_file)
        assert loaded.command[0].content.startswith("Shell {shell}")

    def test_missing_file(self, tmp_path):
        with pytest.raises(TemplateError):
            load_templates(tmp_path / "nope.yaml")

    def test_unparsable_yaml(self, tmp_path):
        path = tmp_path / "prompts.yaml"
        path.write_text("command: [unclosed", encoding="utf-8")
        with pytest.raises(TemplateError):
            load_templates(path)

    def test_missing_key(self, tmp_path):
        path = tmp_path / "prompts.yaml"
        path.write_text("command:\n  messages: []\ntext:\n  messages: []\n", encoding="utf-8")
        with pytest.raises(TemplateError):
            load_templates(path)

    def test_unknown_role(self, tmp_path):
        path = tmp_path / "prompts.yaml"
        path.write_text(SMALL_TEMPLATES.replace("role: system", "role: robot", 1), encoding="utf-8")
        with pytest.raises(TemplateError):
            load_templates(path)


class TestSubstitute:
    def test_all_placeholders_replaced(self, env):
        content = " ".join(PLACEHOLDERS)
        result = substitute(content, env)
        for token in PLACEHOLDERS:
            assert token not in result
        assert "no sudo" in result
        assert "apt" in result

    def test_single_pass(self, make_env):
        env = make_env(working_directory="/tmp/{shell}")
        assert substitute("{working_directory}", env) == "/tmp/{shell}"

    def test_unknown_tokens_untouched(self, env):
        assert substitute("find . -exec du -h {} + {other}", env) == "find . -exec du -h {} + {other}"

    def test_package_managers_joined(self, make_env):
        env = make_env(package_managers=("pip", "npm", "brew"))
        assert substitute("{package_managers}", env) == "pip, npm, brew"

    def test_sudo_available(self, make_env):
        assert substitute("{sudo}", make_env(sudo_available=True)) == "sudo"


class TestAssemble:
    def test_command_mode_order(self, env, templates_file):
        templates = load_templates(templates_file)
        messages = assemble("list files", Mode.COMMAND, env, templates)

        assert [m.content for m in messages] == [
            "Shell bash, no sudo, managers apt",
            "POSIX for GNU bash, version 5.2.15 with no sudo",
            "list files",
        ]
        assert messages[-1].role == "user"

    def test_powershell_list_selected(self, make_env, templates_file):
        templates = load_templates(templates_file)
        messages = assemble("dir", Mode.COMMAND, make_env(shell="powershell", shell_version="7.4"), templates)
        assert messages[1].content == "PowerShell 7.4"

    def test_text_mode_skips_shell_messages(self, env, templates_file):
        templates = load_templates(templates_file)
        messages = assemble("what is a pipe", Mode.TEXT, env, templates)
        assert [m.content for m in messages] == ["Text answers for bash", "what is a pipe"]

    def test_no_recognised_placeholder_survives(self, env, templates):
        messages = assemble("list files", Mode.COMMAND, env, templates)
        for message in messages:
            for token in PLACEHOLDERS:
                assert token not in message.content

    def test_idempotent(self, env, templates):
        first = assemble("list files", Mode.COMMAND, env, templates)
        second = assemble("list files", Mode.COMMAND, env, templates)
        assert first == second
        assert templates.command[0].content.count("{shell}") > 0

    def test_end_to_end_list_files(self, env, templates):
        raw = load_templates()
        messages = assemble("list files", Mode.COMMAND, env, templates)

        assert messages[-1].role == "user"
        assert messages[-1].content.endswith("list files")

        sources = list(raw.command) + list(raw.bash)
        for source, message in zip(sources, messages):
            if "{sudo}" in source.content:
                assert "no sudo" in message.content
                assert not re.search(r"\{sudo\}", message.content)

    def test_literal_braces_in_examples_survive(self, env, templates):
        messages = assemble("list files", Mode.COMMAND, env, templates)
        assert any("{} +" in m.content for m in messages)


class TestPipedContext:
    def test_appends_context(self):
        result = with_piped_context("explain this", "  Traceback: boom\n\n")
        assert result == f"explain this\n\n{PIPED_CONTEXT_HEADER}\n\n---\n\nTraceback: boom\n"

    def test_blank_input_ignored(self):
        assert with_piped_context("explain this", "   \n") == "explain this"
        assert with_piped_context("explain this", None) == "explain this"
