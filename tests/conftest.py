"""
Shared fixtures: a fixed environment snapshot, quiet output and fake
keyboard/subprocess collaborators.
"""

import io
import subprocess
from typing import List

import pytest
from rich.console import Console

from aido.core.environment import EnvironmentSnapshot
from aido.core.status import StatusReporter
from aido.keyboard.base import BaseKeyboard
from aido.prompts import PromptLoader


class FakeKeyboard(BaseKeyboard):
    """Records keystrokes; focus can be moved by the test."""

    name = "fake"

    def __init__(self, focus="terminal-1"):
        self.focus = focus
        self.events: List[tuple] = []

    def send_text(self, text: str) -> None:
        self.events.append(("text", text))

    def send_newline(self) -> None:
        self.events.append(("newline",))

    def current_focus(self):
        return self.focus

    @property
    def typed(self) -> str:
        return "".join(e[1] if e[0] == "text" else "\n" for e in self.events)


class FakeRunner:
    """subprocess.run stand-in returning preset exit codes."""

    def __init__(self, returncodes=None):
        self.returncodes = list(returncodes or [])
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append((args, kwargs))
        code = self.returncodes.pop(0) if self.returncodes else 0
        return subprocess.CompletedProcess(args, code, stdout="", stderr="")


def _make_env(**overrides) -> EnvironmentSnapshot:
    values = dict(
        shell="bash",
        shell_version="GNU bash, version 5.2.15",
        os="linux",
        arch="x86_64",
        working_directory="/home/user/project",
        package_managers=("apt",),
        sudo_available=False,
    )
    values.update(overrides)
    return EnvironmentSnapshot(**values)


@pytest.fixture
def make_env():
    """Factory for snapshots; keyword overrides replace the defaults."""
    return _make_env


@pytest.fixture
def env():
    return _make_env()


@pytest.fixture
def keyboard():
    return FakeKeyboard()


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def output():
    """Reporter writing into StringIO buffers; returns (reporter, out, err)."""
    out, err = io.StringIO(), io.StringIO()
    reporter = StatusReporter(
        console=Console(file=out, width=200),
        err_console=Console(file=err, width=200),
        interactive=False,
    )
    return reporter, out, err


@pytest.fixture(autouse=True)
def _clear_prompt_cache():
    PromptLoader.clear_cache()
    yield
    PromptLoader.clear_cache()
