"""
Tests for the delivery engine: execute batching, typing and focus safety.
"""

import pytest

from aido.core import delivery
from aido.core.delivery import DeliveryEngine, DeliveryMode, DeliveryPlan
from aido.core.errors import DeliveryError, FocusChangedError, KeyboardUnavailableError


class TestDeliveryPlan:
    def test_single(self):
        plan = DeliveryPlan.single("ls -la")
        assert plan.commands == ("ls -la",)
        assert not plan.explain_only

    def test_explain(self):
        plan = DeliveryPlan.explain("install jq first")
        assert plan.explain_only
        assert plan.explanation == "install jq first"


class TestDeliveryError:
    def test_returncode_defaults_to_none(self):
        assert DeliveryError("shell not found").returncode is None

    def test_keeps_returncode(self):
        error = DeliveryError("Command exited with status 2", 2)
        assert error.returncode == 2
        assert str(error) == "Command exited with status 2"


class TestExecute:
    def test_posix_batch_on_stdin(self, runner):
        engine = DeliveryEngine("bash", DeliveryMode.EXECUTE, runner=runner)

        assert engine.deliver(DeliveryPlan(commands=("mkdir -p build", "cd build"))) is True

        args, kwargs = runner.calls[0]
        assert args == ["bash"]
        assert kwargs["input"] == "set -e\nmkdir -p build\ncd build\n"
        assert len(runner.calls) == 1

    def test_nonzero_exit_is_fatal(self, runner):
        runner.returncodes = [2]
        engine = DeliveryEngine("zsh", DeliveryMode.EXECUTE, runner=runner)

        with pytest.raises(DeliveryError) as exc_info:
            engine.deliver(DeliveryPlan.single("false"))
        assert exc_info.value.returncode == 2

    def test_powershell_one_call_per_command(self, runner):
        engine = DeliveryEngine("powershell", DeliveryMode.EXECUTE, runner=runner)
        engine.deliver(DeliveryPlan(commands=("Get-Date", "Get-Location")))

        assert [call[0] for call in runner.calls] == [
            ["powershell", "-Command", "Get-Date"],
            ["powershell", "-Command", "Get-Location"],
        ]

    def test_powershell_stops_on_failure(self, runner):
        runner.returncodes = [1, 0]
        engine = DeliveryEngine("powershell", DeliveryMode.EXECUTE, runner=runner)
        with pytest.raises(DeliveryError):
            engine.deliver(DeliveryPlan(commands=("Get-Nope", "Get-Date")))
        assert len(runner.calls) == 1

    def test_cmd(self, runner):
        DeliveryEngine("cmd", DeliveryMode.EXECUTE, runner=runner).deliver(DeliveryPlan.single("dir"))
        assert runner.calls[0][0] == ["cmd", "/C", "dir"]

    def test_fish_runs_commands_individually(self, runner):
        DeliveryEngine("fish", DeliveryMode.EXECUTE, runner=runner).deliver(DeliveryPlan(commands=("ls", "pwd")))
        assert [call[0] for call in runner.calls] == [["fish", "-c", "ls"], ["fish", "-c", "pwd"]]

    def test_undetected_shell(self, runner):
        engine = DeliveryEngine("", DeliveryMode.EXECUTE, runner=runner)
        with pytest.raises(DeliveryError):
            engine.deliver(DeliveryPlan.single("ls"))
        assert runner.calls == []

    def test_missing_shell_binary(self):
        def runner(args, **kwargs):
            raise FileNotFoundError(args[0])

        engine = DeliveryEngine("ksh", DeliveryMode.EXECUTE, runner=runner)
        with pytest.raises(DeliveryError):
            engine.deliver(DeliveryPlan.single("ls"))

    def test_explain_only_delivers_nothing(self, runner):
        engine = DeliveryEngine("bash", DeliveryMode.EXECUTE, runner=runner)
        assert engine.deliver(DeliveryPlan.explain("cannot do that")) is False
        assert runner.calls == []

    def test_delivered_exactly_once(self, runner):
        engine = DeliveryEngine("bash", DeliveryMode.EXECUTE, runner=runner)
        engine.deliver(DeliveryPlan.single("ls"))
        with pytest.raises(DeliveryError):
            engine.deliver(DeliveryPlan.single("ls"))
        assert len(runner.calls) == 1


class TestTyping:
    def test_single_command_verbatim(self, keyboard):
        engine = DeliveryEngine("bash", DeliveryMode.TYPE, keyboard=keyboard)
        engine.capture_focus()
        engine.deliver(DeliveryPlan.single("ls -la"))
        assert keyboard.events == [("text", "ls -la")]

    def test_posix_multi_command_subshell(self, keyboard):
        engine = DeliveryEngine("zsh", DeliveryMode.TYPE, keyboard=keyboard)
        engine.capture_focus()
        engine.deliver(DeliveryPlan(commands=("cd /tmp", "ls")))
        assert keyboard.typed == "(\ncd /tmp\nls\n)"

    def test_powershell_multi_command_block(self, keyboard):
        engine = DeliveryEngine("powershell", DeliveryMode.TYPE, keyboard=keyboard)
        engine.capture_focus()
        engine.deliver(DeliveryPlan(commands=("Set-Location C:\\", "Get-ChildItem")))
        assert keyboard.typed == "AiDo {\nSet-Location C:\\\nGet-ChildItem\n}"

    def test_type_mode_never_executes(self, keyboard, runner):
        engine = DeliveryEngine("bash", DeliveryMode.TYPE, keyboard=keyboard, runner=runner)
        engine.capture_focus()
        engine.deliver(DeliveryPlan.single("ls"))
        assert runner.calls == []


class TestFocusSafety:
    def test_focus_change_blocks_without_acknowledgment(self, keyboard):
        warnings = []
        engine = DeliveryEngine(
            "bash", DeliveryMode.TYPE, keyboard=keyboard,
            interactive=True, confirm=lambda: False, warn=warnings.append
        )
        engine.capture_focus()
        keyboard.focus = "browser"

        with pytest.raises(FocusChangedError):
            engine.deliver(DeliveryPlan.single("rm -rf build"))

        assert keyboard.events == []
        assert warnings == [delivery.FOCUS_WARNING]

    def test_focus_change_acknowledged(self, keyboard):
        asked = []

        def confirm():
            asked.append(True)
            return True

        engine = DeliveryEngine("bash", DeliveryMode.TYPE, keyboard=keyboard, confirm=confirm, warn=lambda m: None)
        engine.capture_focus()
        keyboard.focus = "other-terminal"
        engine.deliver(DeliveryPlan.single("ls"))

        assert asked == [True]
        assert keyboard.events == [("text", "ls")]

    def test_non_interactive_warns_and_proceeds(self, keyboard):
        warnings = []

        def confirm():
            raise AssertionError("must not block")

        engine = DeliveryEngine(
            "bash", DeliveryMode.TYPE, keyboard=keyboard,
            interactive=False, confirm=confirm, warn=warnings.append
        )
        engine.capture_focus()
        keyboard.focus = "elsewhere"
        engine.deliver(DeliveryPlan.single("ls"))

        assert warnings
        assert keyboard.events == [("text", "ls")]

    def test_unchanged_focus_does_not_ask(self, keyboard):
        def confirm():
            raise AssertionError("must not ask")

        engine = DeliveryEngine("bash", DeliveryMode.TYPE, keyboard=keyboard, confirm=confirm)
        engine.capture_focus()
        engine.deliver(DeliveryPlan.single("ls"))
        assert keyboard.events == [("text", "ls")]

    def test_default_confirm_eof_declines(self, keyboard, monkeypatch):
        def eof(self, prompt=""):
            raise EOFError

        monkeypatch.setattr(delivery.Console, "input", eof)
        engine = DeliveryEngine("bash", DeliveryMode.TYPE, keyboard=keyboard, warn=lambda m: None)
        engine.capture_focus()
        keyboard.focus = "elsewhere"

        with pytest.raises(FocusChangedError):
            engine.deliver(DeliveryPlan.single("ls"))


class TestKeyboardSelection:
    def test_type_mode_creates_platform_keyboard(self, monkeypatch, keyboard):
        monkeypatch.setattr(delivery, "create_keyboard", lambda: keyboard)
        engine = DeliveryEngine("bash", DeliveryMode.TYPE)
        assert engine.keyboard is keyboard

    def test_unavailable_keyboard_fails_at_construction(self, monkeypatch):
        def unavailable():
            raise KeyboardUnavailableError("no backend")

        monkeypatch.setattr(delivery, "create_keyboard", unavailable)
        with pytest.raises(KeyboardUnavailableError):
            DeliveryEngine("bash", DeliveryMode.TYPE)

    def test_execute_mode_needs_no_keyboard(self, monkeypatch, runner):
        def unavailable():
            raise AssertionError("keyboard not needed")

        monkeypatch.setattr(delivery, "create_keyboard", unavailable)
        DeliveryEngine("bash", DeliveryMode.EXECUTE, runner=runner).capture_focus()
