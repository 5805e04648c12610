"""
Command Pipeline - orchestrates one request from prompt to delivery.
Workflow: Prober → Assembler → Consumer → Negotiator → Delivery
"""

import shutil
from dataclasses import dataclass
from typing import Callable, List, Optional

from loguru import logger

from aido.core.delivery import DeliveryEngine, DeliveryMode, DeliveryPlan
from aido.core.environment import EnvironmentSnapshot
from aido.core.negotiator import BinaryNegotiator
from aido.core.status import StatusReporter
from aido.core.streaming import CompletionStreamConsumer, StreamResult
from aido.core.tool_definitions import COMMAND_TOOLS
from aido.keyboard import BaseKeyboard
from aido.llm.base_client import BaseLLMClient, Message
from aido.prompts import Mode, PromptTemplateSet, assemble, load_templates


@dataclass
class PipelineOutcome:
    """What happened to one request."""
    text: str = ""
    command: str = ""
    plan: Optional[DeliveryPlan] = None
    delivered: bool = False
    follow_ups: int = 0


class CommandPipeline:
    """
    Main orchestrator for AIDO.
    Turns a natural-language request into a streamed answer or a delivered command.
    """

    def __init__(
        self,
        client: BaseLLMClient,
        env: EnvironmentSnapshot,
        mode: Mode = Mode.COMMAND,
        delivery_mode: DeliveryMode = DeliveryMode.TYPE,
        templates: Optional[PromptTemplateSet] = None,
        reporter: Optional[StatusReporter] = None,
        interactive: bool = True,
        keyboard: Optional[BaseKeyboard] = None,
        confirm: Optional[Callable[[], bool]] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
        runner: Optional[Callable] = None
    ):
        """
        Args:
            client: LLM backend
            env: Environment snapshot for this run
            mode: Command or text mode
            delivery_mode: Execute or type the resulting command
            templates: Prompt templates (packaged or $AI_HOME ones by default)
            reporter: User-facing output
            interactive: Whether stdin is a terminal
            keyboard: Keystroke backend for type mode
            confirm: Acknowledgment callback after a focus change
            which: PATH lookup used for binary checks
            runner: subprocess.run compatible callable for execute mode
        """
        self.client = client
        self.env = env
        self.mode = Mode(mode)
        self.delivery_mode = DeliveryMode(delivery_mode)
        self.templates = templates
        self.reporter = reporter or StatusReporter(interactive=interactive)
        self.interactive = interactive
        self.keyboard = keyboard
        self.confirm = confirm
        self.which = which
        self.runner = runner

        logger.info(f"CommandPipeline initialized: mode={self.mode.value}, delivery={self.delivery_mode.value}")

    def _engine(self) -> DeliveryEngine:
        return DeliveryEngine(
            shell=self.env.shell,
            mode=self.delivery_mode,
            keyboard=self.keyboard,
            interactive=self.interactive,
            confirm=self.confirm,
            warn=self.reporter.faint,
            runner=self.runner
        )

    def _stream(self, messages: List[Message]) -> StreamResult:
        tools = COMMAND_TOOLS if self.mode == Mode.COMMAND else None
        consumer = CompletionStreamConsumer(on_text=self.reporter.stream_text)
        self.reporter.thinking()
        try:
            return consumer.consume(self.client.stream_chat(messages, tools=tools))
        finally:
            self.reporter.end_stream()

    def run(self, user_input: str) -> PipelineOutcome:
        """
        Handle one request end to end.

        Args:
            user_input: The request, with any piped context already folded in

        Returns:
            PipelineOutcome

        Raises:
            AidoError: Any configuration, transport, delivery or focus failure
        """
        templates = self.templates or load_templates()
        messages = assemble(user_input, self.mode, self.env, templates)
        self.reporter.debug_messages(messages)

        # Keystroke backend must exist before generation so focus can be captured
        engine = self._engine() if self.mode == Mode.COMMAND else None
        if engine is not None:
            engine.capture_focus()

        result = self._stream(messages)
        outcome = PipelineOutcome(text=result.text)
        self.reporter.debug(f"Function called: {result.function_name or 'none'}")
        if result.function_name:
            self.reporter.debug(f"Function arguments: {result.function_args}")

        if self.mode == Mode.TEXT or result.command is None:
            return outcome

        if not result.has_command:
            self.reporter.warning("No command returned. AI response:")
            self.reporter.explanation(result.text)
            return outcome

        candidate = result.command
        outcome.command = candidate.command
        if self.delivery_mode == DeliveryMode.EXECUTE:
            self.reporter.command(candidate.command)

        negotiator = BinaryNegotiator(self.client, reporter=self.reporter, which=self.which)
        plan = negotiator.negotiate(candidate, messages)
        outcome.plan = plan
        outcome.follow_ups = negotiator.follow_ups

        outcome.delivered = engine.deliver(plan)
        logger.info(f"Request finished: delivered={outcome.delivered}, follow_ups={outcome.follow_ups}")
        return outcome
