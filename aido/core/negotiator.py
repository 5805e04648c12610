"""
Binary Availability Negotiator.

When a generated command needs binaries that are not installed, ask the model
once for an install command or an alternative. Never more than one follow-up.
"""

import shutil
from typing import Callable, List, Optional, Sequence

from loguru import logger

from aido.core.delivery import DeliveryPlan
from aido.core.status import StatusReporter
from aido.core.streaming import ReturnCommand, StreamResult, consume_stream
from aido.core.tool_definitions import COMMAND_TOOLS
from aido.llm.base_client import BaseLLMClient, Message

MISSING_BINARIES_PROMPT = (
    "The following binaries are missing: {binaries}. Please provide a command to install these binaries, "
    "or if that's not possible, provide an alternative command that doesn't require these binaries. "
    "If installation instructions are complex, provide a brief explanation or a link to installation instructions."
)


def find_missing_binaries(
    binaries: Sequence[str],
    which: Callable[[str], Optional[str]] = shutil.which
) -> List[str]:
    """Binaries not resolvable on PATH, in the order given."""
    return [binary for binary in binaries if which(binary) is None]


class BinaryNegotiator:
    """Turns a candidate ReturnCommand into a DeliveryPlan."""

    def __init__(
        self,
        client: BaseLLMClient,
        reporter: Optional[StatusReporter] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
        tools: Optional[List[dict]] = None
    ):
        self.client = client
        self.reporter = reporter
        self.which = which
        self.tools = tools if tools is not None else COMMAND_TOOLS
        self.follow_ups = 0

    def negotiate(self, candidate: ReturnCommand, conversation: Sequence[Message]) -> DeliveryPlan:
        """
        Resolve missing binaries for a candidate command.

        Args:
            candidate: Command decoded from the first response
            conversation: Messages that produced the candidate (not modified)

        Returns:
            A plan with one command, or an explain-only plan

        Raises:
            StreamError: The follow-up stream failed
            FunctionCallError: The follow-up call could not be decoded
        """
        missing = find_missing_binaries(candidate.binaries, self.which)
        if not missing:
            return DeliveryPlan.single(candidate.command)

        listed = ", ".join(missing)
        logger.info(f"Missing binaries for {candidate.command!r}: {listed}")
        if self.reporter:
            self.reporter.warning(f"Missing required binaries: {listed}")

        follow_up = list(conversation)
        follow_up.append(Message(role="user", content=MISSING_BINARIES_PROMPT.format(binaries=listed)))

        self.follow_ups += 1
        if self.reporter:
            self.reporter.thinking()
        try:
            result = consume_stream(self.client.stream_chat(follow_up, tools=self.tools))
        finally:
            if self.reporter:
                self.reporter.stop_thinking()

        return self._plan_from(result)

    def _plan_from(self, result: StreamResult) -> DeliveryPlan:
        if not result.has_command:
            logger.info("Follow-up returned no command")
            if self.reporter:
                self.reporter.explanation(result.text, label="AI's alternative response:")
            return DeliveryPlan.explain(result.text)

        alternative = result.command
        if self.reporter:
            self.reporter.command(alternative.command, label="\nAI's alternative command:")

        still_missing = find_missing_binaries(alternative.binaries, self.which)
        if still_missing:
            logger.info(f"Alternative still needs: {still_missing}")
            if self.reporter:
                self.reporter.warning(
                    f"The alternative command also requires missing binaries: {', '.join(still_missing)}"
                )
                self.reporter.explanation(result.text, label="AI's explanation:")
            return DeliveryPlan.explain(result.text)

        return DeliveryPlan.single(alternative.command)
