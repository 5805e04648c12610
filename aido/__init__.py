"""
AIDO - natural language to shell commands

Turns a request into a single shell command streamed from a language model,
then executes it or types it into the focused terminal.
"""

__version__ = "0.4.0"

from aido.core.pipeline import CommandPipeline, PipelineOutcome
from aido.core.delivery import DeliveryMode, DeliveryPlan

__all__ = [
    "CommandPipeline",
    "PipelineOutcome",
    "DeliveryMode",
    "DeliveryPlan",
]
