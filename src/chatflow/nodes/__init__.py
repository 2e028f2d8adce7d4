"""Node processors, one per node type."""

from chatflow.nodes.base import NodeContext, NodeProcessor, NodeResult, Outcome
from chatflow.nodes.branching import select_case
from chatflow.nodes.menu import match_option, render_menu
from chatflow.nodes.question import check_answer
from chatflow.nodes.registry import ProcessorRegistry

__all__ = [
    "NodeContext",
    "NodeProcessor",
    "NodeResult",
    "Outcome",
    "ProcessorRegistry",
    "check_answer",
    "match_option",
    "render_menu",
    "select_case",
]
