"""Processor registry: node type name -> processor."""

from chatflow.core.constants import NodeType
from chatflow.nodes.base import NodeProcessor
from chatflow.nodes.branching import (
    AbTestProcessor,
    ConditionProcessor,
    RandomProcessor,
    SplitProcessor,
    SwitchProcessor,
)
from chatflow.nodes.delay import DelayProcessor
from chatflow.nodes.feedback import NpsProcessor, RatingProcessor
from chatflow.nodes.flow import EndProcessor, GotoProcessor, PassThroughProcessor, StartProcessor
from chatflow.nodes.handoff import HandoffProcessor
from chatflow.nodes.integrations import ApiCallProcessor, TagContactProcessor, WebhookProcessor
from chatflow.nodes.menu import MenuProcessor
from chatflow.nodes.message import MessageProcessor
from chatflow.nodes.question import QuestionProcessor


class ProcessorRegistry:
    """Registry for node processors.

    Unknown types resolve to a pass-through processor so graphs authored
    with newer node types keep running.

    Usage:
        registry = ProcessorRegistry.with_builtins()
        registry.register("audit", AuditProcessor())
        processor = registry.get(node.type)
    """

    _default_instance: "ProcessorRegistry | None" = None

    def __init__(self) -> None:
        self._processors: dict[str, NodeProcessor] = {}
        self._fallback: NodeProcessor = PassThroughProcessor()

    @classmethod
    def with_builtins(cls) -> "ProcessorRegistry":
        """A registry holding one processor per built-in node type."""
        registry = cls()
        registry.register(NodeType.START.value, StartProcessor())
        registry.register(NodeType.END.value, EndProcessor())
        registry.register(NodeType.MESSAGE.value, MessageProcessor())
        registry.register(NodeType.QUESTION.value, QuestionProcessor())
        registry.register(NodeType.MENU.value, MenuProcessor())
        registry.register(NodeType.CONDITION.value, ConditionProcessor())
        registry.register(NodeType.API_CALL.value, ApiCallProcessor())
        registry.register(NodeType.WEBHOOK.value, WebhookProcessor())
        registry.register(NodeType.TAG_CONTACT.value, TagContactProcessor())
        registry.register(NodeType.HANDOFF.value, HandoffProcessor())
        registry.register(NodeType.DELAY.value, DelayProcessor())
        registry.register(NodeType.GOTO.value, GotoProcessor())
        registry.register(NodeType.SWITCH.value, SwitchProcessor())
        registry.register(NodeType.RANDOM.value, RandomProcessor())
        registry.register(NodeType.SPLIT.value, SplitProcessor())
        registry.register(NodeType.AB_TEST.value, AbTestProcessor())
        registry.register(NodeType.RATING.value, RatingProcessor())
        registry.register(NodeType.NPS.value, NpsProcessor())
        return registry

    @classmethod
    def get_default(cls) -> "ProcessorRegistry":
        """Get the default global registry instance."""
        if cls._default_instance is None:
            cls._default_instance = cls.with_builtins()
        return cls._default_instance

    def register(self, node_type: str, processor: NodeProcessor) -> None:
        """Register (or replace) the processor of a node type."""
        self._processors[node_type] = processor

    def get(self, node_type: str) -> NodeProcessor:
        """Processor for a node type, or the pass-through processor."""
        return self._processors.get(node_type, self._fallback)

    def is_registered(self, node_type: str) -> bool:
        return node_type in self._processors

    def list_types(self) -> list[str]:
        return sorted(self._processors)
