"""Graph definition models.

Graphs are authored elsewhere and arrive as camelCase JSON/YAML; both the
camelCase and snake_case spellings are accepted. A definition is frozen:
one ``(id, version)`` pair always denotes the same nodes and edges.
"""

import json
from functools import cached_property
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from chatflow.core.constants import KNOWN_NODE_TYPES, NodeType


class GraphModel(BaseModel):
    """Base for authored models: camelCase aliases, immutable."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _as_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


# ─────────────────────────────────────────────────────────────────
# Typed node payloads
# ─────────────────────────────────────────────────────────────────


class MessageData(GraphModel):
    content: str = ""


class QuestionData(GraphModel):
    question: str = ""
    variable_name: str | None = None
    validation: str | None = None


class MenuOption(GraphModel):
    id: str = ""
    label: str = ""
    value: str = ""

    @field_validator("id", "label", "value", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class MenuData(GraphModel):
    title: str | None = None
    variable_name: str | None = None
    options: list[MenuOption] = Field(default_factory=list)


class ConditionData(GraphModel):
    condition: str = ""


class ApiCallData(GraphModel):
    url: str = ""
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | None = None

    @field_validator("body", mode="before")
    @classmethod
    def _serialize_body(cls, value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False)
        return value


class WebhookData(GraphModel):
    url: str = ""
    method: str = "POST"
    headers: dict[str, str] = Field(default_factory=dict)


class TagContactData(GraphModel):
    tag_name: str | None = None
    content: str | None = None

    @property
    def resolved_tag_name(self) -> str:
        return (self.tag_name or self.content or "").strip()


class HandoffData(GraphModel):
    message: str | None = None


class DelayData(GraphModel):
    duration: int = Field(default=1000, ge=0, description="Pause in milliseconds")


class GotoData(GraphModel):
    target_node_id: str | None = None


class SwitchCase(GraphModel):
    id: str
    value: str = ""

    @field_validator("id", "value", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class SwitchData(GraphModel):
    variable: str | None = None
    cases: list[SwitchCase] = Field(default_factory=list)


class SplitPath(GraphModel):
    id: str
    percentage: float = Field(default=0, ge=0)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class SplitData(GraphModel):
    split_type: str = "percentage"
    paths: list[SplitPath] = Field(default_factory=list)


class AbTestVariant(GraphModel):
    id: str
    weight: float = Field(default=1, gt=0)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("weight", mode="before")
    @classmethod
    def _default_weight(cls, value: Any) -> Any:
        # unset and zero weights count as 1
        return value or 1


class AbTestData(GraphModel):
    test_name: str | None = None
    variants: list[AbTestVariant] = Field(default_factory=list)


class RatingData(GraphModel):
    question: str | None = None
    variable_name: str | None = None
    max_rating: int = Field(default=5, ge=1, le=10)
    rating_type: str = "stars"
    low_rating_threshold: int | None = None
    low_rating_action: str | None = None


class NpsData(GraphModel):
    question: str | None = None
    variable_name: str | None = None
    follow_up_detractor: str | None = None
    follow_up_passive: str | None = None
    follow_up_promoter: str | None = None


DataT = TypeVar("DataT", bound=GraphModel)


# ─────────────────────────────────────────────────────────────────
# Graph structure
# ─────────────────────────────────────────────────────────────────


class Node(GraphModel):
    """A single step of the graph.

    ``type`` is kept as free text so graphs authored with newer node types
    still load; the engine treats unknown types as pass-through.
    """

    id: str
    type: str
    data: dict[str, Any] = Field(default_factory=dict)

    def parse_data(self, model: type[DataT]) -> DataT:
        """Parse ``data`` into the typed payload for this node type."""
        return model.model_validate(self.data)

    @property
    def is_known_type(self) -> bool:
        return self.type in KNOWN_NODE_TYPES


class Edge(GraphModel):
    """Directed connection, optionally labeled with a branch handle."""

    id: str | None = None
    source: str
    target: str
    source_handle: str | None = None

    @field_validator("source_handle", mode="before")
    @classmethod
    def _blank_handle_is_default(cls, value: Any) -> Any:
        if value is None:
            return None
        value = _as_text(value)
        return value or None


class GraphSettings(GraphModel):
    typing_delay_ms: int = Field(default=0, ge=0)
    default_fallback_message: str | None = None
    max_retries: int = Field(default=3, ge=0)
    session_timeout_minutes: int = Field(default=30, gt=0)


class GraphDefinition(GraphModel):
    """Immutable, versioned graph snapshot."""

    id: str
    company_id: str
    version: int = 1
    name: str = ""
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    default_variables: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("defaultVariables", "default_variables", "variables"),
    )
    settings: GraphSettings = Field(default_factory=GraphSettings)

    @cached_property
    def node_index(self) -> dict[str, Node]:
        # First definition wins when ids are duplicated; the validator reports it
        index: dict[str, Node] = {}
        for node in self.nodes:
            index.setdefault(node.id, node)
        return index

    def get_node(self, node_id: str | None) -> Node | None:
        if node_id is None:
            return None
        return self.node_index.get(node_id)

    def start_node(self) -> Node | None:
        """The ``start`` node, or the first node when none is marked."""
        for node in self.nodes:
            if node.type == NodeType.START.value:
                return node
        return self.nodes[0] if self.nodes else None
