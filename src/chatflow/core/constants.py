"""Core constants and enums."""

from enum import Enum

# Upper bound of nodes processed in a single turn
MAX_STEPS = 20

# Bound applied to every external call made during a turn
DEFAULT_EXTERNAL_TIMEOUT_SECONDS = 10.0

DEFAULT_QUESTION_FALLBACK = "Desculpe, resposta inválida. Por favor, tente novamente."
DEFAULT_MENU_FALLBACK = "Opção inválida. Por favor, escolha uma das opções listadas."
DEFAULT_MENU_TITLE = "Escolha uma opção:"
DEFAULT_HANDOFF_MESSAGE = "Transferindo para um atendente..."
DEFAULT_HANDOFF_REASON = "User requested human agent"
DEFAULT_RATING_QUESTION = "Como você avalia nosso atendimento?"
DEFAULT_NPS_QUESTION = "De 0 a 10, qual a probabilidade de você nos recomendar?"


class ExecutionStatus(str, Enum):
    """Lifecycle status of an execution."""

    RUNNING = "running"
    WAITING_INPUT = "waiting_input"
    COMPLETED = "completed"
    HANDOFF = "handoff"
    EXPIRED = "expired"
    FAILED = "failed"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES


ACTIVE_STATUSES = frozenset({ExecutionStatus.RUNNING, ExecutionStatus.WAITING_INPUT})


class NodeType(str, Enum):
    """Node types understood by the engine."""

    START = "start"
    END = "end"
    MESSAGE = "message"
    QUESTION = "question"
    MENU = "menu"
    CONDITION = "condition"
    API_CALL = "api_call"
    WEBHOOK = "webhook"
    TAG_CONTACT = "tag_contact"
    HANDOFF = "handoff"
    DELAY = "delay"
    GOTO = "goto"
    SWITCH = "switch"
    RANDOM = "random"
    SPLIT = "split"
    AB_TEST = "ab_test"
    RATING = "rating"
    NPS = "nps"


# Node types that consume user input on their second phase
INPUT_NODE_TYPES = frozenset(
    {NodeType.QUESTION.value, NodeType.MENU.value, NodeType.RATING.value, NodeType.NPS.value}
)

KNOWN_NODE_TYPES = frozenset(node_type.value for node_type in NodeType)


class FailureReason(str, Enum):
    """Reasons recorded when an execution ends in ``failed``."""

    STEP_LIMIT_EXCEEDED = "step_limit_exceeded"
    NODE_ERROR = "node_error"
