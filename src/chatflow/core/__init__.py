"""Core building blocks: state models, errors, interpolation and expressions."""

from chatflow.core.constants import ExecutionStatus, FailureReason, NodeType
from chatflow.core.errors import ChatflowError
from chatflow.core.expression import evaluate_condition, parse_condition
from chatflow.core.interpolation import interpolate
from chatflow.core.state import Contact, Execution, StepRecord

__all__ = [
    "ChatflowError",
    "Contact",
    "Execution",
    "ExecutionStatus",
    "FailureReason",
    "NodeType",
    "StepRecord",
    "evaluate_condition",
    "interpolate",
    "parse_condition",
]
