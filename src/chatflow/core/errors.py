"""Core engine errors.

Every error accepts keyword context that is rendered into the message, so
log lines and API responses carry the identifiers involved:

    >>> str(ExecutionNotFoundError("Execution not found", execution_id="e1"))
    'Execution not found (execution_id=e1)'
"""

from typing import Any


class ChatflowError(Exception):
    """Base class for all chatflow errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigError(ChatflowError):
    """Raised when configuration is invalid."""


class ExecutionNotFoundError(ChatflowError):
    """Raised when an execution does not exist (or belongs to another company)."""


class ExecutionNotActiveError(ChatflowError):
    """Raised when a turn targets an execution in a terminal status."""


class ExecutionConflictError(ChatflowError):
    """Raised when a save loses the optimistic revision check."""


class GraphNotFoundError(ChatflowError):
    """Raised when a graph definition snapshot cannot be loaded."""


class InvalidGraphError(ChatflowError):
    """Raised when a graph cannot be executed at all (e.g. no entry node)."""


class ExpressionError(ChatflowError):
    """Raised when a condition expression cannot be tokenized or parsed."""


class GatewayError(ChatflowError):
    """Raised by side-effect collaborators (timeouts, transport failures)."""


class TriggerValidationError(ChatflowError):
    """Raised when a trigger payload is malformed."""
