"""Error taxonomy for the VibeCoder model layer.

Validation and not-found errors are raised synchronously by model methods.
Persistence errors wrap filesystem failures from save/delete/load.
Runtime delegation errors wrap failures raised by an agent's runtime.
"""

from __future__ import annotations

from pathlib import Path


class VibeCoderError(Exception):
    """Base class for all VibeCoder errors."""


class ValidationError(VibeCoderError):
    """Raised when a model invariant is violated.

    Attributes:
        errors: Every violation found, not just the first.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = list(errors) if errors else [message]
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if len(self.errors) > 1 or self.errors[0] != base:
            return f"{base}: {'; '.join(self.errors)}"
        return base


class InvalidContentError(ValidationError):
    """Content failed sanitization or validation."""


class NotFoundError(VibeCoderError):
    """An operation referenced an id that is not present."""

    def __init__(self, kind: str, item_id: str) -> None:
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} not found: {item_id}")


class PersistenceError(VibeCoderError):
    """A filesystem operation on an entity file failed."""

    def __init__(self, operation: str, path: Path | str, reason: str = "") -> None:
        self.operation = operation
        self.path = Path(path)
        message = f"Failed to {operation} {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class RuntimeDelegationError(VibeCoderError):
    """The agent runtime failed while handling a message."""

    def __init__(self, agent_id: str, reason: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} failed to process message: {reason}")
