"""Contract for the conversation engine an agent delegates to.

The runtime owns conversation history and talks to the model API. The
agent model only drives it and tracks processing status around it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, runtime_checkable

from vibecoder.clock import utcnow


@dataclass(frozen=True)
class SendOptions:
    """Per-request flags passed through to the runtime."""

    use_beta: bool = False
    is_reasoner: bool = False
    process_tool_calls_immediately: bool = False


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "system", "user", "assistant", or "tool"
    content: str
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class AgentReply:
    """Outcome of one send_message() call."""

    response: str
    follow_up: str | None = None

    @property
    def messages(self) -> list[str]:
        if self.follow_up is None:
            return [self.response]
        return [self.response, self.follow_up]


@runtime_checkable
class AgentRuntime(Protocol):
    """Conversation engine for one agent."""

    @property
    def has_unprocessed_tool_calls(self) -> bool: ...

    async def send_user_message_and_get_response(self, text: str, options: SendOptions) -> str: ...

    async def process_and_continue(self, options: SendOptions) -> str | None: ...

    def get_history(self) -> Sequence[ChatMessage]: ...

    def add_user_message(self, text: str) -> None: ...

    def add_assistant_message(self, text: str) -> None: ...

    def add_system_message(self, text: str) -> None: ...

    def dispose(self) -> None: ...
