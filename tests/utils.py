"""Shared test helpers."""

from __future__ import annotations

from collections.abc import Sequence

from vibecoder.agents.runtime import ChatMessage, SendOptions


class Counter:
    """Zero-argument listener that counts notifications."""

    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> None:
        self.count += 1


class FakeRuntime:
    """In-memory AgentRuntime.

    Replies with queued responses. Setting tool_call_rounds makes the next
    send leave tool calls pending, answered by process_and_continue().
    """

    def __init__(
        self,
        responses: list[str] | None = None,
        follow_up: str | None = None,
        error: Exception | None = None,
        tool_call_rounds: int = 0,
    ) -> None:
        self.responses = list(responses or ["ok"])
        self.follow_up = follow_up
        self.error = error
        self.tool_call_rounds = tool_call_rounds
        self.history: list[ChatMessage] = []
        self.sent_options: list[SendOptions] = []
        self.continued = 0
        self.disposed = False
        self._pending_tools = False

    @property
    def has_unprocessed_tool_calls(self) -> bool:
        return self._pending_tools

    async def send_user_message_and_get_response(self, text: str, options: SendOptions) -> str:
        self.sent_options.append(options)
        self.add_user_message(text)
        if self.error is not None:
            raise self.error
        response = self.responses.pop(0) if self.responses else "ok"
        self.add_assistant_message(response)
        if self.tool_call_rounds > 0:
            self.tool_call_rounds -= 1
            self._pending_tools = True
        return response

    async def process_and_continue(self, options: SendOptions) -> str | None:
        self.continued += 1
        self._pending_tools = False
        if self.follow_up is not None:
            self.add_assistant_message(self.follow_up)
        return self.follow_up

    def get_history(self) -> Sequence[ChatMessage]:
        return list(self.history)

    def add_user_message(self, text: str) -> None:
        self.history.append(ChatMessage("user", text))

    def add_assistant_message(self, text: str) -> None:
        self.history.append(ChatMessage("assistant", text))

    def add_system_message(self, text: str) -> None:
        self.history.append(ChatMessage("system", text))

    def dispose(self) -> None:
        self.disposed = True
