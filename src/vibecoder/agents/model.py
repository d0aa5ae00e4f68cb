"""The agent aggregate: identity, settings, status, preferences, and content.

An AgentModel is the single source of truth for one configured agent. UI
code holds references to it, subscribes for changes, and mutates it only
through its methods and property setters. Every mutation bumps
last_active_at and notifies listeners before returning.

Conversation history is not stored here. It is read from the agent's
runtime, which is created lazily from the runtime factory.
"""

from __future__ import annotations

import asyncio
import math
import uuid
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from vibecoder.agents.runtime import AgentReply, AgentRuntime, ChatMessage, SendOptions
from vibecoder.agents.schema import AgentProcessingStatus, AgentRecord
from vibecoder.clock import ensure_utc, optional_utc, utcnow
from vibecoder.config import get_config
from vibecoder.content.collection import ContentCollection
from vibecoder.content.validator import ContentValidator
from vibecoder.errors import PersistenceError, RuntimeDelegationError, ValidationError
from vibecoder.logging import get_logger
from vibecoder.observable import ChangeNotifier
from vibecoder.records import decode
from vibecoder.storage import JsonStore, is_safe_id, read_json

if TYPE_CHECKING:
    from vibecoder.mcp.registry import ToolInfo

log = get_logger("agents")

MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0
MIN_MAX_TOKENS = 100
MAX_MAX_TOKENS = 32000

RuntimeFactory = Callable[["AgentModel"], AgentRuntime]


def default_agent_store() -> JsonStore:
    storage = get_config().storage
    return JsonStore(storage.agents_path, lock_timeout=storage.lock_timeout)


class AgentModel(ChangeNotifier):
    """A configured AI agent."""

    def __init__(
        self,
        name: str,
        system_prompt: str,
        *,
        id: str | None = None,
        is_active: bool = True,
        created_at: datetime | None = None,
        last_active_at: datetime | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        use_beta_features: bool = False,
        use_reasoner_model: bool = False,
        mcp_config_path: str | None = None,
        supervisor_id: str | None = None,
        context_files: list[str] | None = None,
        mcp_server_preferences: dict[str, bool] | None = None,
        mcp_tool_preferences: dict[str, bool] | None = None,
        status: AgentProcessingStatus = AgentProcessingStatus.IDLE,
        last_status_change: datetime | None = None,
        error_message: str | None = None,
        content: ContentCollection | None = None,
        metadata: dict[str, Any] | None = None,
        store: JsonStore | None = None,
        runtime_factory: RuntimeFactory | None = None,
    ) -> None:
        super().__init__()
        self._id = id or str(uuid.uuid4())
        self._name = name
        self._system_prompt = system_prompt
        self._is_active = is_active
        self._created_at = ensure_utc(created_at) if created_at else utcnow()
        active = ensure_utc(last_active_at) if last_active_at else self._created_at
        self._last_active_at = max(active, self._created_at)

        self._temperature = temperature
        self._max_tokens = max_tokens
        self._use_beta_features = use_beta_features
        self._use_reasoner_model = use_reasoner_model

        self._mcp_config_path = mcp_config_path
        self._supervisor_id = supervisor_id
        self._context_files = list(context_files or [])

        self._server_preferences = dict(mcp_server_preferences or {})
        self._tool_preferences = dict(mcp_tool_preferences or {})

        self._status = status
        self._last_status_change = optional_utc(last_status_change) or self._last_active_at
        self._error_message = error_message if status is AgentProcessingStatus.ERROR else None

        self._content = content or ContentCollection(self._id)
        self._content_subscription = self._content.subscribe(self.update_activity)
        self._metadata = dict(metadata or {})

        self._store = store
        self._runtime_factory = runtime_factory
        self._runtime: AgentRuntime | None = None

    # Identity

    @property
    def id(self) -> str:
        return self._id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def last_active_at(self) -> datetime:
        return self._last_active_at

    def _touch(self) -> None:
        self._last_active_at = max(utcnow(), self._last_active_at)
        self.notify_listeners()

    def update_activity(self) -> None:
        """Mark the agent as active now and notify listeners."""
        self._touch()

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value
        self._touch()

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @system_prompt.setter
    def system_prompt(self, value: str) -> None:
        self._system_prompt = value
        self._touch()

    @property
    def is_active(self) -> bool:
        return self._is_active

    @is_active.setter
    def is_active(self, value: bool) -> None:
        self._is_active = value
        self._touch()

    # Behavior

    @property
    def temperature(self) -> float:
        return self._temperature

    @temperature.setter
    def temperature(self, value: float) -> None:
        self._temperature = value
        self._touch()

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    @max_tokens.setter
    def max_tokens(self, value: int) -> None:
        self._max_tokens = value
        self._touch()

    @property
    def use_beta_features(self) -> bool:
        return self._use_beta_features

    @use_beta_features.setter
    def use_beta_features(self, value: bool) -> None:
        self._use_beta_features = value
        self._touch()

    @property
    def use_reasoner_model(self) -> bool:
        return self._use_reasoner_model

    @use_reasoner_model.setter
    def use_reasoner_model(self, value: bool) -> None:
        self._use_reasoner_model = value
        self._touch()

    # Relationships

    @property
    def mcp_config_path(self) -> str | None:
        return self._mcp_config_path

    @mcp_config_path.setter
    def mcp_config_path(self, value: str | None) -> None:
        self._mcp_config_path = value
        self._touch()

    @property
    def supervisor_id(self) -> str | None:
        return self._supervisor_id

    @supervisor_id.setter
    def supervisor_id(self, value: str | None) -> None:
        self._supervisor_id = value
        self._touch()

    @property
    def context_files(self) -> tuple[str, ...]:
        return tuple(self._context_files)

    @context_files.setter
    def context_files(self, value: Iterable[str]) -> None:
        self._context_files = list(value)
        self._touch()

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self._metadata)

    def set_metadata(self, key: str, value: Any) -> None:
        if not ContentValidator.validate_metadata({key: value}):
            raise ValidationError(
                "Invalid metadata", [f"value for {key!r} is not JSON-serializable"]
            )
        self._metadata[key] = value
        self._touch()

    # Processing status

    @property
    def status(self) -> AgentProcessingStatus:
        return self._status

    @property
    def is_processing(self) -> bool:
        return self._status is AgentProcessingStatus.PROCESSING

    @property
    def last_status_change(self) -> datetime:
        return self._last_status_change

    @property
    def error_message(self) -> str | None:
        return self._error_message

    def _transition(self, status: AgentProcessingStatus, error_message: str | None) -> None:
        previous = self._status
        now = max(utcnow(), self._last_active_at)
        self._status = status
        self._error_message = error_message
        self._last_active_at = now
        self._last_status_change = now
        log.debug("Agent %s: %s -> %s", self._name, previous.value, status.value)
        self.notify_listeners()

    def set_processing_status(self) -> None:
        if self._status is AgentProcessingStatus.PROCESSING:
            return
        self._transition(AgentProcessingStatus.PROCESSING, None)

    def set_idle_status(self) -> None:
        if self._status is AgentProcessingStatus.IDLE:
            return
        self._transition(AgentProcessingStatus.IDLE, None)

    def set_error_status(self, message: str) -> None:
        """Enter the error state. Always applies, so the message can be replaced."""
        self._transition(AgentProcessingStatus.ERROR, message)

    # MCP preferences

    @property
    def mcp_server_preferences(self) -> dict[str, bool]:
        return dict(self._server_preferences)

    @property
    def mcp_tool_preferences(self) -> dict[str, bool]:
        return dict(self._tool_preferences)

    def get_mcp_server_preference(self, server_name: str) -> bool:
        return self._server_preferences.get(server_name, True)

    def set_mcp_server_preference(self, server_name: str, enabled: bool) -> None:
        self._server_preferences[server_name] = enabled
        self._touch()

    def set_all_mcp_server_preferences(self, server_names: Iterable[str], enabled: bool) -> None:
        """Set many server preferences with a single notification."""
        for server_name in server_names:
            self._server_preferences[server_name] = enabled
        self._touch()

    def get_mcp_tool_preference(self, tool_id: str) -> bool:
        return self._tool_preferences.get(tool_id, True)

    def set_mcp_tool_preference(self, tool_id: str, enabled: bool) -> None:
        self._tool_preferences[tool_id] = enabled
        self._touch()

    def set_all_mcp_tool_preferences(self, tool_ids: Iterable[str], enabled: bool) -> None:
        for tool_id in tool_ids:
            self._tool_preferences[tool_id] = enabled
        self._touch()

    def is_tool_enabled(self, server_name: str, tool_id: str) -> bool:
        return self.get_mcp_server_preference(server_name) and self.get_mcp_tool_preference(
            tool_id
        )

    def filter_enabled_tools(self, tools: Iterable[ToolInfo]) -> list[ToolInfo]:
        """Keep tools whose server and tool preferences are both enabled."""
        return [t for t in tools if self.is_tool_enabled(t.server_name, t.unique_id)]

    # Content

    @property
    def content(self) -> ContentCollection:
        return self._content

    # Validation

    def validation_errors(self) -> list[str]:
        errors: list[str] = []
        if not self._id.strip():
            errors.append("Agent ID cannot be empty")
        elif not is_safe_id(self._id):
            errors.append(f"Agent ID is not a valid file name: {self._id!r}")
        if not self._name.strip():
            errors.append("Agent name cannot be empty")
        if not self._system_prompt.strip():
            errors.append("System prompt cannot be empty")
        if math.isnan(self._temperature) or not (
            MIN_TEMPERATURE <= self._temperature <= MAX_TEMPERATURE
        ):
            errors.append(
                f"Temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}"
            )
        if not (MIN_MAX_TOKENS <= self._max_tokens <= MAX_MAX_TOKENS):
            errors.append(f"Max tokens must be between {MIN_MAX_TOKENS} and {MAX_MAX_TOKENS}")
        if not ContentValidator.validate_metadata(self._metadata):
            errors.append("Metadata must be JSON-serializable")
        return errors

    def validate(self) -> bool:
        """Check persistence invariants.

        Raises:
            ValidationError: Listing every violation found.
        """
        errors = self.validation_errors()
        if errors:
            raise ValidationError(f"Invalid agent {self._name!r}", errors)
        return True

    # Runtime delegation

    @property
    def has_runtime(self) -> bool:
        return self._runtime is not None

    @property
    def runtime(self) -> AgentRuntime:
        """The agent's conversation engine, created on first use.

        Raises:
            RuntimeDelegationError: If no runtime factory was configured.
        """
        if self._runtime is None:
            if self._runtime_factory is None:
                raise RuntimeDelegationError(self._id, "no runtime configured")
            self._runtime = self._runtime_factory(self)
        return self._runtime

    @property
    def conversation_history(self) -> Sequence[ChatMessage]:
        if self._runtime is None:
            return []
        return list(self._runtime.get_history())

    @property
    def message_count(self) -> int:
        return len(self.conversation_history)

    @property
    def has_conversation(self) -> bool:
        return self.message_count > 0

    @property
    def last_message_time(self) -> datetime | None:
        history = self.conversation_history
        return history[-1].created_at if history else None

    @property
    def display_summary(self) -> str:
        state = "Active" if self._is_active else "Inactive"
        count = self.message_count
        messages = f"{count} messages" if count > 0 else "No messages"
        return f"{self._name} ({state}) - {messages}"

    def default_send_options(self) -> SendOptions:
        return SendOptions(
            use_beta=self._use_beta_features,
            is_reasoner=self._use_reasoner_model,
        )

    async def send_message(self, text: str, options: SendOptions | None = None) -> AgentReply | None:
        """Send a user message through the runtime.

        If the runtime leaves tool calls unprocessed, one follow-up turn is
        requested. Status moves to processing for the duration and back to
        idle, or to error if the runtime fails.

        Returns:
            The reply, or None if the agent was already processing.

        Raises:
            ValidationError: If text is blank.
            RuntimeDelegationError: If the runtime fails or is not configured.
        """
        if not text.strip():
            raise ValidationError("Message cannot be empty")
        if self.is_processing:
            log.warning("Agent %s is already processing, message ignored", self._name)
            return None

        runtime = self.runtime
        options = options or self.default_send_options()
        self.set_processing_status()
        try:
            response = await runtime.send_user_message_and_get_response(text, options)
            follow_up = None
            if runtime.has_unprocessed_tool_calls and not options.process_tool_calls_immediately:
                log.debug("Agent %s: processing tool calls", self._name)
                follow_up = await runtime.process_and_continue(options)
        except asyncio.CancelledError:
            self.set_idle_status()
            raise
        except Exception as e:
            log.error("Agent %s failed to process message: %s", self._name, e, exc_info=True)
            self.set_error_status(f"Failed to process message: {e}")
            raise RuntimeDelegationError(self._id, str(e)) from e

        self.set_idle_status()
        return AgentReply(response=response, follow_up=follow_up)

    # Persistence

    @property
    def store(self) -> JsonStore:
        if self._store is None:
            self._store = default_agent_store()
        return self._store

    async def save(self) -> Path:
        """Validate and write this agent's JSON file.

        Raises:
            ValidationError: If validation fails. Nothing is written.
            PersistenceError: If the write fails.
        """
        self.validate()
        self._last_active_at = max(utcnow(), self._last_active_at)
        path = await self.store.write(self._id, self.to_dict())
        log.info("Saved agent %s", self._name)
        self.notify_listeners()
        return path

    async def delete(self) -> None:
        """Remove this agent's JSON file. A missing file is not an error."""
        if await self.store.delete(self._id):
            log.info("Deleted agent %s", self._name)
        self.notify_listeners()

    @classmethod
    async def load(
        cls, path: Path | str, runtime_factory: RuntimeFactory | None = None
    ) -> AgentModel:
        """Load an agent from its JSON file.

        A persisted processing status is reset to idle since no request can
        be in flight for a freshly loaded agent.

        Raises:
            PersistenceError: If the file can't be read.
            ValidationError: If the file content is malformed.
        """
        path = Path(path)
        try:
            data = await asyncio.to_thread(read_json, path)
        except (OSError, ValueError) as e:
            raise PersistenceError("read", path, str(e)) from e
        return cls.from_stored(data, JsonStore(path.parent), runtime_factory)

    @classmethod
    def from_stored(
        cls,
        data: dict[str, Any],
        store: JsonStore,
        runtime_factory: RuntimeFactory | None = None,
    ) -> AgentModel:
        agent = cls.from_dict(data, store=store, runtime_factory=runtime_factory)
        if agent._status is AgentProcessingStatus.PROCESSING:
            agent._status = AgentProcessingStatus.IDLE
        return agent

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self._id,
            "name": self._name,
            "systemPrompt": self._system_prompt,
            "isActive": self._is_active,
            "isProcessing": self.is_processing,
            "createdAt": self._created_at.isoformat(),
            "lastActiveAt": self._last_active_at.isoformat(),
            "temperature": self._temperature,
            "maxTokens": self._max_tokens,
            "useBetaFeatures": self._use_beta_features,
            "useReasonerModel": self._use_reasoner_model,
            "mcpConfigPath": self._mcp_config_path,
            "supervisorId": self._supervisor_id,
            "contextFiles": list(self._context_files),
            "mcpServerPreferences": dict(self._server_preferences),
            "mcpToolPreferences": dict(self._tool_preferences),
            "status": {
                "status": self._status.value,
                "lastStatusChange": self._last_status_change.isoformat(),
                "errorMessage": self._error_message,
            },
            "content": self._content.to_dict(),
            "metadata": dict(self._metadata),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        *,
        store: JsonStore | None = None,
        runtime_factory: RuntimeFactory | None = None,
    ) -> AgentModel:
        """Build an agent from its JSON form.

        Raises:
            ValidationError: If the agent or its content is malformed.
        """
        record = decode(AgentRecord, data, "agent")
        content = None
        if record.content is not None:
            content = ContentCollection.from_dict(record.content)
            if content.agent_id != record.id:
                raise ValidationError(
                    "Invalid agent data",
                    [f"content.agentId: expected {record.id!r}, got {content.agent_id!r}"],
                )
        return cls(
            record.name,
            record.system_prompt,
            id=record.id,
            is_active=record.is_active,
            created_at=record.created_at,
            last_active_at=record.last_active_at,
            temperature=record.temperature,
            max_tokens=record.max_tokens,
            use_beta_features=record.use_beta_features,
            use_reasoner_model=record.use_reasoner_model,
            mcp_config_path=record.mcp_config_path,
            supervisor_id=record.supervisor_id,
            context_files=record.context_files,
            mcp_server_preferences=record.mcp_server_preferences,
            mcp_tool_preferences=record.mcp_tool_preferences,
            status=record.status.status,
            last_status_change=record.status.last_status_change,
            error_message=record.status.error_message,
            content=content,
            metadata=record.metadata,
            store=store,
            runtime_factory=runtime_factory,
        )

    def copy_with(self, **changes: Any) -> AgentModel:
        """Return a new agent with the given constructor fields replaced.

        Content, preference maps, and metadata are deep-copied. The runtime
        is not shared; the copy creates its own on first use.
        """
        fields: dict[str, Any] = {
            "name": self._name,
            "system_prompt": self._system_prompt,
            "id": self._id,
            "is_active": self._is_active,
            "created_at": self._created_at,
            "last_active_at": self._last_active_at,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "use_beta_features": self._use_beta_features,
            "use_reasoner_model": self._use_reasoner_model,
            "mcp_config_path": self._mcp_config_path,
            "supervisor_id": self._supervisor_id,
            "context_files": list(self._context_files),
            "mcp_server_preferences": dict(self._server_preferences),
            "mcp_tool_preferences": dict(self._tool_preferences),
            "status": self._status,
            "last_status_change": self._last_status_change,
            "error_message": self._error_message,
            "metadata": dict(self._metadata),
            "store": self._store,
            "runtime_factory": self._runtime_factory,
        }
        unknown = set(changes) - set(fields) - {"content"}
        if unknown:
            raise TypeError(f"copy_with() got unexpected fields: {', '.join(sorted(unknown))}")
        fields.update(changes)
        if "content" not in changes:
            content_data = self._content.to_dict()
            content_data["agentId"] = fields["id"]
            fields["content"] = ContentCollection.from_dict(content_data)
        return AgentModel(**fields)

    def dispose(self) -> None:
        """Release the runtime and content, then drop listeners."""
        if self._runtime is not None:
            self._runtime.dispose()
            self._runtime = None
        self._content_subscription.unsubscribe()
        self._content.dispose()
        super().dispose()

    def __repr__(self) -> str:
        return f"AgentModel(id={self._id!r}, name={self._name!r}, active={self._is_active})"
