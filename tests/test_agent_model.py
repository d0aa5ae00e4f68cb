"""Tests for AgentModel state, preferences, and runtime delegation."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from tests.utils import Counter, FakeRuntime
from vibecoder.agents import AgentModel, AgentProcessingStatus, SendOptions
from vibecoder.content import InboxItem
from vibecoder.errors import RuntimeDelegationError, ValidationError
from vibecoder.mcp import ToolInfo
from vibecoder.mcp.types import MCPTool


def make_agent(**kwargs) -> AgentModel:
    return AgentModel("Coder", "You write code.", **kwargs)


def with_runtime(runtime: FakeRuntime, **kwargs) -> AgentModel:
    return make_agent(runtime_factory=lambda agent: runtime, **kwargs)


def tool(server: str, name: str) -> ToolInfo:
    return ToolInfo(server, name, "", MCPTool(name=name))


class TestDefaults:
    """Tests for AgentModel construction defaults."""

    """Tests for AgentModel construction defaults."""

    def test_new_agent(self) -> None:
        agent = make_agent()
        assert agent.id
        assert agent.is_active
        assert agent.status is AgentProcessingStatus.IDLE
        assert not agent.is_processing
        assert agent.error_message is None
        assert agent.temperature == 0.7
        assert agent.max_tokens == 4000
        assert agent.content.agent_id == agent.id
        assert agent.last_active_at >= agent.created_at

    def test_last_active_clamped_to_created(self) -> None:
        created = datetime(2024, 1, 2, tzinfo=timezone.utc)
        agent = make_agent(created_at=created, last_active_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert agent.last_active_at == created


class TestMutations:
    """Tests for AgentModel setters and content relaying."""

    """Tests for AgentModel setters and content relaying."""

    def test_setters_notify_and_bump_activity(self) -> None:
        old = datetime(2020, 1, 1, tzinfo=timezone.utc)
        agent = make_agent(created_at=old)
        counter = Counter()
        agent.subscribe(counter)

        agent.name = "Reviewer"
        agent.system_prompt = "You review code."
        agent.is_active = False
        agent.temperature = 1.2
        agent.max_tokens = 2000
        agent.use_beta_features = True
        agent.use_reasoner_model = True
        agent.mcp_config_path = "/tmp/mcp.json"
        agent.supervisor_id = "boss"
        agent.context_files = ["README.md"]

        assert counter.count == 10
        assert agent.last_active_at > old
        assert agent.context_files == ("README.md",)

    def test_content_changes_bubble_up(self) -> None:
        agent = make_agent()
        counter = Counter()
        agent.subscribe(counter)

        item = InboxItem("hello")
        agent.content.add_inbox_item(item)
        item.mark_as_read()
        agent.content.notepad.append_content("note")
        assert counter.count == 3


class TestStatus:
    """Tests for processing status transitions."""

    """Tests for processing status transitions."""

    def test_processing_then_idle(self) -> None:
        agent = make_agent()
        counter = Counter()
        agent.subscribe(counter)

        agent.set_processing_status()
        assert agent.is_processing
        agent.set_processing_status()
        assert counter.count == 1

        agent.set_idle_status()
        agent.set_idle_status()
        assert agent.status is AgentProcessingStatus.IDLE
        assert counter.count == 2

    def test_error_always_applies(self) -> None:
        agent = make_agent()
        counter = Counter()
        agent.subscribe(counter)

        agent.set_error_status("boom")
        agent.set_error_status("boom")
        agent.set_error_status("worse")
        assert agent.status is AgentProcessingStatus.ERROR
        assert agent.error_message == "worse"
        assert counter.count == 3

    def test_leaving_error_clears_message(self) -> None:
        agent = make_agent()
        agent.set_error_status("boom")
        agent.set_idle_status()
        assert agent.error_message is None

    def test_transition_stamps_times(self) -> None:
        agent = make_agent(created_at=datetime(2020, 1, 1, tzinfo=timezone.utc))
        agent.set_processing_status()
        assert agent.last_status_change == agent.last_active_at

    def test_error_message_ignored_unless_error_status(self) -> None:
        agent = make_agent(error_message="stale")
        assert agent.error_message is None


class TestPreferences:
    """Tests for per-agent MCP tool preferences."""

    """Tests for per-agent MCP tool preferences."""

    def test_defaults_enabled(self) -> None:
        agent = make_agent()
        assert agent.get_mcp_server_preference("github")
        assert agent.get_mcp_tool_preference("github:search")

    def test_single_preference(self) -> None:
        agent = make_agent()
        agent.set_mcp_server_preference("github", False)
        agent.set_mcp_tool_preference("fs:write", False)
        assert not agent.get_mcp_server_preference("github")
        assert not agent.get_mcp_tool_preference("fs:write")
        assert agent.mcp_server_preferences == {"github": False}

    def test_bulk_update_notifies_once(self) -> None:
        agent = make_agent()
        counter = Counter()
        agent.subscribe(counter)
        agent.set_all_mcp_server_preferences(["a", "b", "c"], False)
        assert counter.count == 1
        agent.set_all_mcp_tool_preferences(["a:x", "b:y"], False)
        assert counter.count == 2
        assert agent.mcp_tool_preferences == {"a:x": False, "b:y": False}

    def test_filter_enabled_tools(self) -> None:
        agent = make_agent()
        agent.set_mcp_server_preference("github", False)
        agent.set_mcp_tool_preference("fs:write", False)
        tools = [tool("github", "search"), tool("fs", "read"), tool("fs", "write")]
        enabled = agent.filter_enabled_tools(tools)
        assert [t.unique_id for t in enabled] == ["fs:read"]


class TestValidation:
    """Tests for AgentModel persistence invariants."""

    """Tests for AgentModel persistence invariants."""

    def test_valid_agent(self) -> None:
        assert make_agent().validate()

    @pytest.mark.parametrize("temperature", [0.0, 2.0])
    def test_temperature_bounds_inclusive(self, temperature: float) -> None:
        assert make_agent(temperature=temperature).validation_errors() == []

    @pytest.mark.parametrize("temperature", [-0.1, 2.0001, float("nan")])
    def test_temperature_out_of_range(self, temperature: float) -> None:
        errors = make_agent(temperature=temperature).validation_errors()
        assert errors == ["Temperature must be between 0.0 and 2.0"]

    @pytest.mark.parametrize("max_tokens", [100, 32000])
    def test_max_tokens_bounds_inclusive(self, max_tokens: int) -> None:
        assert make_agent(max_tokens=max_tokens).validation_errors() == []

    @pytest.mark.parametrize("max_tokens", [99, 32001])
    def test_max_tokens_out_of_range(self, max_tokens: int) -> None:
        errors = make_agent(max_tokens=max_tokens).validation_errors()
        assert errors == ["Max tokens must be between 100 and 32000"]

    @pytest.mark.parametrize("agent_id", ["a/b", "..", "a\\b"])
    def test_id_must_be_file_name(self, agent_id: str) -> None:
        errors = make_agent(id=agent_id).validation_errors()
        assert errors == [f"Agent ID is not a valid file name: {agent_id!r}"]

    def test_set_metadata_rejects_unserializable(self) -> None:
        agent = make_agent()
        counter = Counter()
        agent.subscribe(counter)
        with pytest.raises(ValidationError):
            agent.set_metadata("when", {1, 2})
        assert agent.metadata == {}
        assert counter.count == 0

    def test_unserializable_constructor_metadata_reported(self) -> None:
        errors = make_agent(metadata={"at": object()}).validation_errors()
        assert errors == ["Metadata must be JSON-serializable"]

    def test_all_errors_reported(self) -> None:
        agent = AgentModel(" ", "", temperature=3.0)
        with pytest.raises(ValidationError) as exc_info:
            agent.validate()
        assert exc_info.value.errors == [
            "Agent name cannot be empty",
            "System prompt cannot be empty",
            "Temperature must be between 0.0 and 2.0",
        ]


class TestConversation:
    """Tests for message sending and runtime delegation."""

    """Tests for message sending and runtime delegation."""

    def test_no_runtime_means_no_history(self) -> None:
        agent = make_agent()
        assert agent.conversation_history == []
        assert agent.message_count == 0
        assert agent.last_message_time is None
        assert agent.display_summary == "Coder (Active) - No messages"

    def test_runtime_without_factory_raises(self) -> None:
        with pytest.raises(RuntimeDelegationError):
            make_agent().runtime

    def test_runtime_created_once(self) -> None:
        created: list[AgentModel] = []

        def factory(agent: AgentModel) -> FakeRuntime:
            created.append(agent)
            return FakeRuntime()

        agent = make_agent(runtime_factory=factory)
        assert agent.runtime is agent.runtime
        assert created == [agent]

    async def test_send_message(self) -> None:
        runtime = FakeRuntime(responses=["hi there"])
        agent = with_runtime(runtime)
        statuses: list[AgentProcessingStatus] = []
        agent.subscribe(lambda: statuses.append(agent.status))

        reply = await agent.send_message("hello")

        assert reply is not None
        assert reply.response == "hi there"
        assert reply.messages == ["hi there"]
        assert agent.status is AgentProcessingStatus.IDLE
        assert statuses == [AgentProcessingStatus.PROCESSING, AgentProcessingStatus.IDLE]
        assert agent.message_count == 2
        assert agent.has_conversation
        assert agent.display_summary == "Coder (Active) - 2 messages"
        assert agent.last_message_time == runtime.history[-1].created_at

    async def test_send_uses_agent_flags_by_default(self) -> None:
        runtime = FakeRuntime()
        agent = with_runtime(runtime, use_beta_features=True, use_reasoner_model=True)
        await agent.send_message("hello")
        assert runtime.sent_options == [SendOptions(use_beta=True, is_reasoner=True)]

    async def test_pending_tool_calls_get_one_follow_up(self) -> None:
        runtime = FakeRuntime(follow_up="tool result summary", tool_call_rounds=1)
        agent = with_runtime(runtime)
        reply = await agent.send_message("use a tool")
        assert runtime.continued == 1
        assert reply is not None
        assert reply.follow_up == "tool result summary"
        assert reply.messages == ["ok", "tool result summary"]

    async def test_immediate_tool_processing_skips_follow_up(self) -> None:
        runtime = FakeRuntime(follow_up="unused", tool_call_rounds=1)
        agent = with_runtime(runtime)
        reply = await agent.send_message(
            "use a tool", SendOptions(process_tool_calls_immediately=True)
        )
        assert runtime.continued == 0
        assert reply is not None
        assert reply.follow_up is None

    async def test_runtime_failure_sets_error(self) -> None:
        agent = with_runtime(FakeRuntime(error=ConnectionError("network down")))
        with pytest.raises(RuntimeDelegationError) as exc_info:
            await agent.send_message("hello")
        assert "network down" in str(exc_info.value)
        assert agent.status is AgentProcessingStatus.ERROR
        assert agent.error_message == "Failed to process message: network down"

    async def test_cancellation_returns_to_idle(self) -> None:
        agent = with_runtime(FakeRuntime(error=asyncio.CancelledError()))
        with pytest.raises(asyncio.CancelledError):
            await agent.send_message("hello")
        assert agent.status is AgentProcessingStatus.IDLE

    async def test_blank_message_rejected(self) -> None:
        runtime = FakeRuntime()
        agent = with_runtime(runtime)
        with pytest.raises(ValidationError):
            await agent.send_message("   ")
        assert runtime.history == []

    async def test_send_while_processing_is_ignored(self) -> None:
        runtime = FakeRuntime()
        agent = with_runtime(runtime)
        agent.set_processing_status()
        assert await agent.send_message("hello") is None
        assert runtime.history == []

    def test_dispose_releases_runtime(self) -> None:
        runtime = FakeRuntime()
        agent = with_runtime(runtime)
        agent.runtime
        content = agent.content
        agent.dispose()
        assert runtime.disposed
        assert content.is_disposed
        assert agent.is_disposed


class TestSerialization:
    """Tests for AgentModel to_dict/from_dict."""

    def test_to_dict_shape(self) -> None:
        agent = make_agent()
        agent.set_error_status("bad")
        data = agent.to_dict()
        assert data["name"] == "Coder"
        assert data["systemPrompt"] == "You write code."
        assert data["isProcessing"] is False
        assert data["status"]["status"] == "error"
        assert data["status"]["errorMessage"] == "bad"
        assert data["content"]["agentId"] == agent.id

    def test_round_trip(self) -> None:
        agent = make_agent(temperature=1.1, context_files=["a.py"], metadata={"team": "x"})
        agent.set_mcp_tool_preference("fs:write", False)
        agent.content.add_inbox_item(InboxItem("message"))
        agent.content.notepad.update_content("notes")

        restored = AgentModel.from_dict(agent.to_dict())
        assert restored.id == agent.id
        assert restored.temperature == 1.1
        assert restored.context_files == ("a.py",)
        assert restored.metadata == {"team": "x"}
        assert not restored.get_mcp_tool_preference("fs:write")
        assert restored.content.inbox_items[0].content == "message"
        assert restored.content.notepad.content == "notes"
        assert restored.created_at == agent.created_at
        assert restored.last_active_at == agent.last_active_at

    def test_mismatched_content_owner_rejected(self) -> None:
        data = make_agent().to_dict()
        data["content"]["agentId"] = "someone-else"
        with pytest.raises(ValidationError):
            AgentModel.from_dict(data)

    def test_missing_fields_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AgentModel.from_dict({"id": "a1"})
        assert any("name" in err for err in exc_info.value.errors)


class TestCopyWith:
    """Tests for AgentModel.copy_with."""

    """Tests for AgentModel.copy_with."""

    def test_copy_replaces_fields(self) -> None:
        agent = make_agent()
        copy = agent.copy_with(name="Other", temperature=0.2)
        assert copy.name == "Other"
        assert copy.temperature == 0.2
        assert copy.id == agent.id
        assert agent.name == "Coder"

    def test_copy_has_independent_content(self) -> None:
        agent = make_agent()
        agent.content.add_inbox_item(InboxItem("shared?"))
        copy = agent.copy_with(id="new-id")
        assert copy.content is not agent.content
        assert copy.content.agent_id == "new-id"
        copy.content.inbox_items[0].mark_as_read()
        assert not agent.content.inbox_items[0].is_read

    def test_unknown_field_raises(self) -> None:
        with pytest.raises(TypeError):
            make_agent().copy_with(colour="blue")
