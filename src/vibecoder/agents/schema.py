"""Agent status enum and persisted record shapes."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from vibecoder.records import Record


class AgentProcessingStatus(Enum):
    """What an agent is doing right now."""

    IDLE = "idle"  # Ready for work
    PROCESSING = "processing"  # Waiting on the runtime
    ERROR = "error"  # Last request failed


class AgentStatusRecord(Record):
    status: AgentProcessingStatus = AgentProcessingStatus.IDLE
    last_status_change: datetime | None = Field(default=None, alias="lastStatusChange")
    error_message: str | None = Field(default=None, alias="errorMessage")


class AgentRecord(Record):
    id: str
    name: str
    system_prompt: str = Field(alias="systemPrompt")
    is_active: bool = Field(default=True, alias="isActive")
    created_at: datetime = Field(alias="createdAt")
    last_active_at: datetime = Field(alias="lastActiveAt")
    temperature: float = 0.7
    max_tokens: int = Field(default=4000, alias="maxTokens")
    use_beta_features: bool = Field(default=False, alias="useBetaFeatures")
    use_reasoner_model: bool = Field(default=False, alias="useReasonerModel")
    mcp_config_path: str | None = Field(default=None, alias="mcpConfigPath")
    supervisor_id: str | None = Field(default=None, alias="supervisorId")
    context_files: list[str] = Field(default_factory=list, alias="contextFiles")
    mcp_server_preferences: dict[str, bool] = Field(
        default_factory=dict, alias="mcpServerPreferences"
    )
    mcp_tool_preferences: dict[str, bool] = Field(default_factory=dict, alias="mcpToolPreferences")
    status: AgentStatusRecord = Field(default_factory=AgentStatusRecord)
    content: dict[str, Any] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
