"""Persisted record shape for MCP servers."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from vibecoder.mcp.types import MCPPrompt, MCPResource, MCPTool, ServerStatus, ServerType
from vibecoder.records import Record


class ServerRecord(Record):
    id: str
    name: str
    display_name: str | None = Field(default=None, alias="displayName")
    description: str | None = None
    type: ServerType
    status: ServerStatus = ServerStatus.DISCONNECTED
    command: str | None = None
    args: list[str] | None = None
    env: dict[str, str] | None = None
    url: str | None = None
    available_tools: list[MCPTool] = Field(default_factory=list, alias="availableTools")
    available_resources: list[MCPResource] = Field(
        default_factory=list, alias="availableResources"
    )
    available_prompts: list[MCPPrompt] = Field(default_factory=list, alias="availablePrompts")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    last_connected_at: datetime | None = Field(default=None, alias="lastConnectedAt")
    metadata: dict[str, Any] = Field(default_factory=dict)
