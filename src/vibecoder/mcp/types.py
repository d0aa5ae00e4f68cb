"""MCP server and capability type definitions."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from vibecoder.records import Record


class ServerType(Enum):
    """Transport an MCP server is reached over."""

    STDIO = "stdio"
    SSE = "sse"


class ServerStatus(Enum):
    """Status of an MCP server connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
    UNSUPPORTED = "unsupported"


class Capability(Record):
    """Immutable capability record as reported by a server."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class MCPToolAnnotations(Capability):
    title: str | None = None
    read_only_hint: bool | None = Field(default=None, alias="readOnlyHint")
    destructive_hint: bool | None = Field(default=None, alias="destructiveHint")
    idempotent_hint: bool | None = Field(default=None, alias="idempotentHint")
    open_world_hint: bool | None = Field(default=None, alias="openWorldHint")


class MCPTool(Capability):
    name: str
    description: str | None = None
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")
    annotations: MCPToolAnnotations | None = None


class MCPResource(Capability):
    uri: str
    name: str
    description: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class MCPPromptArgument(Capability):
    name: str
    description: str | None = None
    required: bool | None = None


class MCPPrompt(Capability):
    name: str
    description: str | None = None
    arguments: list[MCPPromptArgument] | None = None
