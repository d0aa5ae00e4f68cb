"""MCP server models, capability records, and tool bookkeeping."""

from vibecoder.mcp.capabilities import (
    prompt_from_sdk,
    prompts_from_sdk,
    resource_from_sdk,
    resources_from_sdk,
    tool_from_sdk,
    tools_from_sdk,
)
from vibecoder.mcp.processes import (
    ProcessInfo,
    ProcessLease,
    ProcessStats,
    ProcessTable,
    process_key,
)
from vibecoder.mcp.registry import RegistrySummary, ToolInfo, ToolRegistry
from vibecoder.mcp.server import ServerModel
from vibecoder.mcp.types import (
    MCPPrompt,
    MCPPromptArgument,
    MCPResource,
    MCPTool,
    MCPToolAnnotations,
    ServerStatus,
    ServerType,
)

__all__ = [
    "MCPPrompt",
    "MCPPromptArgument",
    "MCPResource",
    "MCPTool",
    "MCPToolAnnotations",
    "ProcessInfo",
    "ProcessLease",
    "ProcessStats",
    "ProcessTable",
    "RegistrySummary",
    "ServerModel",
    "ServerStatus",
    "ServerType",
    "ToolInfo",
    "ToolRegistry",
    "process_key",
    "prompt_from_sdk",
    "prompts_from_sdk",
    "resource_from_sdk",
    "resources_from_sdk",
    "tool_from_sdk",
    "tools_from_sdk",
]
