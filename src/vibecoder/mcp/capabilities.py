"""Conversion from MCP SDK types to capability records.

The transport layer lists tools, resources and prompts with the official
``mcp`` client; these helpers turn the results into the records stored on
a ServerModel.

Field names are read in the SDK's camelCase spelling with a snake_case
fallback, so objects shaped like either release line convert the same way.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from mcp import types as sdk

from vibecoder.mcp.types import (
    MCPPrompt,
    MCPPromptArgument,
    MCPResource,
    MCPTool,
    MCPToolAnnotations,
)


def _field(obj: Any, camel: str, snake: str) -> Any:
    value = getattr(obj, camel, None)
    return value if value is not None else getattr(obj, snake, None)

def tool_from_sdk(tool: sdk.Tool) -> MCPTool:
    annotations = None
    if tool.annotations is not None:
        annotations = MCPToolAnnotations(
            title=tool.annotations.title,
            read_only_hint=_field(tool.annotations, "readOnlyHint", "read_only_hint"),
            destructive_hint=_field(tool.annotations, "destructiveHint", "destructive_hint"),
            idempotent_hint=_field(tool.annotations, "idempotentHint", "idempotent_hint"),
            open_world_hint=_field(tool.annotations, "openWorldHint", "open_world_hint"),
        )
    return MCPTool(
        name=tool.name,
        description=tool.description,
        input_schema=dict(_field(tool, "inputSchema", "input_schema") or {}),
        annotations=annotations,
    )


def resource_from_sdk(resource: sdk.Resource) -> MCPResource:
    return MCPResource(
        uri=str(resource.uri),
        name=resource.name,
        description=resource.description,
        mime_type=_field(resource, "mimeType", "mime_type"),
    )


def prompt_from_sdk(prompt: sdk.Prompt) -> MCPPrompt:
    arguments = None
    if prompt.arguments is not None:
        arguments = [
            MCPPromptArgument(name=a.name, description=a.description, required=a.required)
            for a in prompt.arguments
        ]
    return MCPPrompt(name=prompt.name, description=prompt.description, arguments=arguments)


def tools_from_sdk(tools: Iterable[sdk.Tool]) -> list[MCPTool]:
    return [tool_from_sdk(t) for t in tools]


def resources_from_sdk(resources: Iterable[sdk.Resource]) -> list[MCPResource]:
    return [resource_from_sdk(r) for r in resources]


def prompts_from_sdk(prompts: Iterable[sdk.Prompt]) -> list[MCPPrompt]:
    return [prompt_from_sdk(p) for p in prompts]
