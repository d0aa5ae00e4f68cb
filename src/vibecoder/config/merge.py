"""Layer merging for the configuration cascade.

Every layer (system, user, project, environment) is a plain dict parsed
from YAML. Before merging, a layer may spell its MCP servers the way MCP
client config files do, as a top-level ``mcpServers`` mapping keyed by
server name. That mapping is folded into the native ``mcp.servers`` list
so the rest of the loader only ever sees one shape.
"""

from __future__ import annotations

from typing import Any

MCP_SERVERS_KEY = "mcpServers"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base.

    Nested sections merge key by key. Lists such as ``mcp.servers`` are
    taken whole from the later layer. A None value never clears a setting
    made by an earlier layer.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def normalize_layer(layer: dict[str, Any]) -> dict[str, Any]:
    """Fold a top-level ``mcpServers`` mapping into ``mcp.servers``.

    Mapping keys become server names. Servers already listed under
    ``mcp.servers`` in the same layer win over a mapped server of the
    same name. A non-mapping ``mcpServers`` value is left in place and
    ends up in ``Config.extra``.
    """
    mapped = layer.get(MCP_SERVERS_KEY)
    if not isinstance(mapped, dict):
        return layer

    normalized = {k: v for k, v in layer.items() if k != MCP_SERVERS_KEY}
    mcp_section = normalized.get("mcp")
    mcp_section = dict(mcp_section) if isinstance(mcp_section, dict) else {}
    listed = mcp_section.get("servers")
    servers = list(listed) if isinstance(listed, list) else []
    names = {s.get("name") for s in servers if isinstance(s, dict)}

    for name, entry in mapped.items():
        if str(name) in names or not isinstance(entry, dict):
            continue
        servers.append({**entry, "name": str(name)})

    mcp_section["servers"] = servers
    normalized["mcp"] = mcp_section
    return normalized


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Normalize and merge layers in order, later layers winning."""
    merged: dict[str, Any] = {}
    for layer in configs:
        if layer:
            merged = deep_merge(merged, normalize_layer(layer))
    return merged
