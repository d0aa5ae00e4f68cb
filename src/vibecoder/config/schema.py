"""Configuration schema dataclasses for VibeCoder.

All fields have defaults so partial configs from several layers can be
merged before conversion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from vibecoder.config.paths import resolve_data_path

DEFAULT_AGENTS_DIR = "config/agents"
DEFAULT_SERVERS_DIR = "data/mcp_servers"
DEFAULT_PREFERENCES_FILE = "data/layout_preferences.json"


@dataclass
class StorageConfig:
    """Where entity files live. Relative paths resolve against root."""

    root: str = "."
    agents_dir: str = DEFAULT_AGENTS_DIR
    servers_dir: str = DEFAULT_SERVERS_DIR
    preferences_file: str = DEFAULT_PREFERENCES_FILE
    lock_timeout: float = 10.0  # Seconds to wait for a file lock

    def _resolve(self, value: str) -> Path:
        return resolve_data_path(self.root, value)

    @property
    def agents_path(self) -> Path:
        return self._resolve(self.agents_dir)

    @property
    def servers_path(self) -> Path:
        return self._resolve(self.servers_dir)

    @property
    def preferences_path(self) -> Path:
        return self._resolve(self.preferences_file)


@dataclass
class AgentDefaultsConfig:
    """Defaults applied to newly created agents."""

    temperature: float = 0.7
    max_tokens: int = 4000
    system_prompt: str = "You are a helpful AI assistant."


@dataclass
class MCPServerConfig:
    """A configured MCP server, imported into a ServerModel."""

    name: str  # Unique identifier (e.g., "filesystem")
    display_name: str | None = None
    description: str | None = None
    type: str = "stdio"  # "stdio" or "sse"
    command: str | None = None  # For stdio
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    url: str | None = None  # For sse


@dataclass
class MCPConfig:
    servers: list[MCPServerConfig] = field(default_factory=list)


@dataclass
class LoggingConfig:
    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0=errors .. 4=trace, overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    agents: AgentDefaultsConfig = field(default_factory=AgentDefaultsConfig)
    mcp: MCPConfig = field(default_factory=MCPConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level keys
    extra: dict[str, Any] = field(default_factory=dict)
