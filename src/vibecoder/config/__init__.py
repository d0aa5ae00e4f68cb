"""Configuration management for VibeCoder.

Hierarchical YAML configuration merged from:
- System-level config (/etc/vibecoder/ or %PROGRAMDATA%)
- User-level config (~/.config/vibecoder/, ~/.vibecoder/ or %APPDATA%)
- Project-level config ($project_root/.vibecoder/)
- Environment variable overrides (highest priority)

Example usage:
    from vibecoder.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.storage.agents_path)
"""

from vibecoder.config.loader import (
    get_config,
    load_config,
    on_config_reload,
    reload_config,
    reset_config,
)
from vibecoder.config.paths import (
    ConfigLayer,
    config_layers,
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
    resolve_data_path,
)
from vibecoder.config.schema import (
    AgentDefaultsConfig,
    Config,
    LoggingConfig,
    MCPConfig,
    MCPServerConfig,
    StorageConfig,
)

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    "on_config_reload",
    # Schema types
    "StorageConfig",
    "AgentDefaultsConfig",
    "MCPConfig",
    "MCPServerConfig",
    "LoggingConfig",
    # Path utilities
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
    "config_layers",
    "ConfigLayer",
    "resolve_data_path",
]
