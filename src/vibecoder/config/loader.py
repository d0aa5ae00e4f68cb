"""Configuration file loading and caching.

Configuration is best-effort. Missing or unparsable files contribute
nothing, and a setting with the wrong type is logged on the
``vibecoder.config`` logger and replaced by its default, so a bad user
file never stops agents or servers from being saved.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import yaml

from vibecoder.config.merge import merge_configs
from vibecoder.config.paths import config_layers
from vibecoder.config.schema import (
    AgentDefaultsConfig,
    Config,
    LoggingConfig,
    MCPConfig,
    MCPServerConfig,
    StorageConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("vibecoder.config")

_cached_config: Config | None = None

_reload_callbacks: list[Callable[[Config], None]] = []

T = TypeVar("T")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning an empty dict if missing or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build a config dict from VC_* environment variables."""
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("VC_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    data_root = os.environ.get("VC_DATA_ROOT")
    if data_root:
        overrides.setdefault("storage", {})["root"] = data_root

    return overrides


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _coerce(
    section: str, data: dict[str, Any], key: str, convert: Callable[[Any], T], default: T
) -> T:
    """Convert data[key] with convert, falling back to default on bad input."""
    value = data.get(key)
    if value is None:
        return default
    try:
        return convert(value)
    except (TypeError, ValueError):
        _log.warning("Invalid config value %s.%s=%r, using %r", section, key, value, default)
        return default


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def _str_dict(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


def _default_transport(entry: dict[str, Any]) -> str:
    return "sse" if entry.get("url") and not entry.get("command") else "stdio"


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert a merged dict to the typed Config dataclass."""
    storage_data = _section(data, "storage")
    storage_defaults = StorageConfig()
    storage = StorageConfig(
        root=str(storage_data.get("root", storage_defaults.root)),
        agents_dir=str(storage_data.get("agents_dir", storage_defaults.agents_dir)),
        servers_dir=str(storage_data.get("servers_dir", storage_defaults.servers_dir)),
        preferences_file=str(
            storage_data.get("preferences_file", storage_defaults.preferences_file)
        ),
        lock_timeout=_coerce(
            "storage", storage_data, "lock_timeout", float, storage_defaults.lock_timeout
        ),
    )

    agents_data = _section(data, "agents")
    agent_defaults = AgentDefaultsConfig()
    agents = AgentDefaultsConfig(
        temperature=_coerce(
            "agents", agents_data, "temperature", float, agent_defaults.temperature
        ),
        max_tokens=_coerce("agents", agents_data, "max_tokens", int, agent_defaults.max_tokens),
        system_prompt=str(agents_data.get("system_prompt", agent_defaults.system_prompt)),
    )

    mcp_data = _section(data, "mcp")
    servers_data = mcp_data.get("servers", [])
    mcp_servers = []
    for s in servers_data if isinstance(servers_data, list) else []:
        if not isinstance(s, dict) or not s.get("name"):
            continue
        mcp_servers.append(
            MCPServerConfig(
                name=str(s["name"]),
                display_name=s.get("display_name"),
                description=s.get("description"),
                type=str(s.get("type") or s.get("transport") or _default_transport(s)),
                command=s.get("command"),
                args=_str_list(s.get("args")),
                env=_str_dict(s.get("env")),
                url=s.get("url"),
            )
        )
    mcp = MCPConfig(servers=mcp_servers)

    log_data = _section(data, "logging")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=_coerce("logging", log_data, "verbose", int, None),
        file=log_data.get("file"),
    )

    known_keys = {"storage", "agents", "mcp", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(
        storage=storage,
        agents=agents,
        mcp=mcp,
        logging=logging_config,
        extra=extra,
    )


def load_config(project_root: str | Path | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables (VC_LOG, VC_DATA_ROOT)
    2. Project config ($project_root/.vibecoder/config.yaml)
    3. User config (~/.config/vibecoder/ or ~/.vibecoder/ or %APPDATA%)
    4. System config (/etc/vibecoder/ or %PROGRAMDATA%)

    Args:
        project_root: Project directory for project-level config.
        reload: Force reload even if cached.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    configs: list[dict[str, Any]] = []

    for layer in config_layers(project_root):
        config_data = load_yaml_file(layer.path)
        if config_data:
            _log.debug("Loaded %s config from %s", layer.name, layer.path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    # Cache only the global config (no project_root)
    if project_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Drop the cached config."""
    global _cached_config
    _cached_config = None


def reload_config(project_root: str | Path | None = None) -> Config:
    """Reload config from files and notify callbacks."""
    config = load_config(project_root=project_root, reload=True)

    for callback in list(_reload_callbacks):
        try:
            callback(config)
        except Exception as e:
            _log.warning("Config reload callback error: %s", e)

    return config


def on_config_reload(callback: Callable[[Config], None]) -> Callable[[], None]:
    """Register a callback for config reloads.

    Returns:
        A function that unregisters the callback.
    """
    _reload_callbacks.append(callback)

    def unregister() -> None:
        if callback in _reload_callbacks:
            _reload_callbacks.remove(callback)

    return unregister
