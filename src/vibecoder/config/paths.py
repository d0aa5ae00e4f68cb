"""Where VibeCoder looks for config files and keeps its data.

Config layers, lowest priority first:

    system   /etc/vibecoder/config.yaml      %PROGRAMDATA%\\vibecoder\\config.yaml
    user     $XDG_CONFIG_HOME/vibecoder/, ~/.config/vibecoder/ or ~/.vibecoder/
             (%APPDATA%\\vibecoder\\ on Windows)
    project  <project_root>/.vibecoder/config.yaml

Entity directories and the preferences file are configured relative to
``storage.root``; resolve_data_path applies that rule.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import NamedTuple

CONFIG_FILENAME = "config.yaml"
APP_NAME = "vibecoder"
PROJECT_DIR = ".vibecoder"


class ConfigLayer(NamedTuple):
    name: str
    path: Path


def _windows_dir(env_var: str) -> Path | None:
    base = os.environ.get(env_var)
    return Path(base) / APP_NAME if base else None


def get_system_config_path() -> Path | None:
    """System config file, or None on Windows without %PROGRAMDATA%."""
    if sys.platform == "win32":
        directory = _windows_dir("PROGRAMDATA")
    else:
        directory = Path("/etc") / APP_NAME
    return directory / CONFIG_FILENAME if directory else None


def get_user_config_path() -> Path | None:
    """User config file, or None on Windows without %APPDATA%.

    On other platforms XDG_CONFIG_HOME wins, then ~/.config when it
    exists, then ~/.vibecoder.
    """
    if sys.platform == "win32":
        directory = _windows_dir("APPDATA")
        return directory / CONFIG_FILENAME if directory else None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME
    home = Path.home()
    if (home / ".config").exists():
        return home / ".config" / APP_NAME / CONFIG_FILENAME
    return home / PROJECT_DIR / CONFIG_FILENAME


def get_project_config_path(project_root: str | Path) -> Path:
    return Path(project_root) / PROJECT_DIR / CONFIG_FILENAME


def config_layers(project_root: str | Path | None = None) -> list[ConfigLayer]:
    """Named config file locations, lowest priority first. Files may not exist."""
    layers: list[ConfigLayer] = []
    system_path = get_system_config_path()
    if system_path:
        layers.append(ConfigLayer("system", system_path))
    user_path = get_user_config_path()
    if user_path:
        layers.append(ConfigLayer("user", user_path))
    if project_root:
        layers.append(ConfigLayer("project", get_project_config_path(project_root)))
    return layers


def get_config_paths(project_root: str | Path | None = None) -> list[Path]:
    """Config file paths in merge order (system, user, project)."""
    return [layer.path for layer in config_layers(project_root)]


def resolve_data_path(root: str | Path, value: str | Path) -> Path:
    """Resolve a storage setting: absolute and ~ paths stand alone, others join root."""
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return Path(root).expanduser() / path
