"""Tests for the configuration module."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import pytest

from vibecoder.config import (
    Config,
    get_config,
    load_config,
    on_config_reload,
    reload_config,
    reset_config,
)
from vibecoder.config.loader import dict_to_config
from vibecoder.config.merge import deep_merge, merge_configs, normalize_layer
from vibecoder.config.paths import (
    config_layers,
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
    resolve_data_path,
)


class TestDeepMerge:
    """Test the deep merge algorithm."""

    def test_simple_override(self) -> None:
        """Test that override values replace base values."""
        result = deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self) -> None:
        """Test that nested dicts are recursively merged."""
        base = {"agents": {"temperature": 0.5, "max_tokens": 1000}}
        override = {"agents": {"temperature": 0.0}}
        result = deep_merge(base, override)
        assert result["agents"]["max_tokens"] == 1000
        assert result["agents"]["temperature"] == 0.0

    def test_none_does_not_override(self) -> None:
        """Test that None values in override don't replace base values."""
        assert deep_merge({"a": 1}, {"a": None})["a"] == 1

    def test_list_replaced_not_merged(self) -> None:
        """Test that lists are replaced, not concatenated."""
        assert deep_merge({"items": [1, 2, 3]}, {"items": [4, 5]})["items"] == [4, 5]

    def test_base_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}

    def test_merge_configs_multiple(self) -> None:
        """Test merging multiple configs in order."""
        result = merge_configs({"a": 1, "b": 2}, {"b": 3}, {"c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_mcp_servers_mapping_normalized(self) -> None:
        """Test that an mcpServers mapping becomes mcp.servers entries."""
        layer = {
            "mcp": {"servers": [{"name": "fs", "command": "uvx"}]},
            "mcpServers": {"fs": {"command": "npx"}, "git": {"command": "mcp-git"}},
        }
        assert normalize_layer(layer) == {
            "mcp": {
                "servers": [
                    {"name": "fs", "command": "uvx"},
                    {"command": "mcp-git", "name": "git"},
                ]
            }
        }

    def test_later_layer_replaces_server_list(self) -> None:
        result = merge_configs(
            {"mcpServers": {"fs": {"command": "npx"}}},
            {"mcp": {"servers": [{"name": "git", "command": "mcp-git"}]}},
        )
        assert result["mcp"]["servers"] == [{"name": "git", "command": "mcp-git"}]


class TestConfigPaths:
    """Test platform-aware path resolution."""

    def test_windows_system_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.setenv("PROGRAMDATA", "C:\\ProgramData")

        path = get_system_config_path()
        assert path is not None
        assert "ProgramData" in str(path)
        assert "vibecoder" in str(path)

    def test_windows_user_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.setenv("APPDATA", "C:\\Users\\Test\\AppData\\Roaming")

        path = get_user_config_path()
        assert path is not None
        assert "AppData" in str(path)

    def test_unix_system_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        assert get_system_config_path() == Path("/etc/vibecoder/config.yaml")

    def test_unix_user_path_xdg(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test user config path respects XDG_CONFIG_HOME."""
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", "/home/test/.config-custom")
        assert get_user_config_path() == Path("/home/test/.config-custom/vibecoder/config.yaml")

    def test_project_config_path(self) -> None:
        path = get_project_config_path("/home/user/myproject")
        assert path == Path("/home/user/myproject/.vibecoder/config.yaml")

    def test_get_config_paths_order(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that config paths are ordered system, user, project."""
        monkeypatch.setattr(sys, "platform", "linux")

        paths = get_config_paths(project_root="/project")
        assert len(paths) == 3
        assert "etc" in paths[0].parts
        assert "vibecoder" in paths[1].parts
        assert paths[2] == Path("/project/.vibecoder/config.yaml")

    def test_config_layers_named(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        layers = config_layers(project_root="/project")
        assert [layer.name for layer in layers] == ["system", "user", "project"]
        assert [layer.path for layer in layers] == get_config_paths("/project")

    def test_windows_without_appdata(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.delenv("APPDATA", raising=False)
        monkeypatch.delenv("PROGRAMDATA", raising=False)
        assert get_user_config_path() is None
        assert config_layers() == []

    def test_resolve_data_path(self, tmp_path: Path) -> None:
        """Test that storage settings resolve against the storage root."""
        assert resolve_data_path(tmp_path, "config/agents") == tmp_path / "config" / "agents"
        absolute = tmp_path / "elsewhere"
        assert resolve_data_path("/ignored", absolute) == absolute
        assert resolve_data_path("/ignored", "~/agents") == Path.home() / "agents"


class TestConfigLoading:
    """Test configuration loading."""

    @pytest.fixture
    def project(self, tmp_path: Path) -> Path:
        project = tmp_path / "project"
        (project / ".vibecoder").mkdir(parents=True)
        return project

    def write(self, project: Path, text: str) -> None:
        (project / ".vibecoder" / "config.yaml").write_text(text)

    def test_defaults(self, tmp_path: Path) -> None:
        """Test that missing config files give defaults."""
        config = load_config(project_root=tmp_path / "nowhere")
        assert isinstance(config, Config)
        assert config.agents.temperature == 0.7
        assert config.agents.max_tokens == 4000
        assert config.storage.agents_dir == "config/agents"
        assert config.mcp.servers == []

    def test_storage_section(self, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("VC_DATA_ROOT")
        self.write(
            project,
            """
storage:
  root: /srv/vibecoder
  servers_dir: /var/lib/mcp
  lock_timeout: 2
""",
        )
        config = load_config(project_root=project)
        assert config.storage.agents_path == Path("/srv/vibecoder/config/agents")
        assert config.storage.servers_path == Path("/var/lib/mcp")
        assert config.storage.lock_timeout == 2.0

    def test_data_root_env_overrides_file(self, project: Path, tmp_path: Path) -> None:
        """Test that VC_DATA_ROOT wins over the storage root in files."""
        self.write(project, "storage:\n  root: /srv/vibecoder\n")
        config = load_config(project_root=project)
        assert config.storage.root == str(tmp_path / "data-root")

    def test_log_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VC_LOG", "/tmp/vibecoder.log")
        assert load_config().logging.file == "/tmp/vibecoder.log"

    def test_user_config_under_project(self, project: Path, tmp_path: Path) -> None:
        """Test that project config overrides user config key by key."""
        user_file = tmp_path / "xdg" / "vibecoder" / "config.yaml"
        user_file.parent.mkdir(parents=True)
        user_file.write_text("agents:\n  temperature: 1.5\n  max_tokens: 8000\n")
        self.write(project, "agents:\n  temperature: 0.1\n")

        config = load_config(project_root=project)
        assert config.agents.temperature == 0.1
        assert config.agents.max_tokens == 8000

    def test_invalid_yaml_uses_defaults(self, project: Path) -> None:
        self.write(project, "invalid: yaml: :")
        config = load_config(project_root=project)
        assert config.agents.temperature == 0.7

    def test_extra_fields_preserved(self, project: Path) -> None:
        """Test that unknown config fields are preserved in extra."""
        self.write(project, "custom_field: custom_value\nnested:\n  field: value\n")
        config = load_config(project_root=project)
        assert config.extra["custom_field"] == "custom_value"
        assert config.extra["nested"]["field"] == "value"

    def test_mcp_servers(self, project: Path) -> None:
        self.write(
            project,
            """
mcp:
  servers:
    - name: filesystem
      command: npx
      args: ["-y", "@modelcontextprotocol/server-filesystem"]
      env:
        ROOT: /tmp
    - name: rider
      url: "http://127.0.0.1:64342/sse"
      transport: sse
    - description: no name, skipped
""",
        )
        config = load_config(project_root=project)
        assert [s.name for s in config.mcp.servers] == ["filesystem", "rider"]

        fs = config.mcp.servers[0]
        assert fs.type == "stdio"
        assert fs.command == "npx"
        assert fs.args == ["-y", "@modelcontextprotocol/server-filesystem"]
        assert fs.env == {"ROOT": "/tmp"}

        rider = config.mcp.servers[1]
        assert rider.type == "sse"
        assert rider.url == "http://127.0.0.1:64342/sse"

    def test_invalid_numbers_fall_back_to_defaults(
        self, project: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that values of the wrong type are logged and skipped."""
        self.write(
            project,
            "agents:\n  temperature: hot\n  max_tokens: [1]\n"
            "storage:\n  lock_timeout: soon\nlogging:\n  verbose: loud\n",
        )
        with caplog.at_level(logging.WARNING, logger="vibecoder.config"):
            config = load_config(project_root=project)

        assert config.agents.temperature == 0.7
        assert config.agents.max_tokens == 4000
        assert config.storage.lock_timeout == 10.0
        assert config.logging.verbose is None
        assert "agents.temperature" in caplog.text
        assert "storage.lock_timeout" in caplog.text

    def test_invalid_user_config_does_not_break_get_config(self) -> None:
        user_dir = Path(os.environ["XDG_CONFIG_HOME"]) / "vibecoder"
        user_dir.mkdir(parents=True)
        (user_dir / "config.yaml").write_text("agents:\n  temperature: hot\n")
        assert get_config().agents.temperature == 0.7

    def test_mcp_servers_mapping(self, project: Path) -> None:
        """Test the mcpServers mapping used by MCP client config files."""
        self.write(
            project,
            """
mcpServers:
  filesystem:
    command: npx
    args: ["-y", "@modelcontextprotocol/server-filesystem"]
  rider:
    url: "http://127.0.0.1:64342/sse"
""",
        )
        config = load_config(project_root=project)
        assert [s.name for s in config.mcp.servers] == ["filesystem", "rider"]
        assert config.mcp.servers[0].type == "stdio"
        assert config.mcp.servers[1].type == "sse"
        assert "mcpServers" not in config.extra

    def test_logging_section(self) -> None:
        config = dict_to_config({"logging": {"level": "debug", "verbose": "3"}})
        assert config.logging.level == "debug"
        assert config.logging.verbose == 3


class TestConfigCaching:
    """Test config caching behavior."""

    def test_get_config_caches(self) -> None:
        assert get_config() is get_config()

    def test_reset_clears_cache(self) -> None:
        config1 = get_config()
        reset_config()
        assert get_config() is not config1

    def test_project_config_not_cached(self, tmp_path: Path) -> None:
        """Test that project-specific config is not globally cached."""
        project_config = load_config(project_root=tmp_path)
        assert project_config is not get_config()

    def test_reload_notifies_callbacks(self) -> None:
        seen: list[Config] = []
        unregister = on_config_reload(seen.append)
        try:
            config = reload_config()
            assert seen == [config]
            assert get_config() is config
        finally:
            unregister()

        reload_config()
        assert len(seen) == 1

    def test_failing_callback_does_not_block_others(self) -> None:
        seen: list[Config] = []

        def broken(config: Config) -> None:
            raise RuntimeError("boom")

        unregister_broken = on_config_reload(broken)
        unregister_seen = on_config_reload(seen.append)
        try:
            reload_config()
        finally:
            unregister_broken()
            unregister_seen()
        assert len(seen) == 1
