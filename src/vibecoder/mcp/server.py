"""MCP server entity with self-managed persistence."""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from vibecoder.clock import ensure_utc, optional_utc, utcnow
from vibecoder.config import get_config
from vibecoder.content.validator import ContentValidator
from vibecoder.errors import PersistenceError, ValidationError
from vibecoder.logging import get_logger
from vibecoder.mcp.schema import ServerRecord
from vibecoder.mcp.types import MCPPrompt, MCPResource, MCPTool, ServerStatus, ServerType
from vibecoder.observable import ChangeNotifier
from vibecoder.records import decode
from vibecoder.storage import JsonStore, is_safe_id, read_json

log = get_logger("mcp")


def default_server_store() -> JsonStore:
    storage = get_config().storage
    return JsonStore(storage.servers_path, lock_timeout=storage.lock_timeout)


class ServerModel(ChangeNotifier):
    """Connection metadata and capabilities of one MCP server.

    Status and capability lists are reported by the transport layer; the
    model records them, timestamps them, and notifies listeners. Each
    server persists to its own JSON file named by id.
    """

    def __init__(
        self,
        name: str,
        type: ServerType,
        *,
        id: str | None = None,
        display_name: str | None = None,
        description: str | None = None,
        status: ServerStatus = ServerStatus.DISCONNECTED,
        command: str | None = None,
        args: list[str] | None = None,
        env: dict[str, str] | None = None,
        url: str | None = None,
        tools: list[MCPTool] | None = None,
        resources: list[MCPResource] | None = None,
        prompts: list[MCPPrompt] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        last_connected_at: datetime | None = None,
        metadata: dict[str, Any] | None = None,
        store: JsonStore | None = None,
    ) -> None:
        super().__init__()
        self._id = id or str(uuid.uuid4())
        self._name = name
        self._display_name = display_name or name
        self._description = description
        self._type = type
        self._status = status
        self._command = command
        self._args = list(args) if args is not None else None
        self._env = dict(env) if env is not None else None
        self._url = url
        self._tools = list(tools or [])
        self._resources = list(resources or [])
        self._prompts = list(prompts or [])
        self._created_at = ensure_utc(created_at) if created_at else utcnow()
        updated = ensure_utc(updated_at) if updated_at else self._created_at
        self._updated_at = max(updated, self._created_at)
        self._last_connected_at = optional_utc(last_connected_at)
        self._metadata = dict(metadata or {})
        self._store = store

    @classmethod
    def stdio(
        cls,
        name: str,
        command: str,
        args: list[str] | None = None,
        env: dict[str, str] | None = None,
        description: str | None = None,
        **kwargs: Any,
    ) -> ServerModel:
        return cls(
            name,
            ServerType.STDIO,
            command=command,
            args=args,
            env=env,
            description=description,
            **kwargs,
        )

    @classmethod
    def sse(cls, name: str, url: str, description: str | None = None, **kwargs: Any) -> ServerModel:
        return cls(name, ServerType.SSE, url=url, description=description, **kwargs)

    # Identity and connection settings

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value
        self._touch()

    @property
    def display_name(self) -> str:
        return self._display_name

    @display_name.setter
    def display_name(self, value: str) -> None:
        self._display_name = value
        self._touch()

    @property
    def description(self) -> str | None:
        return self._description

    @description.setter
    def description(self, value: str | None) -> None:
        self._description = value
        self._touch()

    @property
    def type(self) -> ServerType:
        return self._type

    @property
    def command(self) -> str | None:
        return self._command

    @command.setter
    def command(self, value: str | None) -> None:
        self._command = value
        self._touch()

    @property
    def args(self) -> list[str] | None:
        return list(self._args) if self._args is not None else None

    @args.setter
    def args(self, value: list[str] | None) -> None:
        self._args = list(value) if value is not None else None
        self._touch()

    @property
    def env(self) -> dict[str, str] | None:
        return dict(self._env) if self._env is not None else None

    @env.setter
    def env(self, value: dict[str, str] | None) -> None:
        self._env = dict(value) if value is not None else None
        self._touch()

    @property
    def url(self) -> str | None:
        return self._url

    @url.setter
    def url(self, value: str | None) -> None:
        self._url = value
        self._touch()

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self._metadata)

    def set_metadata(self, key: str, value: Any) -> None:
        if not ContentValidator.validate_metadata({key: value}):
            raise ValidationError(
                "Invalid metadata", [f"value for {key!r} is not JSON-serializable"]
            )
        self._metadata[key] = value
        self._touch()

    # State

    @property
    def status(self) -> ServerStatus:
        return self._status

    @property
    def is_connected(self) -> bool:
        return self._status is ServerStatus.CONNECTED

    @property
    def tools(self) -> tuple[MCPTool, ...]:
        return tuple(self._tools)

    @property
    def resources(self) -> tuple[MCPResource, ...]:
        return tuple(self._resources)

    @property
    def prompts(self) -> tuple[MCPPrompt, ...]:
        return tuple(self._prompts)

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def last_connected_at(self) -> datetime | None:
        return self._last_connected_at

    @property
    def store(self) -> JsonStore:
        if self._store is None:
            self._store = default_server_store()
        return self._store

    def _touch(self) -> None:
        self._updated_at = max(utcnow(), self._updated_at)
        self.notify_listeners()

    def update_status(self, status: ServerStatus) -> None:
        """Record a status reported by the transport. Unchanged status is a no-op."""
        if status is self._status:
            return
        previous = self._status
        self._status = status
        if status is ServerStatus.CONNECTED:
            self._last_connected_at = utcnow()
        log.info("Server %s: %s -> %s", self._name, previous.value, status.value)
        self._touch()

    def update_tools(self, tools: list[MCPTool]) -> None:
        self._tools = list(tools)
        log.debug("Server %s now has %d tools", self._name, len(self._tools))
        self._touch()

    def update_resources(self, resources: list[MCPResource]) -> None:
        self._resources = list(resources)
        log.debug("Server %s now has %d resources", self._name, len(self._resources))
        self._touch()

    def update_prompts(self, prompts: list[MCPPrompt]) -> None:
        self._prompts = list(prompts)
        log.debug("Server %s now has %d prompts", self._name, len(self._prompts))
        self._touch()

    @property
    def connection_config(self) -> dict[str, Any]:
        """Parameters the transport layer needs to connect."""
        if self._type is ServerType.STDIO:
            return {
                "type": ServerType.STDIO.value,
                "command": self._command,
                "args": list(self._args or []),
                "env": dict(self._env or {}),
            }
        return {"type": ServerType.SSE.value, "url": self._url}

    @property
    def capability_counts(self) -> dict[str, int]:
        return {
            "tools": len(self._tools),
            "resources": len(self._resources),
            "prompts": len(self._prompts),
        }

    def validate(self) -> bool:
        """Check type-specific connection requirements.

        Raises:
            ValidationError: Listing every violation found.
        """
        errors: list[str] = []

        if not is_safe_id(self._id):
            errors.append(f"Server ID is not a valid file name: {self._id!r}")
        if not self._name.strip():
            errors.append("Server name cannot be empty")
        if not self._display_name.strip():
            errors.append("Display name cannot be empty")

        if self._type is ServerType.STDIO:
            if not self._command or not self._command.strip():
                errors.append("STDIO servers require a command")
        elif not self._url or not self._url.strip():
            errors.append("SSE servers require a URL")
        else:
            try:
                parsed = urlparse(self._url.strip())
                valid = bool(parsed.scheme and parsed.netloc)
            except ValueError:
                valid = False
            if not valid:
                errors.append(f"Invalid URL format: {self._url}")

        if not ContentValidator.validate_metadata(self._metadata):
            errors.append("Metadata must be JSON-serializable")

        if errors:
            log.warning("Validation failed for server %s: %s", self._name, ", ".join(errors))
            raise ValidationError(f"Invalid MCP server {self._name!r}", errors)
        return True

    # Persistence

    async def save(self) -> Path:
        """Validate and write this server's JSON file.

        Raises:
            ValidationError: If validation fails. Nothing is written.
            PersistenceError: If the write fails.
        """
        self.validate()
        self._updated_at = max(utcnow(), self._updated_at)
        path = await self.store.write(self._id, self.to_dict())
        log.info("Saved MCP server %s", self._name)
        self.notify_listeners()
        return path

    async def delete(self) -> None:
        """Remove this server's JSON file. A missing file is not an error."""
        if await self.store.delete(self._id):
            log.info("Deleted MCP server %s", self._name)
        self.notify_listeners()

    @classmethod
    async def load(cls, path: Path | str) -> ServerModel:
        """Load a server from its JSON file.

        Raises:
            PersistenceError: If the file can't be read.
            ValidationError: If the file content is malformed.
        """
        path = Path(path)
        try:
            data = await asyncio.to_thread(read_json, path)
        except (OSError, ValueError) as e:
            raise PersistenceError("read", path, str(e)) from e
        server = cls.from_dict(data)
        server._store = JsonStore(path.parent)
        return server

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self._id,
            "name": self._name,
            "displayName": self._display_name,
            "description": self._description,
            "type": self._type.value,
            "status": self._status.value,
            "command": self._command,
            "args": list(self._args) if self._args is not None else None,
            "env": dict(self._env) if self._env is not None else None,
            "url": self._url,
            "availableTools": [t.to_dict() for t in self._tools],
            "availableResources": [r.to_dict() for r in self._resources],
            "availablePrompts": [p.to_dict() for p in self._prompts],
            "createdAt": self._created_at.isoformat(),
            "updatedAt": self._updated_at.isoformat(),
            "lastConnectedAt": (
                self._last_connected_at.isoformat() if self._last_connected_at else None
            ),
            "metadata": dict(self._metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], store: JsonStore | None = None) -> ServerModel:
        """Build a server from its JSON form.

        Raises:
            ValidationError: If the data is malformed.
        """
        record = decode(ServerRecord, data, "MCP server")
        return cls(
            record.name,
            record.type,
            id=record.id,
            display_name=record.display_name,
            description=record.description,
            status=record.status,
            command=record.command,
            args=record.args,
            env=record.env,
            url=record.url,
            tools=record.available_tools,
            resources=record.available_resources,
            prompts=record.available_prompts,
            created_at=record.created_at,
            updated_at=record.updated_at,
            last_connected_at=record.last_connected_at,
            metadata=record.metadata,
            store=store,
        )

    def __repr__(self) -> str:
        return (
            f"ServerModel(id={self._id!r}, name={self._name!r}, "
            f"type={self._type.value!r}, status={self._status.value!r})"
        )
