"""Registry of configured MCP servers and the tools they expose."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vibecoder.config.schema import MCPConfig
from vibecoder.errors import NotFoundError, ValidationError
from vibecoder.logging import get_logger
from vibecoder.mcp.server import ServerModel, default_server_store
from vibecoder.mcp.types import MCPPrompt, MCPResource, MCPTool, ServerStatus, ServerType
from vibecoder.observable import ChangeNotifier, Subscription
from vibecoder.storage import JsonStore

if TYPE_CHECKING:
    from vibecoder.agents.model import AgentModel

log = get_logger("mcp")


@dataclass(frozen=True)
class ToolInfo:
    """A tool offered by a connected server."""

    server_name: str
    name: str
    description: str
    tool: MCPTool

    @property
    def unique_id(self) -> str:
        return f"{self.server_name}:{self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "serverName": self.server_name,
            "name": self.name,
            "description": self.description,
            "uniqueId": self.unique_id,
        }


@dataclass(frozen=True)
class RegistrySummary:
    connected_count: int
    total_count: int
    tool_count: int


class ToolRegistry(ChangeNotifier):
    """Holds ServerModels keyed by id and re-broadcasts their changes."""

    def __init__(self, store: JsonStore | None = None) -> None:
        super().__init__()
        self._store = store
        self._servers: dict[str, ServerModel] = {}
        self._server_subscriptions: dict[str, Subscription] = {}

    @property
    def store(self) -> JsonStore:
        if self._store is None:
            self._store = default_server_store()
        return self._store

    @property
    def servers(self) -> tuple[ServerModel, ...]:
        return tuple(self._servers.values())

    def __len__(self) -> int:
        return len(self._servers)

    def add(self, server: ServerModel) -> None:
        """Register a server.

        Raises:
            ValidationError: If a server with the same id or name is registered.
        """
        if server.id in self._servers:
            raise ValidationError("Duplicate MCP server", [f"server id already registered: {server.id}"])
        if self.get_by_name(server.name) is not None:
            raise ValidationError(
                "Duplicate MCP server", [f"server name already registered: {server.name}"]
            )
        self._servers[server.id] = server
        self._server_subscriptions[server.id] = server.subscribe(self.notify_listeners)
        self.notify_listeners()

    def get(self, server_id: str) -> ServerModel | None:
        return self._servers.get(server_id)

    def get_by_name(self, name: str) -> ServerModel | None:
        return next((s for s in self._servers.values() if s.name == name), None)

    def get_by_status(self, status: ServerStatus) -> list[ServerModel]:
        return [s for s in self._servers.values() if s.status is status]

    def get_by_type(self, server_type: ServerType) -> list[ServerModel]:
        return [s for s in self._servers.values() if s.type is server_type]

    async def remove(self, server_id: str, delete_file: bool = True) -> None:
        """Unregister a server and optionally delete its file.

        Raises:
            NotFoundError: If the id is not registered.
            PersistenceError: If deleting the file fails.
        """
        server = self._servers.get(server_id)
        if server is None:
            raise NotFoundError("MCP server", server_id)
        if delete_file:
            await server.delete()
        self._server_subscriptions.pop(server_id).unsubscribe()
        del self._servers[server_id]
        self.notify_listeners()

    def import_config(self, config: MCPConfig) -> list[ServerModel]:
        """Create ServerModels for configured servers not yet registered.

        Entries with an unknown type are logged and skipped.

        Returns:
            The newly registered servers.
        """
        added: list[ServerModel] = []
        for entry in config.servers:
            if self.get_by_name(entry.name) is not None:
                continue
            try:
                server_type = ServerType(entry.type)
            except ValueError:
                log.warning("Skipping MCP server %s: unknown type %r", entry.name, entry.type)
                continue
            server = ServerModel(
                entry.name,
                server_type,
                display_name=entry.display_name,
                description=entry.description,
                command=entry.command,
                args=entry.args or None,
                env=entry.env or None,
                url=entry.url,
                store=self.store,
            )
            self.add(server)
            added.append(server)
        if added:
            log.info("Imported %d MCP servers from config", len(added))
        return added

    async def load_all(self) -> list[ServerModel]:
        """Load every server file in the store.

        Malformed files are logged and skipped.
        """
        loaded: list[ServerModel] = []
        for server_id, data in (await self.store.read_all()).items():
            try:
                server = ServerModel.from_dict(data, store=self.store)
            except ValidationError as e:
                log.warning("Skipping invalid MCP server file %s: %s", server_id, e)
                continue
            if server.id in self._servers or self.get_by_name(server.name) is not None:
                log.debug("MCP server %s already registered", server.name)
                continue
            self.add(server)
            loaded.append(server)
        log.info("Loaded %d MCP servers", len(loaded))
        return loaded

    async def save_all(self) -> None:
        for server in list(self._servers.values()):
            await server.save()

    def apply_connection(
        self,
        server_id: str,
        status: ServerStatus,
        tools: list[MCPTool] | None = None,
        resources: list[MCPResource] | None = None,
        prompts: list[MCPPrompt] | None = None,
    ) -> ServerModel:
        """Record a connection result reported by the transport layer.

        Capability lists that are None are left unchanged.

        Raises:
            NotFoundError: If the id is not registered.
        """
        server = self._servers.get(server_id)
        if server is None:
            raise NotFoundError("MCP server", server_id)
        if tools is not None:
            server.update_tools(tools)
        if resources is not None:
            server.update_resources(resources)
        if prompts is not None:
            server.update_prompts(prompts)
        server.update_status(status)
        return server

    def all_tools(self) -> list[ToolInfo]:
        """Tools from every connected server, in registration order."""
        return [
            ToolInfo(
                server_name=server.name,
                name=tool.name,
                description=tool.description or "No description",
                tool=tool,
            )
            for server in self._servers.values()
            if server.is_connected
            for tool in server.tools
        ]

    def find_server_for_tool(self, tool_name: str) -> str | None:
        for server in self._servers.values():
            if server.is_connected and any(t.name == tool_name for t in server.tools):
                return server.name
        return None

    def tools_for_agent(self, agent: AgentModel) -> list[ToolInfo]:
        """Connected tools the agent has not opted out of."""
        return agent.filter_enabled_tools(self.all_tools())

    def summary(self) -> RegistrySummary:
        return RegistrySummary(
            connected_count=len(self.get_by_status(ServerStatus.CONNECTED)),
            total_count=len(self._servers),
            tool_count=len(self.all_tools()),
        )

    def dispose(self) -> None:
        for subscription in self._server_subscriptions.values():
            subscription.unsubscribe()
        self._server_subscriptions.clear()
        super().dispose()
