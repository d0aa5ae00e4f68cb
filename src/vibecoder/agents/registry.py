"""Registry of the agents configured in this workspace."""

from __future__ import annotations

from typing import Any

from vibecoder.agents.model import AgentModel, RuntimeFactory, default_agent_store
from vibecoder.config import get_config
from vibecoder.config.schema import AgentDefaultsConfig
from vibecoder.errors import NotFoundError, ValidationError
from vibecoder.logging import get_logger
from vibecoder.observable import ChangeNotifier, Subscription
from vibecoder.storage import JsonStore

log = get_logger("agents")


class AgentRegistry(ChangeNotifier):
    """Holds AgentModels in insertion order and re-broadcasts their changes.

    Agents created or loaded through the registry share its store, so
    saves of the same agent queue on one lock.
    """

    def __init__(
        self,
        store: JsonStore | None = None,
        *,
        defaults: AgentDefaultsConfig | None = None,
        runtime_factory: RuntimeFactory | None = None,
    ) -> None:
        super().__init__()
        self._store = store
        self._defaults = defaults
        self._runtime_factory = runtime_factory
        self._agents: dict[str, AgentModel] = {}
        self._agent_subscriptions: dict[str, Subscription] = {}

    @property
    def store(self) -> JsonStore:
        if self._store is None:
            self._store = default_agent_store()
        return self._store

    @property
    def defaults(self) -> AgentDefaultsConfig:
        if self._defaults is None:
            self._defaults = get_config().agents
        return self._defaults

    @property
    def agents(self) -> tuple[AgentModel, ...]:
        return tuple(self._agents.values())

    @property
    def active_agents(self) -> list[AgentModel]:
        return [a for a in self._agents.values() if a.is_active]

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def add(self, agent: AgentModel) -> None:
        """Register an agent.

        Raises:
            ValidationError: If an agent with the same id is registered.
        """
        if agent.id in self._agents:
            raise ValidationError("Duplicate agent", [f"agent id already registered: {agent.id}"])
        self._agents[agent.id] = agent
        self._agent_subscriptions[agent.id] = agent.subscribe(self.notify_listeners)
        self.notify_listeners()

    def get_by_id(self, agent_id: str) -> AgentModel | None:
        return self._agents.get(agent_id)

    def get_by_name(self, name: str) -> AgentModel | None:
        return next((a for a in self._agents.values() if a.name == name), None)

    async def create_agent(
        self, name: str, system_prompt: str | None = None, **kwargs: Any
    ) -> AgentModel:
        """Create, save, and register a new agent.

        Unset behavior parameters come from the configured agent defaults.

        Raises:
            ValidationError: If the agent is invalid. Nothing is registered.
            PersistenceError: If the save fails. Nothing is registered.
        """
        defaults = self.defaults
        kwargs.setdefault("temperature", defaults.temperature)
        kwargs.setdefault("max_tokens", defaults.max_tokens)
        kwargs.setdefault("store", self.store)
        kwargs.setdefault("runtime_factory", self._runtime_factory)
        agent = AgentModel(
            name,
            system_prompt if system_prompt is not None else defaults.system_prompt,
            **kwargs,
        )
        await agent.save()
        self.add(agent)
        log.info("Created agent %s (%s)", agent.name, agent.id)
        return agent

    async def load_all(self) -> list[AgentModel]:
        """Load every agent file in the store.

        Malformed files are logged and skipped; agents already registered
        are left alone.
        """
        loaded: list[AgentModel] = []
        for agent_id, data in (await self.store.read_all()).items():
            try:
                agent = AgentModel.from_stored(data, self.store, self._runtime_factory)
            except ValidationError as e:
                log.warning("Skipping invalid agent file %s: %s", agent_id, e)
                continue
            if agent.id in self._agents:
                agent.dispose()
                continue
            self.add(agent)
            loaded.append(agent)
        log.info("Loaded %d agents", len(loaded))
        return loaded

    async def save_all(self) -> None:
        """Save every agent. The first failure propagates."""
        for agent in list(self._agents.values()):
            await agent.save()

    async def remove(self, agent_id: str, delete_file: bool = True) -> None:
        """Unregister and dispose an agent, optionally deleting its file.

        Raises:
            NotFoundError: If the id is not registered.
            PersistenceError: If deleting the file fails. The agent stays registered.
        """
        agent = self._agents.get(agent_id)
        if agent is None:
            raise NotFoundError("Agent", agent_id)
        if delete_file:
            await agent.delete()
        self._agent_subscriptions.pop(agent_id).unsubscribe()
        del self._agents[agent_id]
        agent.dispose()
        log.info("Removed agent %s", agent.name)
        self.notify_listeners()

    def dispose(self) -> None:
        for subscription in self._agent_subscriptions.values():
            subscription.unsubscribe()
        self._agent_subscriptions.clear()
        for agent in self._agents.values():
            agent.dispose()
        self._agents.clear()
        super().dispose()
