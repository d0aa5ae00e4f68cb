"""Reference-counted bookkeeping for shared stdio server processes.

Several configured servers can run the same command with the same
arguments and environment. They share one process; the table tracks who
holds it so the transport layer knows when to start and when to stop it.
The table never spawns or kills anything itself.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from vibecoder.logging import get_logger

log = get_logger("mcp.processes")


def process_key(
    command: str, args: list[str] | None = None, env: dict[str, str] | None = None
) -> str:
    """Identity of a process: command, args, and env encoded as compact JSON.

    Env order does not matter. Args keep their order and their boundaries,
    so ["x|y"] and ["x", "y"] name different processes.
    """
    env_items = [[k, v] for k, v in sorted((env or {}).items())]
    return json.dumps([command, list(args or []), env_items], separators=(",", ":"))


@dataclass
class ProcessLease:
    """Result of acquire(); is_new tells the caller to start the process."""

    process_key: str
    server_name: str
    is_new: bool


@dataclass
class ProcessInfo:
    process_key: str
    command: str
    args: list[str] | None
    reference_count: int
    referencing_servers: list[str]
    pid: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "processKey": self.process_key,
            "pid": self.pid,
            "command": self.command,
            "args": self.args,
            "referenceCount": self.reference_count,
            "referencingServers": list(self.referencing_servers),
        }


@dataclass
class ProcessStats:
    processes: list[ProcessInfo] = field(default_factory=list)

    @property
    def total_processes(self) -> int:
        return len(self.processes)

    @property
    def shared_processes(self) -> list[ProcessInfo]:
        return [p for p in self.processes if p.reference_count > 1]

    @property
    def single_use_processes(self) -> list[ProcessInfo]:
        return [p for p in self.processes if p.reference_count == 1]

    @property
    def total_references(self) -> int:
        return sum(p.reference_count for p in self.processes)

    def get_by_pid(self, pid: int) -> ProcessInfo | None:
        return next((p for p in self.processes if p.pid == pid), None)

    def get_by_server(self, server_name: str) -> list[ProcessInfo]:
        return [p for p in self.processes if server_name in p.referencing_servers]

    def to_dict(self) -> dict[str, Any]:
        return {
            "activeProcesses": [p.to_dict() for p in self.processes],
            "totalProcesses": self.total_processes,
            "uniqueProcesses": len(self.processes),
            "duplicateShares": len(self.shared_processes),
        }


@dataclass
class _Entry:
    command: str
    args: list[str] | None
    servers: list[str] = field(default_factory=list)
    pid: int | None = None


class ProcessTable:
    """Shared-process registry keyed by process_key()."""

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def acquire(
        self,
        server_name: str,
        command: str,
        args: list[str] | None = None,
        env: dict[str, str] | None = None,
    ) -> ProcessLease:
        """Take a reference on the process for this command line."""
        key = process_key(command, args, env)
        entry = self._entries.get(key)
        if entry is not None:
            entry.servers.append(server_name)
            log.debug("Reusing process %s for %s (refs: %d)", key, server_name, len(entry.servers))
            return ProcessLease(key, server_name, is_new=False)

        self._entries[key] = _Entry(
            command=command,
            args=list(args) if args is not None else None,
            servers=[server_name],
        )
        log.info("Registered process %s for %s", key, server_name)
        return ProcessLease(key, server_name, is_new=True)

    def set_pid(self, key: str, pid: int) -> None:
        entry = self._entries.get(key)
        if entry is None:
            raise KeyError(key)
        entry.pid = pid

    def release(self, key: str, server_name: str) -> int:
        """Drop one reference held by server_name.

        Returns:
            Remaining references. 0 means the caller should stop the process;
            the entry has already been removed.
        """
        entry = self._entries.get(key)
        if entry is None:
            log.warning("Release ignored, process %s not found", key)
            return 0
        if server_name in entry.servers:
            entry.servers.remove(server_name)
        remaining = len(entry.servers)
        if remaining == 0:
            del self._entries[key]
            log.info("Last reference released for %s", key)
        else:
            log.debug("Process %s still shared by %d servers", key, remaining)
        return remaining

    def stats(self) -> ProcessStats:
        return ProcessStats(
            [
                ProcessInfo(
                    process_key=key,
                    command=entry.command,
                    args=list(entry.args) if entry.args is not None else None,
                    reference_count=len(entry.servers),
                    referencing_servers=sorted(set(entry.servers)),
                    pid=entry.pid,
                )
                for key, entry in self._entries.items()
            ]
        )

    def clear(self) -> list[str]:
        """Forget every process, returning their keys."""
        keys = list(self._entries)
        self._entries.clear()
        return keys
