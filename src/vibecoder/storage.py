"""JSON file persistence.

Each entity owns exactly one file:
  <directory>/<entity-id>.json

Writes are atomic (temp file + os.replace) and serialized per entity id,
both within the process (asyncio.Lock) and across processes (FileLock on
<file>.lock). Blocking file I/O runs in a worker thread so callers on the
event loop are not blocked.
"""

from __future__ import annotations

import asyncio
import json
import os
import shutil
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from vibecoder.errors import PersistenceError, ValidationError
from vibecoder.logging import get_logger

log = get_logger("storage")

JSON_INDENT = 2
TEMP_SUFFIX = ".tmp"
LOCK_SUFFIX = ".lock"
BACKUP_SUFFIX = ".backup"


def dump_json(data: dict[str, Any]) -> str:
    """Serialize to the on-disk format: UTF-8 JSON, 2-space indent."""
    return json.dumps(data, indent=JSON_INDENT, ensure_ascii=False)


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write JSON to path atomically, creating parent directories.

    Raises:
        TypeError: If data is not JSON-serializable. Nothing is written.
        OSError: On any filesystem failure. The temp file is removed.
    """
    text = dump_json(data)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(path.name + TEMP_SUFFIX)
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(temp_path, path)
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise


def read_json(path: Path) -> dict[str, Any]:
    """Read a JSON object from path.

    Raises:
        OSError: If the file can't be read.
        ValueError: If the file is not a JSON object.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


def is_safe_id(entity_id: str) -> bool:
    """True if entity_id can be used as a file name inside a store directory."""
    return bool(entity_id) and not (
        "/" in entity_id or "\\" in entity_id or entity_id in (".", "..")
    )


def backup_path(path: Path) -> Path:
    return path.with_name(path.name + BACKUP_SUFFIX)


def write_json_with_backup(path: Path, data: dict[str, Any]) -> None:
    """Write JSON keeping a backup of the previous file until the write succeeds.

    The current file is copied to <path>.backup before overwriting and the
    backup is removed after a successful write.
    """
    backup = backup_path(path)
    if path.exists():
        shutil.copy2(path, backup)
    write_json_atomic(path, data)
    if backup.exists():
        try:
            backup.unlink()
        except OSError as e:
            log.debug("Could not clean up backup %s: %s", backup, e)


class JsonStore:
    """A directory of one-JSON-file-per-entity records.

    Entities sharing a directory should share a store so that saves of the
    same id are queued on the same lock.
    """

    def __init__(self, directory: Path | str, *, lock_timeout: float = 10.0) -> None:
        self._directory = Path(directory)
        self._lock_timeout = lock_timeout
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, entity_id: str) -> Path:
        """Map an entity id to its file.

        Raises:
            ValidationError: If the id is empty or not a plain file name.
        """
        if not is_safe_id(entity_id):
            raise ValidationError(
                "Invalid entity id", [f"not usable as a file name: {entity_id!r}"]
            )
        return self._directory / f"{entity_id}.json"

    def exists(self, entity_id: str) -> bool:
        return self.path_for(entity_id).exists()

    def _lock_for(self, entity_id: str) -> asyncio.Lock:
        lock = self._locks.get(entity_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[entity_id] = lock
        return lock

    def _file_lock(self, path: Path) -> FileLock:
        return FileLock(str(path) + LOCK_SUFFIX, timeout=self._lock_timeout)

    def _write_locked(self, path: Path, data: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._file_lock(path):
            write_json_atomic(path, data)

    def _delete_locked(self, path: Path) -> bool:
        if not path.parent.exists():
            return False
        with self._file_lock(path):
            if path.exists():
                path.unlink()
                return True
            return False

    async def write(self, entity_id: str, data: dict[str, Any]) -> Path:
        """Atomically write an entity file.

        Raises:
            PersistenceError: If the write fails.
        """
        path = self.path_for(entity_id)
        async with self._lock_for(entity_id):
            try:
                await asyncio.to_thread(self._write_locked, path, data)
            except (OSError, Timeout, TypeError, ValueError) as e:
                log.error("Failed to write %s: %s", path, e)
                raise PersistenceError("write", path, str(e)) from e
        log.debug("Wrote %s", path)
        return path

    async def read(self, entity_id: str) -> dict[str, Any] | None:
        """Read an entity file, or None if it doesn't exist.

        Raises:
            PersistenceError: If the file exists but can't be read or parsed.
        """
        path = self.path_for(entity_id)
        async with self._lock_for(entity_id):
            if not path.exists():
                return None
            try:
                return await asyncio.to_thread(read_json, path)
            except (OSError, ValueError) as e:
                raise PersistenceError("read", path, str(e)) from e

    async def delete(self, entity_id: str) -> bool:
        """Delete an entity file.

        Returns:
            True if a file was removed, False if it was already absent.

        Raises:
            PersistenceError: If the file exists but can't be removed.
        """
        path = self.path_for(entity_id)
        async with self._lock_for(entity_id):
            try:
                removed = await asyncio.to_thread(self._delete_locked, path)
            except (OSError, Timeout) as e:
                log.error("Failed to delete %s: %s", path, e)
                raise PersistenceError("delete", path, str(e)) from e
        if removed:
            log.debug("Deleted %s", path)
        return removed

    def list_ids(self) -> list[str]:
        """List entity ids with a file in the directory, sorted."""
        if not self._directory.exists():
            return []
        return sorted(p.stem for p in self._directory.glob("*.json") if p.is_file())

    async def read_all(self) -> dict[str, dict[str, Any]]:
        """Read every entity file. Unreadable files are logged and skipped."""
        records: dict[str, dict[str, Any]] = {}
        for entity_id in self.list_ids():
            try:
                data = await self.read(entity_id)
            except PersistenceError as e:
                log.warning("Skipping unreadable record: %s", e)
                continue
            if data is not None:
                records[entity_id] = data
        return records
