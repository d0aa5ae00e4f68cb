"""Free-text notepad, one per agent."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from vibecoder.clock import ensure_utc, utcnow
from vibecoder.content.schema import NotepadRecord
from vibecoder.observable import ChangeNotifier
from vibecoder.records import decode

DEFAULT_NOTEPAD_PREVIEW_LINES = 10


class NotepadContent(ChangeNotifier):
    """A single text blob with lazily computed statistics.

    Word, line, and character counts are computed on first access and
    cached until the next mutation.
    """

    def __init__(
        self,
        agent_id: str,
        content: str = "",
        *,
        id: str | None = None,
        created_at: datetime | None = None,
        last_modified: datetime | None = None,
    ) -> None:
        super().__init__()
        self._id = id or str(uuid.uuid4())
        self._agent_id = agent_id
        self._content = content
        self._created_at = ensure_utc(created_at) if created_at else utcnow()
        modified = ensure_utc(last_modified) if last_modified else self._created_at
        self._last_modified = max(modified, self._created_at)
        self._word_count: int | None = None
        self._line_count: int | None = None
        self._character_count: int | None = None

    @property
    def id(self) -> str:
        return self._id

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def content(self) -> str:
        return self._content

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def last_modified(self) -> datetime:
        return self._last_modified

    @property
    def is_empty(self) -> bool:
        return not self._content

    @property
    def word_count(self) -> int:
        if self._word_count is None:
            self._word_count = len(self._content.split())
        return self._word_count

    @property
    def line_count(self) -> int:
        if self._line_count is None:
            self._line_count = len(self._content.split("\n")) if self._content else 1
        return self._line_count

    @property
    def character_count(self) -> int:
        if self._character_count is None:
            self._character_count = len(self._content)
        return self._character_count

    def _changed(self) -> None:
        self._word_count = None
        self._line_count = None
        self._character_count = None
        self._last_modified = max(utcnow(), self._last_modified)
        self.notify_listeners()

    def update_content(self, text: str) -> None:
        self._content = text
        self._changed()

    def append_content(self, text: str) -> None:
        self._content += text
        self._changed()

    def prepend_content(self, text: str) -> None:
        self._content = text + self._content
        self._changed()

    def clear_content(self) -> None:
        self._content = ""
        self._changed()

    def get_content_lines(self) -> list[str]:
        if not self._content:
            return [""]
        return self._content.split("\n")

    def get_content_preview(self, max_lines: int = DEFAULT_NOTEPAD_PREVIEW_LINES) -> str:
        lines = self.get_content_lines()
        if len(lines) <= max_lines:
            return self._content
        return "\n".join(lines[:max_lines])

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self._id,
            "agentId": self._agent_id,
            "content": self._content,
            "createdAt": self._created_at.isoformat(),
            "lastModified": self._last_modified.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NotepadContent:
        record = decode(NotepadRecord, data, "notepad")
        return cls(
            record.agent_id,
            record.content,
            id=record.id,
            created_at=record.created_at,
            last_modified=record.last_modified,
        )
