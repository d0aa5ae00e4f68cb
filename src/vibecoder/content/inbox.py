"""Inbound messages delivered to an agent."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from vibecoder.clock import ensure_utc
from vibecoder.content.base import ContentItem
from vibecoder.content.schema import InboxItemRecord
from vibecoder.content.types import ContentType, Priority


class InboxItem(ContentItem):
    """A message in an agent's inbox.

    Inbox items are never completed; they are read, re-prioritized, or
    removed by the owning collection.
    """

    content_type = ContentType.INBOX
    _record_type = InboxItemRecord

    def __init__(
        self,
        content: str,
        *,
        sender: str | None = None,
        is_read: bool = False,
        date_received: datetime | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(content, **kwargs)
        self._sender = sender
        self._is_read = is_read
        self._date_received = ensure_utc(date_received) if date_received else self.created_at

    @property
    def sender(self) -> str | None:
        return self._sender

    @property
    def is_read(self) -> bool:
        return self._is_read

    @property
    def date_received(self) -> datetime:
        return self._date_received

    def mark_as_read(self) -> None:
        if self._is_read:
            return
        self._is_read = True
        self._touch()

    def mark_as_unread(self) -> None:
        if not self._is_read:
            return
        self._is_read = False
        self._touch()

    def set_priority(self, priority: Priority) -> None:
        self.update_priority(priority)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "isRead": self._is_read,
                "sender": self._sender,
                "dateReceived": self._date_received.isoformat(),
            }
        )
        return data

    @classmethod
    def _from_record(cls, record: InboxItemRecord) -> InboxItem:
        return cls(
            record.content,
            sender=record.sender,
            is_read=record.is_read,
            date_received=record.date_received,
            **cls._base_kwargs(record),
        )
