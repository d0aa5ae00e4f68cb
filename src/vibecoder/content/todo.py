"""Task items with completion, due dates, and tags."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from vibecoder.clock import ensure_utc, optional_utc, utcnow
from vibecoder.content.base import ContentItem
from vibecoder.content.schema import TodoItemRecord
from vibecoder.content.types import ContentType
from vibecoder.errors import ValidationError


def _clean_tag(tag: str) -> str:
    cleaned = tag.strip()
    if not cleaned:
        raise ValidationError("Invalid tag", ["tag must not be empty"])
    return cleaned


class TodoItem(ContentItem):
    """A task owned by an agent.

    completed_at is set exactly when the item is completed and cleared
    when it is reopened. Tags are trimmed, case-sensitive, and unique.
    """

    content_type = ContentType.TODO
    _record_type = TodoItemRecord

    def __init__(
        self,
        content: str,
        *,
        is_completed: bool = False,
        due_date: datetime | None = None,
        completed_at: datetime | None = None,
        tags: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(content, **kwargs)
        self._is_completed = is_completed
        self._due_date = optional_utc(due_date)
        if is_completed:
            self._completed_at = ensure_utc(completed_at) if completed_at else self.updated_at
        else:
            self._completed_at = None
        self._tags: list[str] = []
        for tag in tags or []:
            cleaned = _clean_tag(tag)
            if cleaned not in self._tags:
                self._tags.append(cleaned)

    @property
    def is_completed(self) -> bool:
        return self._is_completed

    @property
    def due_date(self) -> datetime | None:
        return self._due_date

    @property
    def completed_at(self) -> datetime | None:
        return self._completed_at

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(self._tags)

    def mark_as_completed(self) -> None:
        if self._is_completed:
            return
        self._is_completed = True
        self._completed_at = utcnow()
        self._touch()

    def mark_as_incomplete(self) -> None:
        if not self._is_completed:
            return
        self._is_completed = False
        self._completed_at = None
        self._touch()

    def set_due_date(self, due_date: datetime | None) -> None:
        self._due_date = optional_utc(due_date)
        self._touch()

    def add_tag(self, tag: str) -> None:
        """Add a tag. Adding an existing tag is a no-op.

        Raises:
            ValidationError: If the tag is blank.
        """
        cleaned = _clean_tag(tag)
        if cleaned in self._tags:
            return
        self._tags.append(cleaned)
        self._touch()

    def remove_tag(self, tag: str) -> None:
        cleaned = tag.strip()
        if cleaned not in self._tags:
            return
        self._tags.remove(cleaned)
        self._touch()

    def is_overdue(self, now: datetime | None = None) -> bool:
        if self._due_date is None or self._is_completed:
            return False
        return self._due_date < (ensure_utc(now) if now else utcnow())

    def time_until_due(self, now: datetime | None = None) -> timedelta | None:
        """Time left before the due date, or None if unset or already passed."""
        if self._due_date is None:
            return None
        remaining = self._due_date - (ensure_utc(now) if now else utcnow())
        if remaining <= timedelta(0):
            return None
        return remaining

    def validate(self) -> bool:
        return super().validate() and (self._is_completed == (self._completed_at is not None))

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "isCompleted": self._is_completed,
                "dueDate": self._due_date.isoformat() if self._due_date else None,
                "completedAt": self._completed_at.isoformat() if self._completed_at else None,
                "tags": list(self._tags),
            }
        )
        return data

    @classmethod
    def _from_record(cls, record: TodoItemRecord) -> TodoItem:
        return cls(
            record.content,
            is_completed=record.is_completed,
            due_date=record.due_date,
            completed_at=record.completed_at,
            tags=record.tags,
            **cls._base_kwargs(record),
        )
