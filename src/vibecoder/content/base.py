"""Base entity for per-agent MCP content items."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, ClassVar, TypeVar

from vibecoder.clock import ensure_utc, utcnow
from vibecoder.content.schema import ContentItemRecord
from vibecoder.content.types import ContentType, Priority
from vibecoder.content.validator import ContentValidator
from vibecoder.errors import InvalidContentError, ValidationError
from vibecoder.observable import ChangeNotifier
from vibecoder.records import decode

ItemT = TypeVar("ItemT", bound="ContentItem")

DEFAULT_PREVIEW_LINES = 5


def _clean_content(text: str) -> str:
    sanitized = ContentValidator.sanitize_content(text)
    if not ContentValidator.validate_content(sanitized):
        raise InvalidContentError(
            "Invalid content",
            ["content must be non-empty, at most "
             f"{ContentValidator.max_content_length} characters, and free of script patterns"],
        )
    return sanitized


def _check_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    if not ContentValidator.validate_metadata(metadata):
        raise ValidationError("Invalid metadata", ["metadata values must be JSON-serializable"])
    return metadata


class ContentItem(ChangeNotifier):
    """A unit of inbox or todo content owned by one agent's collection.

    Every mutation sanitizes its input where applicable, bumps updated_at,
    and notifies listeners before returning. updated_at never decreases
    and is never earlier than created_at.
    """

    content_type: ClassVar[ContentType]
    _record_type: ClassVar[type[ContentItemRecord]] = ContentItemRecord

    def __init__(
        self,
        content: str,
        *,
        id: str | None = None,
        priority: Priority = Priority.MEDIUM,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__()
        self._id = id or str(uuid.uuid4())
        self._content = _clean_content(content)
        self._priority = priority
        self._created_at = ensure_utc(created_at) if created_at else utcnow()
        updated = ensure_utc(updated_at) if updated_at else self._created_at
        self._updated_at = max(updated, self._created_at)
        self._metadata = _check_metadata(dict(metadata or {}))

    @property
    def id(self) -> str:
        return self._id

    @property
    def content(self) -> str:
        return self._content

    @property
    def priority(self) -> Priority:
        return self._priority

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self._metadata)

    def _touch(self) -> None:
        self._updated_at = max(utcnow(), self._updated_at)
        self.notify_listeners()

    def update_content(self, text: str) -> None:
        """Replace the content.

        Raises:
            InvalidContentError: If the text is empty or unsafe after sanitizing.
        """
        self._content = _clean_content(text)
        self._touch()

    def update_priority(self, priority: Priority) -> None:
        self._priority = priority
        self._touch()

    def set_metadata(self, key: str, value: Any) -> None:
        _check_metadata({key: value})
        self._metadata[key] = value
        self._touch()

    def remove_metadata(self, key: str) -> None:
        self._metadata.pop(key, None)
        self._touch()

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self._metadata.get(key, default)

    def validate(self) -> bool:
        """Structural self-check used before persisting."""
        return (
            ContentValidator.validate_id(self._id)
            and ContentValidator.validate_content(self._content)
            and self._updated_at >= self._created_at
            and ContentValidator.validate_metadata(self._metadata)
        )

    def preview_lines(self, max_lines: int = DEFAULT_PREVIEW_LINES) -> list[str]:
        return self._content.split("\n")[:max_lines]

    def get_preview(self, max_lines: int = DEFAULT_PREVIEW_LINES) -> str:
        """First max_lines whole lines of the content, joined by newlines."""
        lines = self._content.split("\n")
        if len(lines) <= max_lines:
            return self._content
        return "\n".join(lines[:max_lines])

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self._id,
            "content": self._content,
            "contentType": self.content_type.value,
            "priority": self._priority.value,
            "createdAt": self._created_at.isoformat(),
            "updatedAt": self._updated_at.isoformat(),
            "metadata": dict(self._metadata),
        }

    @classmethod
    def from_dict(cls: type[ItemT], data: dict[str, Any]) -> ItemT:
        """Build an item from its JSON form.

        Raises:
            ValidationError: If the data is malformed or of another content type.
        """
        record = decode(cls._record_type, data, cls.content_type.value)
        if record.content_type is not cls.content_type:
            raise ValidationError(
                f"Invalid {cls.content_type.value} data",
                [f"contentType: expected {cls.content_type.value!r}, "
                 f"got {record.content_type.value!r}"],
            )
        return cls._from_record(record)

    @classmethod
    def _from_record(cls: type[ItemT], record: Any) -> ItemT:
        raise NotImplementedError

    @staticmethod
    def _base_kwargs(record: ContentItemRecord) -> dict[str, Any]:
        return {
            "id": record.id,
            "priority": Priority.parse(record.priority),
            "created_at": record.created_at,
            "updated_at": record.updated_at,
            "metadata": record.metadata,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, priority={self._priority.value!r})"
