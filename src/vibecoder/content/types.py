"""Content classification enums."""

from __future__ import annotations

from enum import Enum


class ContentType(Enum):
    """Kind of MCP content an item holds."""

    INBOX = "inbox"
    TODO = "todo"
    NOTEPAD = "notepad"

    @classmethod
    def parse(cls, value: str) -> ContentType:
        """Parse a string tag. Unknown tags raise ValueError."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Invalid content type: {value!r}") from None


class Priority(Enum):
    """Priority of a content item, ordered low < medium < high < urgent."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def level(self) -> int:
        return _PRIORITY_LEVELS[self]

    def is_higher_than(self, other: Priority) -> bool:
        return self.level > other.level

    @classmethod
    def parse(cls, value: str | None) -> Priority:
        """Parse a string tag, falling back to MEDIUM for unknown values."""
        if value is None:
            return cls.MEDIUM
        try:
            return cls(value)
        except ValueError:
            return cls.MEDIUM


_PRIORITY_LEVELS = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.URGENT: 4,
}
