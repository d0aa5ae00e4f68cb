"""Per-agent MCP content: inbox items, todos, and the notepad."""

from vibecoder.content.base import ContentItem
from vibecoder.content.collection import ContentCollection
from vibecoder.content.inbox import InboxItem
from vibecoder.content.notepad import NotepadContent
from vibecoder.content.todo import TodoItem
from vibecoder.content.types import ContentType, Priority
from vibecoder.content.validator import ContentValidator

__all__ = [
    "ContentCollection",
    "ContentItem",
    "ContentType",
    "ContentValidator",
    "InboxItem",
    "NotepadContent",
    "Priority",
    "TodoItem",
]
