"""Per-agent aggregation of inbox, todo, and notepad content."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from vibecoder.content.inbox import InboxItem
from vibecoder.content.notepad import NotepadContent
from vibecoder.content.schema import ContentCollectionRecord
from vibecoder.content.todo import TodoItem
from vibecoder.content.types import Priority
from vibecoder.errors import NotFoundError, ValidationError
from vibecoder.logging import get_logger
from vibecoder.observable import ChangeNotifier, Subscription
from vibecoder.records import decode

log = get_logger("content")


class ContentCollection(ChangeNotifier):
    """All MCP content belonging to one agent.

    The collection subscribes to each child item and to the notepad and
    re-broadcasts their changes as its own. Item lists are exposed as
    tuples; add and remove only through the collection's methods.
    """

    def __init__(self, agent_id: str, notepad: NotepadContent | None = None) -> None:
        super().__init__()
        self._agent_id = agent_id
        self._notepad = notepad or NotepadContent(agent_id)
        self._notepad_subscription = self._notepad.subscribe(self.notify_listeners)
        self._inbox: list[InboxItem] = []
        self._todos: list[TodoItem] = []
        self._item_subscriptions: dict[str, Subscription] = {}

    @property
    def agent_id(self) -> str:
        return self._agent_id

    @property
    def notepad(self) -> NotepadContent:
        return self._notepad

    @property
    def inbox_items(self) -> tuple[InboxItem, ...]:
        return tuple(self._inbox)

    @property
    def todo_items(self) -> tuple[TodoItem, ...]:
        return tuple(self._todos)

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self._inbox if not item.is_read)

    @property
    def pending_count(self) -> int:
        return sum(1 for item in self._todos if not item.is_completed)

    def _attach(self, key: str, item: InboxItem | TodoItem) -> None:
        self._item_subscriptions[key] = item.subscribe(self.notify_listeners)

    def _detach(self, key: str) -> None:
        subscription = self._item_subscriptions.pop(key, None)
        if subscription is not None:
            subscription.unsubscribe()

    # Inbox

    def add_inbox_item(self, item: InboxItem) -> None:
        """Append an inbox item.

        Raises:
            ValidationError: If an inbox item with the same id is present.
        """
        if self.get_inbox_item(item.id) is not None:
            raise ValidationError("Duplicate inbox item", [f"inbox item already present: {item.id}"])
        self._inbox.append(item)
        self._attach(f"inbox:{item.id}", item)
        self.notify_listeners()

    def remove_inbox_item(self, item_id: str) -> None:
        """Remove an inbox item. Unknown ids are ignored."""
        for index, item in enumerate(self._inbox):
            if item.id == item_id:
                self._detach(f"inbox:{item_id}")
                del self._inbox[index]
                self.notify_listeners()
                return
        log.debug("Inbox item %s not in collection for %s", item_id, self._agent_id)

    def get_inbox_item(self, item_id: str) -> InboxItem | None:
        return next((item for item in self._inbox if item.id == item_id), None)

    def get_unread_inbox(self) -> list[InboxItem]:
        return [item for item in self._inbox if not item.is_read]

    # Todos

    def add_todo_item(self, item: TodoItem) -> None:
        """Append a todo item.

        Raises:
            ValidationError: If a todo item with the same id is present.
        """
        if self.get_todo_item(item.id) is not None:
            raise ValidationError("Duplicate todo item", [f"todo item already present: {item.id}"])
        self._todos.append(item)
        self._attach(f"todo:{item.id}", item)
        self.notify_listeners()

    def remove_todo_item(self, item_id: str) -> None:
        """Remove a todo item. Unknown ids are ignored."""
        for index, item in enumerate(self._todos):
            if item.id == item_id:
                self._detach(f"todo:{item_id}")
                del self._todos[index]
                self.notify_listeners()
                return
        log.debug("Todo item %s not in collection for %s", item_id, self._agent_id)

    def get_todo_item(self, item_id: str) -> TodoItem | None:
        return next((item for item in self._todos if item.id == item_id), None)

    def reorder_todo_items(self, ordered_ids: list[str]) -> None:
        """Reorder todos to follow ordered_ids.

        Todos missing from ordered_ids keep their relative order after the
        listed ones.

        Raises:
            NotFoundError: If an id in ordered_ids is not in the collection.
        """
        by_id = {item.id: item for item in self._todos}
        for item_id in ordered_ids:
            if item_id not in by_id:
                raise NotFoundError("Todo item", item_id)

        reordered: list[TodoItem] = []
        for item_id in ordered_ids:
            item = by_id[item_id]
            if item not in reordered:
                reordered.append(item)
        reordered.extend(item for item in self._todos if item not in reordered)
        self._todos = reordered
        self.notify_listeners()

    def get_pending_todos(self) -> list[TodoItem]:
        return [item for item in self._todos if not item.is_completed]

    def get_overdue_todos(self, now: datetime | None = None) -> list[TodoItem]:
        return [item for item in self._todos if item.is_overdue(now)]

    def get_todos_by_priority(self, priority: Priority) -> list[TodoItem]:
        return [item for item in self._todos if item.priority is priority]

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        return {
            "agentId": self._agent_id,
            "notepad": self._notepad.to_dict(),
            "inboxItems": [item.to_dict() for item in self._inbox],
            "todoItems": [item.to_dict() for item in self._todos],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentCollection:
        """Rebuild a collection from its JSON form.

        Raises:
            ValidationError: If the collection or any item is malformed.
        """
        record = decode(ContentCollectionRecord, data, "content collection")
        notepad = NotepadContent.from_dict(record.notepad) if record.notepad else None
        collection = cls(record.agent_id, notepad)
        for item_data in record.inbox_items:
            collection.add_inbox_item(InboxItem.from_dict(item_data))
        for item_data in record.todo_items:
            collection.add_todo_item(TodoItem.from_dict(item_data))
        return collection

    def dispose(self) -> None:
        """Unsubscribe from every child, then drop listeners and items."""
        for subscription in self._item_subscriptions.values():
            subscription.unsubscribe()
        self._item_subscriptions.clear()
        self._notepad_subscription.unsubscribe()
        self._inbox.clear()
        self._todos.clear()
        super().dispose()
