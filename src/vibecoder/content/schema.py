"""Persisted record shapes for content items and collections."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from vibecoder.content.types import ContentType
from vibecoder.records import Record


class ContentItemRecord(Record):
    id: str
    content: str
    content_type: ContentType = Field(alias="contentType")
    priority: str | None = "medium"
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    metadata: dict[str, Any] = Field(default_factory=dict)


class InboxItemRecord(ContentItemRecord):
    is_read: bool = Field(default=False, alias="isRead")
    sender: str | None = None
    date_received: datetime | None = Field(default=None, alias="dateReceived")


class TodoItemRecord(ContentItemRecord):
    is_completed: bool = Field(default=False, alias="isCompleted")
    due_date: datetime | None = Field(default=None, alias="dueDate")
    completed_at: datetime | None = Field(default=None, alias="completedAt")
    tags: list[str] = Field(default_factory=list)


class NotepadRecord(Record):
    id: str
    agent_id: str = Field(alias="agentId")
    content: str = ""
    created_at: datetime = Field(alias="createdAt")
    last_modified: datetime = Field(alias="lastModified")


class ContentCollectionRecord(Record):
    agent_id: str = Field(alias="agentId")
    notepad: dict[str, Any] | None = None
    inbox_items: list[dict[str, Any]] = Field(default_factory=list, alias="inboxItems")
    todo_items: list[dict[str, Any]] = Field(default_factory=list, alias="todoItems")
