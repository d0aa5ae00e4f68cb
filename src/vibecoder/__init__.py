"""VibeCoder: reactive agent, MCP content, and server models with JSON persistence."""

__version__ = "0.1.0"

# Public API
from vibecoder.agents import (
    AgentModel,
    AgentProcessingStatus,
    AgentRegistry,
    AgentReply,
    AgentRuntime,
    ChatMessage,
    SendOptions,
)
from vibecoder.config import Config, get_config, load_config
from vibecoder.content import (
    ContentCollection,
    ContentItem,
    ContentType,
    ContentValidator,
    InboxItem,
    NotepadContent,
    Priority,
    TodoItem,
)
from vibecoder.errors import (
    InvalidContentError,
    NotFoundError,
    PersistenceError,
    RuntimeDelegationError,
    ValidationError,
    VibeCoderError,
)
from vibecoder.logging import get_logger, reset_logging, setup_logging
from vibecoder.mcp import (
    ProcessTable,
    ServerModel,
    ServerStatus,
    ServerType,
    ToolInfo,
    ToolRegistry,
)
from vibecoder.observable import ChangeNotifier, Subscription
from vibecoder.preferences import AppTheme, LayoutPreferencesModel, PanelLayout, WindowSize
from vibecoder.storage import JsonStore

__all__ = [
    # Agents
    "AgentModel",
    "AgentProcessingStatus",
    "AgentRegistry",
    "AgentReply",
    "AgentRuntime",
    "ChatMessage",
    "SendOptions",
    # Content
    "ContentCollection",
    "ContentItem",
    "ContentType",
    "ContentValidator",
    "InboxItem",
    "NotepadContent",
    "Priority",
    "TodoItem",
    # MCP
    "ProcessTable",
    "ServerModel",
    "ServerStatus",
    "ServerType",
    "ToolInfo",
    "ToolRegistry",
    # Preferences
    "AppTheme",
    "LayoutPreferencesModel",
    "PanelLayout",
    "WindowSize",
    # Infrastructure
    "ChangeNotifier",
    "Subscription",
    "JsonStore",
    "Config",
    "get_config",
    "load_config",
    "get_logger",
    "setup_logging",
    "reset_logging",
    # Errors
    "VibeCoderError",
    "ValidationError",
    "InvalidContentError",
    "NotFoundError",
    "PersistenceError",
    "RuntimeDelegationError",
]
