"""Agent models, runtime contract, and registry."""

from vibecoder.agents.model import AgentModel
from vibecoder.agents.registry import AgentRegistry
from vibecoder.agents.runtime import AgentReply, AgentRuntime, ChatMessage, SendOptions
from vibecoder.agents.schema import AgentProcessingStatus

__all__ = [
    "AgentModel",
    "AgentProcessingStatus",
    "AgentRegistry",
    "AgentReply",
    "AgentRuntime",
    "ChatMessage",
    "SendOptions",
]
