"""
Agent System
============

The agent answers channel messages with streamed replies. It:
1. Listens for new messages on its channel
2. Decides whether live web search is needed
3. Streams the model's reply into a placeholder message
4. Reports progress through indicator events

This module provides:
- Agent: per-channel controller
- ResponseHandler: one streamed reply
- SearchDecider: search-need classification
- AgentRegistry: one agent per channel, idle cleanup
"""

from scribe.agent.core import Agent, AgentState
from scribe.agent.decision import SearchDecider, SearchOutcome
from scribe.agent.registry import AgentRegistry
from scribe.agent.response_handler import HandlerState, ResponseHandler

__all__ = [
    "Agent",
    "AgentState",
    "AgentRegistry",
    "HandlerState",
    "ResponseHandler",
    "SearchDecider",
    "SearchOutcome",
]
