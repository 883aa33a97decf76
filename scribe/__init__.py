"""
Scribe - Streaming Writing Assistant Relay
==========================================

An AI writing assistant that lives in a chat channel. It listens for
messages, searches the web when a question needs current information,
and streams its reply back into the channel as it is generated.

This package provides:
- Agent system: per-channel controller, search decision, streamed replies
- Chat channel contract with a Slack implementation
- Tavily web search
"""

__version__ = "1.0.0"
