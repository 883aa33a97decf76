"""
Chat Channels
=============

The host chat channel as the agent sees it:
- ChatChannel: the contract (send, partial update, custom events)
- EventEmitter / Subscription: inbound event delivery
- Indicator events for per-message agent status
- SlackChannel: the Slack implementation
"""

from scribe.channel.base import (
    AI_INDICATOR_CLEAR,
    AI_INDICATOR_STOP,
    AI_INDICATOR_UPDATE,
    MESSAGE_NEW,
    ChannelMessage,
    ChatChannel,
)
from scribe.channel.events import EventEmitter, Subscription
from scribe.channel.indicators import IndicatorState, emit_indicator, indicator_event

__all__ = [
    "AI_INDICATOR_CLEAR",
    "AI_INDICATOR_STOP",
    "AI_INDICATOR_UPDATE",
    "MESSAGE_NEW",
    "ChannelMessage",
    "ChatChannel",
    "EventEmitter",
    "Subscription",
    "IndicatorState",
    "emit_indicator",
    "indicator_event",
]
