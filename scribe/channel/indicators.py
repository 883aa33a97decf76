"""
AI Indicator Events
===================

Status signals attached to a single message while the agent works on it.

For one message the agent emits, in order:
    THINKING -> [EXTERNAL_SOURCES] -> GENERATING -> CLEARED | ERROR
"""

from enum import Enum

from scribe.channel.base import (
    AI_INDICATOR_CLEAR,
    AI_INDICATOR_UPDATE,
    ChannelMessage,
    ChatChannel,
)
from scribe.channel.events import Event


class IndicatorState(str, Enum):
    """Indicator states. Values are the ai_state strings sent on the wire."""
    THINKING = "AI_STATE_THINKING"
    EXTERNAL_SOURCES = "AI_STATE_EXTERNAL_SOURCES"
    GENERATING = "AI_STATE_GENERATING"
    ERROR = "AI_STATE_ERROR"
    CLEARED = "AI_STATE_CLEARED"


def indicator_event(state: IndicatorState, message: ChannelMessage) -> Event:
    """
    Build the custom event for a state.

    CLEARED maps to an ai_indicator.clear event; every other state is an
    ai_indicator.update carrying the ai_state.
    """
    if state is IndicatorState.CLEARED:
        return {
            "type": AI_INDICATOR_CLEAR,
            "cid": message.cid,
            "message_id": message.id,
        }
    return {
        "type": AI_INDICATOR_UPDATE,
        "ai_state": state.value,
        "cid": message.cid,
        "message_id": message.id,
    }


async def emit_indicator(
    channel: ChatChannel,
    message: ChannelMessage,
    state: IndicatorState
) -> None:
    """Send the indicator event for a message to the channel."""
    await channel.send_event(indicator_event(state, message))
