"""
Chat Channel Contract
=====================

The agent talks to its host chat channel only through ChatChannel.
A channel implementation must be able to:

- connect as a user and watch one channel
- post a new message and partially update an existing one
- broadcast custom indicator events for a message
- deliver inbound events (new messages, stop requests) to subscribers
- disconnect

Event shapes:
    {"type": "message.new", "message": ChannelMessage}
    {"type": "ai_indicator.update", "ai_state": "AI_STATE_...", "cid": ..., "message_id": ...}
    {"type": "ai_indicator.clear", "cid": ..., "message_id": ...}
    {"type": "ai_indicator.stop", "message_id": ...}
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from scribe.channel.events import Event, EventEmitter, Listener, Subscription

MESSAGE_NEW = "message.new"
AI_INDICATOR_UPDATE = "ai_indicator.update"
AI_INDICATOR_CLEAR = "ai_indicator.clear"
AI_INDICATOR_STOP = "ai_indicator.stop"


@dataclass
class ChannelMessage:
    """
    A message as seen by the agent.

    Attributes:
        id: Channel-unique message identifier
        cid: Identifier of the channel the message lives in
        text: Message text
        user_id: Author, when known
        ai_generated: True for messages posted by an agent
        custom: Extra fields attached by the client (e.g. writingTask)
    """
    id: str
    cid: str
    text: str = ""
    user_id: str | None = None
    ai_generated: bool = False
    custom: dict[str, Any] = field(default_factory=dict)


def new_message_event(message: ChannelMessage) -> Event:
    return {"type": MESSAGE_NEW, "message": message}


def stop_event(message_id: str) -> Event:
    return {"type": AI_INDICATOR_STOP, "message_id": message_id}


class ChatChannel(ABC):
    """
    Base class for host chat channels.

    Subclasses implement the network operations. Subscriptions and inbound
    dispatch are shared: whatever receives raw events from the host calls
    dispatch() with one of the event shapes above.
    """

    def __init__(self, channel_id: str, user_id: str | None = None):
        self.channel_id = channel_id
        self.user_id = user_id
        self.events = EventEmitter()

    @property
    def cid(self) -> str:
        return self.channel_id

    def on(self, event_type: str, listener: Listener) -> Subscription:
        """Subscribe to inbound events of one type."""
        return self.events.on(event_type, listener)

    def dispatch(self, event: Event):
        """Deliver an inbound event to subscribers. Returns listener tasks."""
        return self.events.dispatch(event)

    @abstractmethod
    async def connect_user(self, user_id: str) -> None:
        """Authenticate as the given user."""

    @abstractmethod
    async def watch(self) -> None:
        """Start watching the bound channel."""

    @abstractmethod
    async def send_message(self, text: str, ai_generated: bool = False) -> ChannelMessage:
        """Post a new message and return it with its assigned id."""

    @abstractmethod
    async def update_message(self, message_id: str, text: str, **extra: Any) -> None:
        """Replace the text (and optional extra fields) of a message."""

    @abstractmethod
    async def send_event(self, event: Event) -> None:
        """Broadcast a custom event to channel watchers."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect the user. Must be safe to call twice."""
