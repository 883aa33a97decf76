"""
Slack Channel
=============

ChatChannel implementation backed by the slack_sdk async Web API client.

Slack has no custom channel events, so indicator events are rendered
onto the placeholder message itself:

    ┌──────────────────────────────────────┐
    │ <streamed text so far>               │  section blocks, 3000 chars each
    │ _Searching the web…_                 │  context block (status)
    │ [ Stop generating ]                  │  actions block (while active)
    └──────────────────────────────────────┘

Clicking the button arrives at the Bolt app as a block action, which is
dispatched back to this channel as an ai_indicator.stop event.

Messages are identified by their Slack timestamp (ts). Agent messages
carry message metadata so they can be recognized when Slack echoes them
back as message events.

Slack API Notes:
- chat.postMessage needs text or blocks; the empty placeholder always has
  a status block
- chat.update replaces blocks wholesale, so the rendered state of each
  agent message is tracked here
"""

from collections import deque
from dataclasses import dataclass
from typing import Any

from slack_sdk.web.async_client import AsyncWebClient

from scribe.channel.base import (
    AI_INDICATOR_CLEAR,
    AI_INDICATOR_UPDATE,
    ChannelMessage,
    ChatChannel,
)
from scribe.channel.events import Event
from scribe.channel.indicators import IndicatorState
from scribe.utils.logger import Logger

logger = Logger("SlackChannel")

AI_GENERATED_EVENT_TYPE = "scribe_ai_generated"
STOP_ACTION_ID = "ai_indicator_stop"

# Slack limits: 3000 chars per section text, 50 blocks per message
SECTION_TEXT_LIMIT = 3000
MAX_SECTIONS = 48
TRUNCATION_NOTE = "\n_…reply too long to show in full_"

# Errored messages kept for the error text that follows the ERROR indicator
ERRORED_RETAINED = 50

STATUS_TEXT = {
    IndicatorState.THINKING.value: "Thinking…",
    IndicatorState.EXTERNAL_SOURCES.value: "Searching the web…",
    IndicatorState.GENERATING.value: "Writing…",
    IndicatorState.ERROR.value: "Something went wrong.",
}

_ACTIVE_STATES = {
    IndicatorState.THINKING.value,
    IndicatorState.EXTERNAL_SOURCES.value,
    IndicatorState.GENERATING.value,
}


def split_sections(text: str, limit: int = SECTION_TEXT_LIMIT, max_sections: int = MAX_SECTIONS) -> list[str]:
    """
    Split text into consecutive chunks that each fit a section block.

    Chunks end at the last newline in the window when there is one in its
    second half, otherwise at the limit. Joining the chunks gives back the
    text, unless it needs more than max_sections, in which case the last
    chunk ends with a truncation note.
    """
    chunks: list[str] = []
    rest = text
    while rest:
        if len(chunks) == max_sections - 1 and len(rest) > limit:
            chunks.append(rest[:limit - len(TRUNCATION_NOTE)] + TRUNCATION_NOTE)
            break
        if len(rest) <= limit:
            chunks.append(rest)
            break

        cut = rest.rfind("\n", limit // 2, limit)
        cut = cut + 1 if cut != -1 else limit
        chunks.append(rest[:cut])
        rest = rest[cut:]
    return chunks


@dataclass
class _RenderedMessage:
    """What an agent message currently shows in Slack."""
    text: str = ""
    ai_state: str | None = None

    @property
    def active(self) -> bool:
        return self.ai_state in _ACTIVE_STATES

    def fallback_text(self) -> str:
        return self.text or STATUS_TEXT.get(self.ai_state or "", "") or " "

    def blocks(self) -> list[dict]:
        blocks: list[dict] = []
        for chunk in split_sections(self.text):
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": chunk},
            })
        status = STATUS_TEXT.get(self.ai_state or "")
        if status:
            blocks.append({
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": f"_{status}_"}],
            })
        if self.active:
            blocks.append({
                "type": "actions",
                "elements": [{
                    "type": "button",
                    "action_id": STOP_ACTION_ID,
                    "text": {"type": "plain_text", "text": "Stop generating"},
                }],
            })
        return blocks


def is_ai_generated(event: dict) -> bool:
    """True for Slack message events posted by a bot or by this relay."""
    if event.get("bot_id"):
        return True
    metadata = event.get("metadata") or {}
    return metadata.get("event_type") == AI_GENERATED_EVENT_TYPE


def message_from_event(event: dict) -> ChannelMessage:
    """Convert a Slack message event into a ChannelMessage."""
    metadata = event.get("metadata") or {}
    payload = metadata.get("event_payload") or {}
    custom = {}
    if payload.get("writingTask"):
        custom["writingTask"] = payload["writingTask"]

    return ChannelMessage(
        id=event.get("ts", ""),
        cid=event.get("channel", ""),
        text=event.get("text", "") or "",
        user_id=event.get("user"),
        ai_generated=is_ai_generated(event),
        custom=custom,
    )


class SlackChannel(ChatChannel):
    """
    A single Slack conversation as a ChatChannel.

    Example:
        channel = SlackChannel(app.client, "C0123456")
        await channel.connect_user("U0123456")
        await channel.watch()

        placeholder = await channel.send_message("", ai_generated=True)
        await channel.update_message(placeholder.id, "Hello")
    """

    def __init__(self, client: AsyncWebClient, channel_id: str, user_id: str | None = None):
        super().__init__(channel_id, user_id)
        self.client = client
        self.bot_user_id: str | None = None
        self.channel_name: str | None = None
        self.connected = False
        self._rendered: dict[str, _RenderedMessage] = {}
        self._errored: deque[str] = deque()

    async def connect_user(self, user_id: str) -> None:
        response = await self.client.auth_test()
        self.bot_user_id = response.get("user_id")
        self.user_id = user_id
        self.connected = True
        logger.debug(f"Connected to Slack as {self.bot_user_id} for user {user_id}")

    async def watch(self) -> None:
        response = await self.client.conversations_info(channel=self.channel_id)
        channel = response.get("channel") or {}
        self.channel_name = channel.get("name")
        logger.info(f"Watching channel {self.channel_name or self.channel_id}")

    async def send_message(self, text: str, ai_generated: bool = False) -> ChannelMessage:
        rendered = _RenderedMessage(text=text)
        kwargs: dict[str, Any] = {
            "channel": self.channel_id,
            "text": rendered.fallback_text(),
        }
        if ai_generated:
            # An empty message only shows a status line until streaming starts
            if not text:
                rendered.ai_state = IndicatorState.THINKING.value
            kwargs["blocks"] = rendered.blocks()
            kwargs["text"] = rendered.fallback_text()
            kwargs["metadata"] = {
                "event_type": AI_GENERATED_EVENT_TYPE,
                "event_payload": {"ai_generated": True},
            }

        response = await self.client.chat_postMessage(**kwargs)
        ts = response["ts"]
        if ai_generated:
            self._rendered[ts] = rendered

        return ChannelMessage(
            id=ts,
            cid=response.get("channel", self.channel_id),
            text=text,
            user_id=self.bot_user_id,
            ai_generated=ai_generated,
        )

    async def update_message(self, message_id: str, text: str, **extra: Any) -> None:
        rendered = self._rendered.setdefault(message_id, _RenderedMessage())
        rendered.text = text
        if extra:
            logger.debug(f"Ignoring unsupported update fields: {sorted(extra)}")
        await self._render(message_id, rendered)

        if rendered.ai_state == IndicatorState.ERROR.value:
            # The error text is the last write an errored reply gets
            self._rendered.pop(message_id, None)

    async def send_event(self, event: Event) -> None:
        message_id = event.get("message_id")
        rendered = self._rendered.get(message_id) if message_id else None
        if rendered is None:
            logger.debug(f"No rendered message for event {event.get('type')}")
            return

        if event.get("type") == AI_INDICATOR_UPDATE:
            rendered.ai_state = event.get("ai_state")
        elif event.get("type") == AI_INDICATOR_CLEAR:
            rendered.ai_state = None
        else:
            return

        await self._render(message_id, rendered)

        if rendered.ai_state == IndicatorState.ERROR.value:
            self._retain_errored(message_id)
        elif not rendered.active:
            # Cleared messages never change again
            self._rendered.pop(message_id, None)

    async def disconnect(self) -> None:
        if not self.connected:
            return
        self.connected = False
        self.events.clear()
        self._rendered.clear()
        self._errored.clear()
        logger.info(f"Disconnected from channel {self.channel_name or self.channel_id}")

    def _retain_errored(self, message_id: str) -> None:
        """Keep an errored message for its error text, forgetting the oldest beyond the limit."""
        self._errored.append(message_id)
        while len(self._errored) > ERRORED_RETAINED:
            self._rendered.pop(self._errored.popleft(), None)

    async def _render(self, message_id: str, rendered: _RenderedMessage) -> None:
        await self.client.chat_update(
            channel=self.channel_id,
            ts=message_id,
            text=rendered.fallback_text(),
            blocks=rendered.blocks(),
        )
