"""Shared fakes for agent tests: an in-memory channel, a scripted model, a manual clock."""

from __future__ import annotations

from typing import Any

from scribe.agent.completion import STREAM_END, TEXT_GENERATION, StreamEvent
from scribe.channel.base import AI_INDICATOR_CLEAR, AI_INDICATOR_UPDATE, ChannelMessage, ChatChannel
from scribe.utils.config import AgentConfig, Config, OpenAIConfig, SearchConfig

CLEARED = "CLEARED"


def make_config(
    openai_key: str | None = "sk-test",
    search_key: str | None = None,
    flush_interval_ms: int = 1000,
    max_turns: int = 0,
) -> Config:
    return Config(
        openai=OpenAIConfig(
            api_key=openai_key,
            model="gpt-test",
            decision_model="gpt-test-mini",
            temperature=0.7,
        ),
        search=SearchConfig(
            api_key=search_key,
            url="https://search.test/search",
            search_depth="advanced",
            max_results=5,
            timeout_seconds=5.0,
        ),
        agent=AgentConfig(
            flush_interval_ms=flush_interval_ms,
            max_turns=max_turns,
            idle_timeout_minutes=30,
            cleanup_interval_seconds=60,
        ),
        log_level="error",
    )


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeChannel(ChatChannel):
    """Records every outbound call in order."""

    def __init__(self, channel_id: str = "C1", user_id: str | None = "U1"):
        super().__init__(channel_id, user_id)
        self.calls: list[tuple[str, Any]] = []
        self.sent: list[ChannelMessage] = []
        self.updates: list[tuple[str, str, dict]] = []
        self.custom_events: list[dict] = []
        self.disconnected = False
        self.fail_updates = False
        self._counter = 0

    async def connect_user(self, user_id: str) -> None:
        self.user_id = user_id

    async def watch(self) -> None:
        self.calls.append(("watch", None))

    async def send_message(self, text: str, ai_generated: bool = False) -> ChannelMessage:
        self._counter += 1
        message = ChannelMessage(
            id=f"m{self._counter}",
            cid=self.cid,
            text=text,
            user_id="bot",
            ai_generated=ai_generated,
        )
        self.sent.append(message)
        self.calls.append(("send", message))
        return message

    async def update_message(self, message_id: str, text: str, **extra: Any) -> None:
        if self.fail_updates:
            raise RuntimeError("channel unavailable")
        self.updates.append((message_id, text, extra))
        self.calls.append(("update", (message_id, text)))

    async def send_event(self, event: dict) -> None:
        self.custom_events.append(event)
        self.calls.append(("event", event))

    async def disconnect(self) -> None:
        self.disconnected = True

    def indicator_states(self, message_id: str) -> list[str]:
        """ai_state values (or CLEARED) emitted for a message, in order."""
        states = []
        for event in self.custom_events:
            if event.get("message_id") != message_id:
                continue
            if event["type"] == AI_INDICATOR_UPDATE:
                states.append(event["ai_state"])
            elif event["type"] == AI_INDICATOR_CLEAR:
                states.append(CLEARED)
        return states

    def texts_for(self, message_id: str) -> list[str]:
        return [text for mid, text, _ in self.updates if mid == message_id]


class FakeCompletion:
    """Scripted model: a fixed decision answer and a fixed list of stream fragments."""

    def __init__(
        self,
        decision: str = '{"needsSearch": false, "query": ""}',
        fragments: list[str] | None = None,
        stream_error: Exception | None = None,
        decision_error: Exception | None = None,
    ):
        self.decision = decision
        self.fragments = fragments if fragments is not None else ["Hello", " world"]
        self.stream_error = stream_error
        self.decision_error = decision_error
        self.chat_calls: list[dict] = []
        self.stream_calls: list[dict] = []

    async def chat(self, **kwargs) -> str:
        self.chat_calls.append(kwargs)
        if self.decision_error is not None:
            raise self.decision_error
        return self.decision

    async def chat_stream(self, **kwargs):
        self.stream_calls.append(kwargs)
        for fragment in self.fragments:
            yield StreamEvent(TEXT_GENERATION, fragment)
        if self.stream_error is not None:
            raise self.stream_error
        yield StreamEvent(STREAM_END)
