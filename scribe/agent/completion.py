"""
Completion Client
=================

Thin wrapper around the OpenAI Chat Completions API.

The agent speaks in terms of a prompt, a preamble (system instructions)
and prior conversation turns. This module turns those into the OpenAI
message list and normalizes the streaming response into StreamEvents:

    StreamEvent("text-generation", "Hel")
    StreamEvent("text-generation", "lo")
    StreamEvent("stream-end")

The provider keeps no conversation state between calls, so the full
history is sent every time.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterator, Sequence

from openai import AsyncOpenAI

from scribe.utils.logger import Logger

if TYPE_CHECKING:
    from scribe.agent.conversation import Turn

logger = Logger("Completion")

TEXT_GENERATION = "text-generation"
STREAM_END = "stream-end"


@dataclass(frozen=True)
class StreamEvent:
    """One event of a streamed completion."""
    event_type: str
    text: str = ""


def build_messages(
    message: str,
    preamble: str | None = None,
    chat_history: Sequence["Turn"] | None = None
) -> list[dict]:
    """
    Build the OpenAI message list.

    Args:
        message: The prompt for this call, sent as the last user message
        preamble: Optional system instructions
        chat_history: Prior turns, oldest first

    Returns:
        List of message dicts ready for the API
    """
    messages = []
    if preamble:
        messages.append({"role": "system", "content": preamble})
    for turn in chat_history or ():
        messages.append(turn.to_openai_message())
    messages.append({"role": "user", "content": message})
    return messages


class CompletionClient:
    """
    Chat completion calls in non-streaming and streaming mode.

    Example:
        client = CompletionClient.from_api_key("sk-...")

        text = await client.chat(model="gpt-4o-mini", message="Hi")

        async for event in client.chat_stream(model="gpt-4o", message="Hi"):
            if event.event_type == TEXT_GENERATION:
                print(event.text, end="")
    """

    def __init__(self, openai: AsyncOpenAI):
        self.openai = openai

    @classmethod
    def from_api_key(cls, api_key: str) -> "CompletionClient":
        return cls(AsyncOpenAI(api_key=api_key))

    async def chat(
        self,
        *,
        model: str,
        message: str,
        preamble: str | None = None,
        chat_history: Sequence["Turn"] | None = None,
        temperature: float = 0.7
    ) -> str:
        """Run a single completion and return its text."""
        response = await self.openai.chat.completions.create(
            model=model,
            messages=build_messages(message, preamble, chat_history),
            temperature=temperature,
        )
        return response.choices[0].message.content or ""

    async def chat_stream(
        self,
        *,
        model: str,
        message: str,
        preamble: str | None = None,
        chat_history: Sequence["Turn"] | None = None,
        temperature: float = 0.7
    ) -> AsyncIterator[StreamEvent]:
        """
        Stream a completion as StreamEvents.

        The request is sent when iteration starts. Close the iterator
        (or use contextlib.aclosing) to abandon the stream early.
        """
        stream = await self.openai.chat.completions.create(
            model=model,
            messages=build_messages(message, preamble, chat_history),
            temperature=temperature,
            stream=True,
        )

        async for chunk in stream:
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            if choice.delta and choice.delta.content:
                yield StreamEvent(TEXT_GENERATION, choice.delta.content)
            if choice.finish_reason:
                logger.debug(f"Stream finished: {choice.finish_reason}")
                yield StreamEvent(STREAM_END)
