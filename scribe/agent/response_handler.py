"""
Response Handler
================

Streams one model reply into one placeholder message.

Lifecycle:

    STREAMING ──► COMPLETED   stream ended, final text written, indicator cleared
        │
        ├──────► STOPPED     user pressed "stop", indicator cleared, no more writes
        │
        └──────► ERRORED     exception while streaming, ERROR indicator and
                             the message text replaced by an error string

Exactly one terminal state is ever reached.

Flush policy:
    The message is rewritten with the whole buffer at most once per flush
    interval (1s by default), however fast tokens arrive, plus one final
    write when the stream ends.

Cancellation is cooperative: a stop request is noticed at the next
stream read, so a flush that was already in flight may still land.
"""

import time
from contextlib import aclosing
from enum import Enum
from typing import TYPE_CHECKING, Callable, Sequence

from scribe.agent.completion import TEXT_GENERATION, StreamEvent
from scribe.channel.base import AI_INDICATOR_STOP, ChannelMessage, ChatChannel
from scribe.channel.events import Event
from scribe.channel.indicators import IndicatorState, emit_indicator
from scribe.utils.logger import Logger

if TYPE_CHECKING:
    from scribe.agent.completion import CompletionClient
    from scribe.agent.conversation import Turn

ERROR_FALLBACK_TEXT = "Error generating the message"


class HandlerState(str, Enum):
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERRORED = "errored"
    STOPPED = "stopped"


class ResponseHandler:
    """
    Streams a completion into a channel message.

    Example:
        handler = ResponseHandler(completion, channel, placeholder, on_dispose=remove)
        await handler.run(
            "Summarize this draft",
            preamble=system_prompt,
            prior_turns=conversation.snapshot(),
            model="gpt-4o",
        )
        if handler.state is HandlerState.COMPLETED:
            conversation.append(Role.ASSISTANT, handler.text)
    """

    def __init__(
        self,
        completion: "CompletionClient",
        channel: ChatChannel,
        message: ChannelMessage,
        on_dispose: Callable[["ResponseHandler"], None],
        flush_interval_ms: int = 1000,
        clock: Callable[[], float] = time.monotonic,
        logger: Logger | None = None
    ):
        """
        Args:
            completion: Client used to open the stream
            channel: Channel holding the placeholder message
            message: The placeholder message to stream into
            on_dispose: Called once with this handler when it is disposed
            flush_interval_ms: Minimum delay between partial updates
            clock: Monotonic clock in seconds
            logger: Parent logger
        """
        self.completion = completion
        self.channel = channel
        self.message = message
        self.flush_interval_ms = flush_interval_ms
        self.text = ""
        self.state = HandlerState.STREAMING

        self._on_dispose = on_dispose
        self._clock = clock
        self._last_flush: float | None = None
        self._stopped = False
        self._done = False
        self.logger = (logger or Logger("Handler")).child(message.id)

        self._stop_subscription = channel.on(AI_INDICATOR_STOP, self._handle_stop)

    @property
    def done(self) -> bool:
        return self._done

    @property
    def stopped(self) -> bool:
        return self._stopped

    async def run(
        self,
        prompt: str,
        *,
        preamble: str | None = None,
        prior_turns: Sequence["Turn"] | None = None,
        model: str,
        temperature: float = 0.7
    ) -> None:
        """
        Stream the reply to a prompt into the placeholder message.

        Never raises for provider or channel failures; those end in the
        ERRORED state.
        """
        try:
            stream = self.completion.chat_stream(
                model=model,
                message=prompt,
                preamble=preamble,
                chat_history=prior_turns,
                temperature=temperature,
            )
            async with aclosing(stream):
                async for event in stream:
                    if self._halted:
                        break
                    self._handle_stream_event(event)

                    if self._flush_due():
                        await self._flush()

            if self._halted:
                return

            await self._flush()

            if self._finish(HandlerState.COMPLETED):
                self.logger.debug(f"Stream completed ({len(self.text)} chars)")
                await emit_indicator(self.channel, self.message, IndicatorState.CLEARED)

        except Exception as error:
            self.logger.error("Error while streaming response", error)
            await self._handle_error(error)
        finally:
            self.dispose()

    def dispose(self) -> None:
        """Release the stop subscription and notify the owner. Idempotent."""
        if self._done:
            return
        self._done = True
        self._stop_subscription.close()
        self._on_dispose(self)

    @property
    def _halted(self) -> bool:
        return self._stopped or self._done

    def _finish(self, state: HandlerState) -> bool:
        """Enter a terminal state. Returns False if one was already reached."""
        if self.state is not HandlerState.STREAMING:
            return False
        self.state = state
        return True

    def _handle_stream_event(self, event: StreamEvent) -> None:
        if event.event_type == TEXT_GENERATION:
            self.text += event.text

    def _flush_due(self) -> bool:
        if self._last_flush is None:
            return True
        elapsed_ms = (self._clock() - self._last_flush) * 1000
        return elapsed_ms >= self.flush_interval_ms

    async def _flush(self) -> None:
        self._last_flush = self._clock()
        await self.channel.update_message(self.message.id, self.text)

    async def _handle_stop(self, event: Event) -> None:
        if self._done or event.get("message_id") != self.message.id:
            return
        if not self._finish(HandlerState.STOPPED):
            return

        self._stopped = True
        self.logger.info("Stop generating requested")

        try:
            await emit_indicator(self.channel, self.message, IndicatorState.CLEARED)
        finally:
            self.dispose()

    async def _handle_error(self, error: Exception) -> None:
        if self._done or not self._finish(HandlerState.ERRORED):
            return

        try:
            await emit_indicator(self.channel, self.message, IndicatorState.ERROR)
            await self.channel.update_message(
                self.message.id,
                str(error) or ERROR_FALLBACK_TEXT,
                error=repr(error),
            )
        except Exception as report_error:
            self.logger.error("Failed to report streaming error", report_error)
