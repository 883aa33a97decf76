"""
Agent Core
==========

The agent bound to one chat channel.

It subscribes to new messages on the channel and answers each one with
a streamed reply:

    User Message
         │
         ▼
    Placeholder message posted ──► THINKING
         │
         ▼
    Needs web search? ─── Yes ──► EXTERNAL_SOURCES ──► Tavily search
         │                                                  │
         No                                                 │
         │◄─────────────────────────────────────────────────┘
         ▼
    GENERATING ──► ResponseHandler streams into the placeholder
         │
         ▼
    CLEARED (or ERROR)

A stop pressed while the agent is still deciding or searching is
recorded and the reply is skipped (CLEARED without GENERATING).

Every message is handled in its own task. Several replies can stream at
once, each with its own placeholder and ResponseHandler. The
conversation log is the only state they share.

Error policy:
- missing OpenAI key: ConfigurationError from init()
- decision and search problems: absorbed, reply generated without search
- generation problems: shown on the message, contained to that reply
"""

import time
from enum import Enum
from typing import Callable

from scribe.agent.completion import CompletionClient
from scribe.agent.context import build_search_preamble, build_system_prompt
from scribe.agent.conversation import Conversation, Role
from scribe.agent.decision import SearchDecider
from scribe.agent.response_handler import HandlerState, ResponseHandler
from scribe.channel.base import AI_INDICATOR_STOP, MESSAGE_NEW, ChannelMessage, ChatChannel
from scribe.channel.events import Event, Subscription
from scribe.channel.indicators import IndicatorState, emit_indicator
from scribe.search import TavilySearchClient
from scribe.utils.config import Config, ConfigurationError, get_config
from scribe.utils.logger import Logger

logger = Logger("Agent")


class AgentState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DISPOSED = "disposed"


class Agent:
    """
    Writing assistant attached to a chat channel.

    Clients are injected; the caller owns their lifetime. Only the
    channel is required, the rest default to instances built from config.

    Example:
        agent = Agent(channel, config=config)
        await agent.init()          # raises ConfigurationError without OPENAI_API_KEY
        ...
        await agent.dispose()
    """

    def __init__(
        self,
        channel: ChatChannel,
        *,
        config: Config | None = None,
        completion: CompletionClient | None = None,
        search: TavilySearchClient | None = None,
        clock: Callable[[], float] = time.time
    ):
        self.config = config or get_config()
        self.channel = channel
        self.completion = completion
        self.search = search if search is not None else TavilySearchClient(self.config.search)
        self.decider: SearchDecider | None = None
        self.conversation = Conversation(max_turns=self.config.agent.max_turns)
        self.model = self.config.openai.model
        self.state = AgentState.UNINITIALIZED

        self._clock = clock
        self._last_interaction = clock()
        self._handlers: set[ResponseHandler] = set()
        self._message_subscription: Subscription | None = None
        self._stop_subscription: Subscription | None = None
        # Placeholder id -> stop requested, for replies that have no handler yet
        self._pending_replies: dict[str, bool] = {}
        self.logger = logger.child(channel.cid)

    @property
    def user(self) -> str | None:
        return self.channel.user_id

    @property
    def handlers(self) -> frozenset[ResponseHandler]:
        """Replies currently streaming."""
        return frozenset(self._handlers)

    def get_last_interaction(self) -> float:
        """Timestamp (seconds) of the last message handled."""
        return self._last_interaction

    async def init(self) -> None:
        """
        Validate configuration and start listening for messages.

        Raises:
            ConfigurationError: If the OpenAI API key is not configured
        """
        if self.state is AgentState.READY:
            return
        if self.state is AgentState.DISPOSED:
            raise RuntimeError("Agent has been disposed")

        api_key = self.config.openai.api_key
        if not api_key:
            raise ConfigurationError("OpenAI API key is required (set OPENAI_API_KEY)")

        if self.completion is None:
            self.completion = CompletionClient.from_api_key(api_key)
        self.decider = SearchDecider(self.completion, model=self.config.openai.decision_model)

        self._message_subscription = self.channel.on(MESSAGE_NEW, self.handle_message)
        self._stop_subscription = self.channel.on(AI_INDICATOR_STOP, self._handle_early_stop)
        self.state = AgentState.READY
        self.logger.info(f"Agent ready with model: {self.model}")

    async def dispose(self) -> None:
        """
        Stop listening, disconnect, and drop every live reply.

        Streaming replies are not drained; they stop at their next read.
        """
        if self.state is AgentState.DISPOSED:
            return
        self.state = AgentState.DISPOSED

        if self._message_subscription is not None:
            self._message_subscription.close()
            self._message_subscription = None
        if self._stop_subscription is not None:
            self._stop_subscription.close()
            self._stop_subscription = None

        try:
            await self.channel.disconnect()
        finally:
            for handler in list(self._handlers):
                handler.dispose()
            self._handlers.clear()
            self._pending_replies.clear()
            self.logger.info("Agent disposed")

    async def handle_message(self, event: Event) -> None:
        """Answer one new channel message."""
        message: ChannelMessage | None = event.get("message")
        if message is None or message.ai_generated or not message.text:
            return
        if self.state is not AgentState.READY:
            self.logger.warning("Message received before init or after dispose")
            return

        text = message.text
        self._last_interaction = self._clock()
        self.logger.info(f"Message {message.id}: {text[:50]}...")

        # History sent to the model excludes the message being answered
        prior_turns = self.conversation.snapshot()
        self.conversation.append(Role.USER, text)

        system_prompt = build_system_prompt(message.custom.get("writingTask"))

        try:
            placeholder = await self.channel.send_message("", ai_generated=True)
        except Exception as e:
            self.logger.error("Could not create placeholder message", e)
            return

        self._pending_replies[placeholder.id] = False
        handler: ResponseHandler | None = None
        try:
            await emit_indicator(self.channel, placeholder, IndicatorState.THINKING)

            preamble = await self._build_preamble(text, system_prompt, placeholder)

            if self.state is not AgentState.READY:
                return

            # From here on the handler owns stop requests for this placeholder
            if self._pending_replies.pop(placeholder.id, False):
                self.logger.info(f"Reply {placeholder.id} stopped before generating")
                await emit_indicator(self.channel, placeholder, IndicatorState.CLEARED)
                return

            handler = ResponseHandler(
                self.completion,
                self.channel,
                placeholder,
                on_dispose=self._remove_handler,
                flush_interval_ms=self.config.agent.flush_interval_ms,
                logger=self.logger,
            )
            self._handlers.add(handler)

            await emit_indicator(self.channel, placeholder, IndicatorState.GENERATING)

            if handler.stopped:
                return

            await handler.run(
                text,
                preamble=preamble,
                prior_turns=prior_turns,
                model=self.model,
                temperature=self.config.openai.temperature,
            )

            if handler.state is HandlerState.COMPLETED and handler.text:
                self.conversation.append(Role.ASSISTANT, handler.text)

        except Exception as error:
            self.logger.error("Agent error", error)
            try:
                await emit_indicator(self.channel, placeholder, IndicatorState.ERROR)
            except Exception as e:
                self.logger.error("Could not send error indicator", e)
        finally:
            self._pending_replies.pop(placeholder.id, None)
            if handler is not None:
                handler.dispose()

    async def _build_preamble(
        self,
        text: str,
        system_prompt: str,
        placeholder: ChannelMessage
    ) -> str:
        """Decide on web search and fold any results into the preamble."""
        outcome = await self.decider.decide(text, system_prompt)
        if not (outcome.needs_search and outcome.query):
            return system_prompt

        await emit_indicator(self.channel, placeholder, IndicatorState.EXTERNAL_SOURCES)
        search_results = await self.search.search(outcome.query)
        return build_search_preamble(system_prompt, search_results)

    def _remove_handler(self, handler: ResponseHandler) -> None:
        self._handlers.discard(handler)

    def _handle_early_stop(self, event: Event) -> None:
        """Record a stop for a reply that is still deciding or searching."""
        message_id = event.get("message_id")
        if message_id in self._pending_replies:
            self._pending_replies[message_id] = True
