"""
Slack Event Handlers
====================

Routes Slack traffic to the agents in the registry.

Event Types:
- message: a message in a channel with a running agent becomes a
  message.new event on that agent's channel
- block action "ai_indicator_stop": the "Stop generating" button becomes
  an ai_indicator.stop event
- /scribe command: start, stop or inspect the agent on a channel

Slack expects every request to be acknowledged within 3 seconds. Agent
work runs in tasks created by the channel, so handlers return quickly.
"""

from typing import TYPE_CHECKING

from slack_bolt.async_app import AsyncAck, AsyncApp, AsyncSay

from scribe.channel.base import new_message_event, stop_event
from scribe.channel.slack import STOP_ACTION_ID, message_from_event
from scribe.utils.config import ConfigurationError
from scribe.utils.logger import Logger

if TYPE_CHECKING:
    from scribe.agent.registry import AgentRegistry

logger = Logger("Handlers")

HELP_TEXT = """*Scribe* - Your Writing Assistant

*Commands:*
- `/scribe start` - Start the assistant in this channel
- `/scribe stop` - Stop the assistant in this channel
- `/scribe status` - Show whether the assistant is running here
- `/scribe help` - Show this help message

Once started, every message in the channel gets a streamed reply.
Questions about current events are answered with live web search.
"""


class SlackEventRouter:
    """
    Bolt listeners bound to an AgentRegistry.

    Example:
        router = SlackEventRouter(registry)
        router.register(app)
    """

    def __init__(self, registry: "AgentRegistry"):
        self.registry = registry

    def register(self, app: AsyncApp) -> None:
        """Register all listeners with the Bolt app."""
        app.event("message")(self.handle_message)
        app.action(STOP_ACTION_ID)(self.handle_stop)
        app.command("/scribe")(self.handle_command)

        logger.info("Registered Slack event handlers")

    async def handle_message(self, event: dict) -> None:
        """Forward a channel message to the channel's agent, if any."""
        # Edits, deletes, joins and the like are not user messages
        if event.get("subtype"):
            return

        agent = self.registry.get(event.get("channel", ""))
        if agent is None:
            return

        message = message_from_event(event)
        logger.debug(f"Message {message.id} in {message.cid}")
        agent.channel.dispatch(new_message_event(message))

    async def handle_stop(self, ack: AsyncAck, body: dict) -> None:
        """Turn a "Stop generating" click into a stop event."""
        await ack()

        container = body.get("container") or {}
        channel_id = container.get("channel_id") or (body.get("channel") or {}).get("id")
        message_ts = container.get("message_ts") or (body.get("message") or {}).get("ts")
        if not channel_id or not message_ts:
            logger.warning("Stop action without a message reference")
            return

        agent = self.registry.get(channel_id)
        if agent is None:
            return

        logger.info(f"Stop requested for {message_ts} in {channel_id}")
        agent.channel.dispatch(stop_event(message_ts))

    async def handle_command(self, ack: AsyncAck, command: dict, say: AsyncSay) -> None:
        """Handle /scribe start|stop|status|help."""
        await ack()

        user_id = command.get("user_id", "")
        channel_id = command.get("channel_id", "")
        text = command.get("text", "").strip().lower()

        if text == "start":
            try:
                agent = await self.registry.start_agent(user_id, channel_id)
            except ConfigurationError as e:
                logger.error("Agent configuration error", e)
                await say(text=f"I can't start here: {e}")
                return
            except Exception as e:
                logger.error(f"Failed to start agent on {channel_id}", e)
                await say(text="Sorry, I couldn't start in this channel.")
                return
            await say(text=f"Scribe is listening in this channel (model: {agent.model}).")

        elif text == "stop":
            stopped = await self.registry.stop_agent(channel_id)
            await say(text="Scribe stopped." if stopped else "Scribe isn't running here.")

        elif text == "status":
            agent = self.registry.get(channel_id)
            if agent is None:
                await say(text="Scribe isn't running here. Use `/scribe start`.")
            else:
                await say(text=(
                    "*Scribe Status*\n"
                    f"- Model: {agent.model}\n"
                    f"- Turns remembered: {len(agent.conversation)}\n"
                    f"- Replies streaming: {len(agent.handlers)}\n"
                    f"- Agents running: {len(self.registry)}"
                ))

        elif text == "help" or not text:
            await say(text=HELP_TEXT)

        else:
            await say(text=f"Unknown command: `{text}`. Try `/scribe help`")


def register_handlers(app: AsyncApp, registry: "AgentRegistry") -> SlackEventRouter:
    """Create a router for the registry and register it with the app."""
    router = SlackEventRouter(registry)
    router.register(app)
    return router
