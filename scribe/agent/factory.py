"""
Agent Factory
=============

"Start an agent for channel X": connects to the host channel as the
requesting user, watches it, and builds the agent for the chosen
platform. The caller still runs agent.init().
"""

from enum import Enum

from slack_sdk.web.async_client import AsyncWebClient

from scribe.agent.completion import CompletionClient
from scribe.agent.core import Agent
from scribe.channel.slack import SlackChannel
from scribe.search import TavilySearchClient
from scribe.utils.config import Config, get_config
from scribe.utils.logger import Logger

logger = Logger("Factory")


class AgentPlatform(str, Enum):
    """Language-model platforms an agent can run on."""
    OPENAI = "openai"


async def create_agent(
    user_id: str,
    platform: AgentPlatform | str,
    channel_id: str,
    *,
    slack_client: AsyncWebClient,
    config: Config | None = None,
    completion: CompletionClient | None = None,
    search: TavilySearchClient | None = None
) -> Agent:
    """
    Create an agent bound to a Slack channel.

    Args:
        user_id: The user the agent acts on behalf of
        platform: The model platform
        channel_id: The Slack channel ID
        slack_client: Web API client shared by all channels
        config: Optional configuration, defaults to get_config()
        completion: Optional pre-built completion client
        search: Optional pre-built search client

    Returns:
        An uninitialized Agent

    Raises:
        ValueError: If the platform is not supported
    """
    try:
        platform = AgentPlatform(platform)
    except ValueError:
        raise ValueError(f"Unsupported agent platform: {platform}") from None

    channel = SlackChannel(slack_client, channel_id)
    await channel.connect_user(user_id)
    await channel.watch()

    logger.info(f"Creating {platform.value} agent for {channel_id}")
    return Agent(
        channel,
        config=config or get_config(),
        completion=completion,
        search=search,
    )
