"""
Scribe - Main Entry Point
=========================

Runs the relay as a Slack app. It:
1. Loads configuration
2. Creates the Slack app and the agent registry
3. Registers event handlers
4. Starts idle-agent cleanup and the Socket Mode connection

Agents are started per channel with `/scribe start`.

Run with:
    python -m scribe.main

Or after installing:
    scribe
"""

import asyncio
import signal
import sys

from scribe.utils.config import get_config, load_slack_config
from scribe.utils.logger import Logger

main_logger = Logger("Main")


async def main():
    """Initialize all components and run until interrupted."""
    main_logger.info("Starting Scribe...")

    try:
        main_logger.info("Loading configuration...")
        config = get_config()
        slack_config = load_slack_config()
        main_logger.set_level(config.log_level)

        if not config.openai.api_key:
            main_logger.warning("OPENAI_API_KEY is not set; agents will refuse to start")
        if not config.search.api_key:
            main_logger.warning("TAVILY_API_KEY is not set; web search is disabled")

        main_logger.info("Creating Slack app...")
        from scribe.slack.app import create_slack_app, create_socket_handler
        app = create_slack_app(slack_config)

        main_logger.info("Creating agent registry...")
        from scribe.agent.factory import AgentPlatform, create_agent
        from scribe.agent.registry import AgentRegistry
        from scribe.search import TavilySearchClient

        # One search client for all agents
        search = TavilySearchClient(config.search)

        async def factory(user_id: str, channel_id: str):
            return await create_agent(
                user_id,
                AgentPlatform.OPENAI,
                channel_id,
                slack_client=app.client,
                config=config,
                search=search,
            )

        registry = AgentRegistry(
            factory,
            idle_timeout_minutes=config.agent.idle_timeout_minutes,
            cleanup_interval_seconds=config.agent.cleanup_interval_seconds,
        )

        main_logger.info("Registering event handlers...")
        from scribe.slack.handlers import register_handlers
        register_handlers(app, registry)

        registry.start()

        main_logger.info("Starting Socket Mode connection...")
        handler = await create_socket_handler(app, slack_config)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(
                sig,
                lambda: asyncio.create_task(_shutdown(handler, registry))
            )

        main_logger.info("Scribe is running! Press Ctrl+C to stop.")
        await handler.start_async()

    except KeyboardInterrupt:
        main_logger.info("Received interrupt signal")
    except Exception as e:
        main_logger.error("Failed to start Scribe", e)
        sys.exit(1)


async def _shutdown(handler, registry):
    """Dispose every agent, then close the socket connection."""
    main_logger.info("Shutting down...")

    await registry.shutdown()
    await handler.close_async()

    main_logger.info("Shutdown complete")


def run():
    """Synchronous entry point for the `scribe` command."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
