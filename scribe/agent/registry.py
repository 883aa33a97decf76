"""
Agent Registry
==============

Keeps at most one running agent per channel and disposes agents that
have been idle for too long.

Idle cleanup runs as an APScheduler interval job on the asyncio loop:

    every cleanup_interval_seconds:
        for each agent:
            if now - agent.get_last_interaction() > idle timeout:
                dispose and forget it
"""

import asyncio
import time
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from scribe.agent.core import Agent
from scribe.utils.logger import Logger

logger = Logger("Registry")

AgentFactory = Callable[[str, str], Awaitable[Agent]]

CLEANUP_JOB_ID = "dispose_idle_agents"


class AgentRegistry:
    """
    Starts, tracks and stops agents by channel.

    Example:
        registry = AgentRegistry(factory, idle_timeout_minutes=30)
        registry.start()

        agent = await registry.start_agent("U123", "C456")
        ...
        await registry.stop_agent("C456")
        await registry.shutdown()
    """

    def __init__(
        self,
        factory: AgentFactory,
        idle_timeout_minutes: int = 30,
        cleanup_interval_seconds: int = 60,
        clock: Callable[[], float] = time.time
    ):
        """
        Args:
            factory: Coroutine building an uninitialized agent from (user_id, channel_id)
            idle_timeout_minutes: Idle agents are disposed after this, 0 disables cleanup
            cleanup_interval_seconds: How often to look for idle agents
            clock: Wall clock in seconds, must match the agents' clock
        """
        self.factory = factory
        self.idle_timeout_minutes = idle_timeout_minutes
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self.scheduler = AsyncIOScheduler()

        self._clock = clock
        self._agents: dict[str, Agent] = {}
        self._lock = asyncio.Lock()

    def start(self) -> None:
        """Start the idle-cleanup job."""
        if self.idle_timeout_minutes <= 0:
            logger.info("Idle agent cleanup disabled")
            return
        if self.scheduler.running:
            return

        self.scheduler.add_job(
            self.dispose_idle,
            trigger=IntervalTrigger(seconds=self.cleanup_interval_seconds),
            id=CLEANUP_JOB_ID,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(f"Idle cleanup every {self.cleanup_interval_seconds}s "
                    f"(timeout {self.idle_timeout_minutes} min)")

    def get(self, channel_id: str) -> Agent | None:
        return self._agents.get(channel_id)

    def channel_ids(self) -> list[str]:
        return list(self._agents.keys())

    def __len__(self) -> int:
        return len(self._agents)

    async def start_agent(self, user_id: str, channel_id: str) -> Agent:
        """
        Start an agent on a channel, or return the one already running.

        Raises:
            ConfigurationError: If the agent cannot be initialized
        """
        async with self._lock:
            existing = self._agents.get(channel_id)
            if existing is not None:
                return existing

            agent = await self.factory(user_id, channel_id)
            try:
                await agent.init()
            except Exception:
                await agent.dispose()
                raise

            self._agents[channel_id] = agent
            logger.info(f"Agent started on {channel_id} for {user_id}")
            return agent

    async def stop_agent(self, channel_id: str) -> bool:
        """Dispose the agent on a channel. Returns False if none was running."""
        async with self._lock:
            agent = self._agents.pop(channel_id, None)
        if agent is None:
            return False

        await agent.dispose()
        logger.info(f"Agent stopped on {channel_id}")
        return True

    async def dispose_idle(self) -> list[str]:
        """Dispose agents idle longer than the timeout. Returns their channels."""
        cutoff = self._clock() - self.idle_timeout_minutes * 60
        idle = [
            channel_id
            for channel_id, agent in list(self._agents.items())
            if agent.get_last_interaction() < cutoff
        ]

        for channel_id in idle:
            logger.info(f"Disposing idle agent on {channel_id}")
            try:
                await self.stop_agent(channel_id)
            except Exception as e:
                logger.error(f"Failed to dispose agent on {channel_id}", e)

        return idle

    async def shutdown(self) -> None:
        """Stop the cleanup job and dispose every agent."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

        for channel_id in self.channel_ids():
            try:
                await self.stop_agent(channel_id)
            except Exception as e:
                logger.error(f"Failed to dispose agent on {channel_id}", e)
