"""Tests for AgentRegistry: one agent per channel and idle cleanup."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from scribe.agent.core import Agent, AgentState
from scribe.agent.registry import CLEANUP_JOB_ID, AgentRegistry
from scribe.search.tavily import TavilySearchClient
from scribe.utils.config import ConfigurationError
from tests.fakes import FakeChannel, FakeClock, FakeCompletion, make_config


def _factory(clock: FakeClock, config=None):
    created = []

    async def factory(user_id: str, channel_id: str) -> Agent:
        channel = FakeChannel(channel_id, user_id)
        agent = Agent(
            channel,
            config=config or make_config(),
            completion=FakeCompletion(),
            search=AsyncMock(spec=TavilySearchClient),
            clock=clock,
        )
        created.append(agent)
        return agent

    return factory, created


@pytest.mark.asyncio
async def test_start_agent_initializes_and_tracks():
    clock = FakeClock()
    factory, created = _factory(clock)
    registry = AgentRegistry(factory, clock=clock)

    agent = await registry.start_agent("U1", "C1")

    assert agent.state is AgentState.READY
    assert registry.get("C1") is agent
    assert registry.channel_ids() == ["C1"]
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_start_agent_reuses_running_agent():
    clock = FakeClock()
    factory, created = _factory(clock)
    registry = AgentRegistry(factory, clock=clock)

    first = await registry.start_agent("U1", "C1")
    second = await registry.start_agent("U2", "C1")

    assert first is second
    assert len(created) == 1


@pytest.mark.asyncio
async def test_failed_init_disposes_agent_and_propagates():
    clock = FakeClock()
    factory, created = _factory(clock, config=make_config(openai_key=None))
    registry = AgentRegistry(factory, clock=clock)

    with pytest.raises(ConfigurationError):
        await registry.start_agent("U1", "C1")

    assert registry.get("C1") is None
    assert created[0].channel.disconnected is True


@pytest.mark.asyncio
async def test_stop_agent():
    clock = FakeClock()
    factory, _ = _factory(clock)
    registry = AgentRegistry(factory, clock=clock)
    agent = await registry.start_agent("U1", "C1")

    assert await registry.stop_agent("C1") is True
    assert await registry.stop_agent("C1") is False
    assert agent.state is AgentState.DISPOSED


@pytest.mark.asyncio
async def test_dispose_idle_only_removes_stale_agents():
    clock = FakeClock(0.0)
    factory, _ = _factory(clock)
    registry = AgentRegistry(factory, idle_timeout_minutes=30, clock=clock)

    stale = await registry.start_agent("U1", "C-stale")
    clock.advance(20 * 60)
    fresh = await registry.start_agent("U1", "C-fresh")
    clock.advance(11 * 60)

    disposed = await registry.dispose_idle()

    assert disposed == ["C-stale"]
    assert stale.state is AgentState.DISPOSED
    assert fresh.state is AgentState.READY
    assert registry.channel_ids() == ["C-fresh"]


@pytest.mark.asyncio
async def test_scheduler_job_and_shutdown():
    clock = FakeClock()
    factory, _ = _factory(clock)
    registry = AgentRegistry(factory, cleanup_interval_seconds=5, clock=clock)
    agent = await registry.start_agent("U1", "C1")

    registry.start()
    assert registry.scheduler.get_job(CLEANUP_JOB_ID) is not None

    await registry.shutdown()

    assert agent.state is AgentState.DISPOSED
    assert len(registry) == 0


def test_cleanup_disabled_with_zero_timeout():
    registry = AgentRegistry(AsyncMock(), idle_timeout_minutes=0)
    registry.start()
    assert registry.scheduler.running is False
