"""Tests for channel.events: subscriptions and dispatch."""

from __future__ import annotations

import asyncio
from unittest.mock import Mock

import pytest

from scribe.channel.events import EventEmitter


def test_sync_listener_is_called_with_event():
    emitter = EventEmitter()
    listener = Mock(return_value=None)
    emitter.on("ping", listener)

    tasks = emitter.dispatch({"type": "ping", "n": 1})

    listener.assert_called_once_with({"type": "ping", "n": 1})
    assert tasks == []


def test_only_matching_type_is_delivered():
    emitter = EventEmitter()
    listener = Mock(return_value=None)
    emitter.on("ping", listener)

    emitter.dispatch({"type": "pong"})

    listener.assert_not_called()


def test_subscription_close_is_idempotent():
    emitter = EventEmitter()
    listener = Mock(return_value=None)
    subscription = emitter.on("ping", listener)

    subscription.close()
    subscription.close()
    emitter.dispatch({"type": "ping"})

    assert subscription.active is False
    assert emitter.listener_count("ping") == 0
    listener.assert_not_called()


def test_closing_one_subscription_keeps_others():
    emitter = EventEmitter()
    first = Mock(return_value=None)
    second = Mock(return_value=None)
    emitter.on("ping", first).close()
    emitter.on("ping", second)

    emitter.dispatch({"type": "ping"})

    first.assert_not_called()
    second.assert_called_once()


def test_off_unknown_listener_is_ignored():
    emitter = EventEmitter()
    emitter.off("ping", Mock())
    assert emitter.listener_count("ping") == 0


@pytest.mark.asyncio
async def test_coroutine_listeners_run_as_independent_tasks():
    emitter = EventEmitter()
    order = []
    gate = asyncio.Event()

    async def slow(event):
        await gate.wait()
        order.append("slow")

    async def fast(event):
        order.append("fast")

    emitter.on("ping", slow)
    emitter.on("ping", fast)

    tasks = emitter.dispatch({"type": "ping"})
    assert len(tasks) == 2

    await asyncio.sleep(0)
    assert order == ["fast"]

    gate.set()
    await asyncio.gather(*tasks)
    assert order == ["fast", "slow"]


@pytest.mark.asyncio
async def test_listener_may_unsubscribe_during_dispatch():
    emitter = EventEmitter()
    calls = []

    def once(event):
        calls.append(event["type"])
        subscription.close()

    subscription = emitter.on("ping", once)
    emitter.dispatch({"type": "ping"})
    emitter.dispatch({"type": "ping"})

    assert calls == ["ping"]


@pytest.mark.asyncio
async def test_drain_waits_for_pending_listeners_and_swallows_their_errors():
    emitter = EventEmitter()
    finished = []

    async def ok(event):
        await asyncio.sleep(0)
        finished.append("ok")

    async def broken(event):
        raise RuntimeError("listener bug")

    emitter.on("ping", ok)
    emitter.on("ping", broken)
    emitter.dispatch({"type": "ping"})

    await emitter.drain()

    assert finished == ["ok"]
