"""
Channel Events
==============

A small observer implementation used by every chat channel.

Listeners are registered with EventEmitter.on(), which returns a
Subscription handle. Closing the handle removes the listener; closing
twice is a no-op, so owners can always close in their teardown path.

Coroutine listeners are scheduled as independent tasks, so one slow
listener (a streamed reply, say) never blocks the dispatch of the next
event. The emitter keeps a reference to every pending task until it
finishes and logs any exception it raised.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable

from scribe.utils.logger import Logger

logger = Logger("Events")

Event = dict[str, Any]
Listener = Callable[[Event], Awaitable[None] | None]


class Subscription:
    """Handle for one registered listener."""

    def __init__(self, emitter: "EventEmitter", event_type: str, listener: Listener):
        self._emitter = emitter
        self.event_type = event_type
        self.listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        """Unsubscribe the listener. Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        self._emitter.off(self.event_type, self.listener)


class EventEmitter:
    """
    Maps event types to listeners and dispatches events to them.

    Example:
        emitter = EventEmitter()
        subscription = emitter.on("message.new", handle_message)

        tasks = emitter.dispatch({"type": "message.new", "message": msg})
        await asyncio.gather(*tasks)

        subscription.close()
    """

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}
        self._pending: set[asyncio.Task] = set()

    def on(self, event_type: str, listener: Listener) -> Subscription:
        """Register a listener and return its subscription handle."""
        self._listeners.setdefault(event_type, []).append(listener)
        return Subscription(self, event_type, listener)

    def off(self, event_type: str, listener: Listener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        listeners = self._listeners.get(event_type)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event_type]

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    def dispatch(self, event: Event) -> list[asyncio.Task]:
        """
        Deliver an event to every listener of its type.

        Must be called from a running event loop when any listener is a
        coroutine function.

        Returns:
            The tasks created for coroutine listeners
        """
        event_type = event.get("type", "")
        tasks = []

        # Copy so listeners may unsubscribe while we iterate
        for listener in list(self._listeners.get(event_type, [])):
            result = listener(event)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._on_task_done)
                tasks.append(task)

        return tasks

    async def drain(self) -> None:
        """Wait until every dispatched listener task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def clear(self) -> None:
        """Drop every listener. Pending tasks keep running."""
        self._listeners.clear()

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Event listener failed", error)
