"""Event system for workflow progress."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

# Events that end a run's stream
TERMINAL_EVENTS = frozenset({"suspended", "completed", "error"})


@dataclass
class Event:
    """A workflow progress event."""

    run_id: str
    event_type: str
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_sse(self) -> str:
        """Convert to SSE format."""
        data_json = json.dumps({**self.data, "timestamp": self.timestamp.isoformat()})
        return f"event: {self.event_type}\ndata: {data_json}\n\n"


EventListener = Callable[[Event], None]


class EventBus:
    """Simple event bus for run events.

    Queue subscribers receive the events of one run (used for SSE);
    listeners are called synchronously for every event (used by the CLI).
    """

    def __init__(self):
        self._subscribers: dict[str, asyncio.Queue[Event]] = {}
        self._listeners: list[EventListener] = []

    def subscribe(self, run_id: str) -> asyncio.Queue[Event]:
        """Subscribe to events for a run."""
        if run_id not in self._subscribers:
            self._subscribers[run_id] = asyncio.Queue()
        return self._subscribers[run_id]

    def unsubscribe(self, run_id: str) -> None:
        """Unsubscribe from run events."""
        self._subscribers.pop(run_id, None)

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def publish(self, event: Event) -> None:
        """Publish an event."""
        for listener in list(self._listeners):
            listener(event)
        if event.run_id in self._subscribers:
            await self._subscribers[event.run_id].put(event)

    async def publish_phase_started(self, run_id: str, phase: str) -> None:
        """Publish a phase started event."""
        await self.publish(Event(run_id, "phase_started", {"phase": phase}))

    async def publish_phase_completed(
        self, run_id: str, phase: str, details: dict[str, Any] | None = None
    ) -> None:
        """Publish a phase completed event."""
        await self.publish(
            Event(run_id, "phase_completed", {"phase": phase, **(details or {})})
        )

    async def publish_suspended(self, run_id: str, payload: dict[str, Any]) -> None:
        """Publish that a run is waiting for approval."""
        await self.publish(Event(run_id, "suspended", payload))

    async def publish_completed(self, run_id: str, result: dict[str, Any]) -> None:
        """Publish a terminal result."""
        await self.publish(Event(run_id, "completed", result))

    async def publish_error(
        self, run_id: str, error: str, phase: str | None = None
    ) -> None:
        """Publish an error event."""
        await self.publish(Event(run_id, "error", {"error": error, "phase": phase}))
