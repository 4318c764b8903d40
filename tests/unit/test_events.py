"""Unit tests for the event bus."""

import json

import pytest

from agent_cloud.core.events import TERMINAL_EVENTS, Event, EventBus


class TestEventBus:
    """Tests for EventBus."""

    @pytest.mark.asyncio
    async def test_subscriber_receives_run_events(self):
        bus = EventBus()
        queue = bus.subscribe("run1")

        await bus.publish_phase_started("run1", "analysis")
        await bus.publish_phase_started("run2", "analysis")

        event = queue.get_nowait()
        assert event.event_type == "phase_started"
        assert event.data == {"phase": "analysis"}
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_subscribe_is_idempotent(self):
        bus = EventBus()
        assert bus.subscribe("run1") is bus.subscribe("run1")

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        queue = bus.subscribe("run1")
        bus.unsubscribe("run1")

        await bus.publish_completed("run1", {"success": True})
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_listeners_see_every_event(self):
        bus = EventBus()
        seen: list[Event] = []
        bus.add_listener(seen.append)

        await bus.publish_phase_completed("run1", "planning", {"estimatedCost": 45.0})
        await bus.publish_suspended("run2", {"message": "approve?"})
        bus.remove_listener(seen.append)
        await bus.publish_error("run3", "boom")

        assert [e.event_type for e in seen] == ["phase_completed", "suspended"]
        assert seen[0].data == {"phase": "planning", "estimatedCost": 45.0}

    @pytest.mark.asyncio
    async def test_error_event(self):
        bus = EventBus()
        queue = bus.subscribe("run1")

        await bus.publish_error("run1", "boom", phase="execution")

        event = queue.get_nowait()
        assert event.event_type in TERMINAL_EVENTS
        assert event.data == {"error": "boom", "phase": "execution"}


class TestEvent:
    """Tests for SSE formatting."""

    def test_to_sse(self):
        event = Event("run1", "completed", {"success": True})
        text = event.to_sse()

        assert text.startswith("event: completed\ndata: ")
        assert text.endswith("\n\n")
        payload = json.loads(text.split("data: ", 1)[1])
        assert payload["success"] is True
        assert "timestamp" in payload
