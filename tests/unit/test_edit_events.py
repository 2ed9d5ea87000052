"""
Tests for the edit notification bus.
"""

import pytest

from cascade_edit.edit_events import (
    EDIT_APPLIED,
    Event,
    EventBus,
    create_edit_applied_event,
)


class TestEvent:
    """Tests for Event dataclass."""

    def test_create_event_basic(self):
        """Test basic event creation."""
        event = Event(event_type="test_event", source="test_source", payload={"key": "value"})

        assert event.event_type == "test_event"
        assert event.source == "test_source"
        assert event.payload == {"key": "value"}
        assert event.event_id is not None

    def test_none_payload_normalized(self):
        event = Event(event_type="x", source="y", payload=None)
        assert event.payload == {}

    def test_to_dict(self):
        event = Event(event_type="x", source="y")
        data = event.to_dict()
        assert set(data) == {"event_id", "event_type", "source", "payload", "timestamp"}
        assert data["event_type"] == "x"

    def test_edit_applied_event(self):
        """The edit:applied payload carries the path and both contents."""
        event = create_edit_applied_event("/w/a.py", "old", "new")
        assert event.event_type == EDIT_APPLIED == "edit:applied"
        assert event.payload == {
            "path": "/w/a.py",
            "before_content": "old",
            "after_content": "new",
        }


class TestEventBus:
    """Tests for subscription and delivery."""

    @pytest.fixture
    def bus(self):
        return EventBus()

    def test_emit_to_global_handler(self, bus):
        received = []
        bus.subscribe(received.append)

        handled = bus.emit(Event(event_type="anything", source="test"))

        assert handled == 1
        assert len(received) == 1

    def test_type_filter(self, bus):
        received = []
        bus.subscribe(received.append, event_types={EDIT_APPLIED})

        bus.emit(Event(event_type="other", source="test"))
        bus.emit(create_edit_applied_event("a", "b", "c"))

        assert [e.event_type for e in received] == [EDIT_APPLIED]

    def test_typed_handlers_run_before_global(self, bus):
        order = []
        bus.subscribe(lambda e: order.append("global"))
        bus.subscribe(lambda e: order.append("typed"), event_types={"t"})

        bus.emit(Event(event_type="t", source="test"))

        assert order == ["typed", "global"]

    def test_unsubscribe(self, bus):
        received = []
        sub_id = bus.subscribe(received.append)

        assert bus.unsubscribe(sub_id) is True
        assert bus.unsubscribe(sub_id) is False
        assert bus.emit(Event(event_type="x", source="test")) == 0
        assert received == []

    def test_failing_handler_goes_to_dead_letters(self, bus):
        received = []

        def broken(event):
            raise ValueError("handler failure")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        event = Event(event_type="x", source="test")
        handled = bus.emit(event)

        assert handled == 1
        assert len(received) == 1
        assert len(bus.dead_letters) == 1
        dead_event, error = bus.dead_letters[0]
        assert dead_event is event
        assert isinstance(error, ValueError)

    def test_dead_letters_bounded(self):
        bus = EventBus(max_dead_letters=2)

        def broken(event):
            raise RuntimeError("nope")

        bus.subscribe(broken)
        for _ in range(5):
            bus.emit(Event(event_type="x", source="test"))

        assert len(bus.dead_letters) == 2
        assert bus.clear_dead_letters() == 2
        assert bus.dead_letters == []
