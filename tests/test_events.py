"""Unit tests for :mod:`blockdraft.events`."""

from __future__ import annotations

import gc
import logging
from dataclasses import dataclass

from blockdraft.editor.document_model import SelectionState
from blockdraft.events import (
    DocumentChanged,
    DocumentLoaded,
    Event,
    EventBus,
    HistoryChanged,
    SelectionChanged,
    TransitionSkipped,
)


@dataclass(slots=True)
class SampleEvent(Event):
    """A sample event for testing."""

    message: str
    value: int = 0


@dataclass(slots=True)
class AnotherEvent(Event):
    """Another event type for testing isolation."""

    data: str


class TestEditorEvents:
    """Tests for the document event payloads."""

    def test_events_are_slotted_dataclasses(self) -> None:
        event = DocumentChanged(transition="UNDO", block_count=2)
        assert event.transition == "UNDO"
        assert hasattr(event, "__slots__")

    def test_defaults(self) -> None:
        assert DocumentLoaded(block_count=1).path is None
        assert HistoryChanged(undo_depth=1, redo_depth=0).redo_depth == 0
        assert TransitionSkipped(transition="REDO", reason="nothing to redo").reason == "nothing to redo"


class TestEventBusSubscription:
    """Tests for EventBus subscription functionality."""

    def test_subscribe_adds_handler(self) -> None:
        bus: EventBus[Event] = EventBus()
        bus.subscribe(SampleEvent, lambda e: None)
        assert bus.handler_count(SampleEvent) == 1
        assert bus.handler_count() == 1

    def test_subscribe_same_handler_twice(self) -> None:
        """Subscribing the same handler twice results in two registrations."""
        bus: EventBus[Event] = EventBus()
        received: list[SampleEvent] = []

        def handler(event: SampleEvent) -> None:
            received.append(event)

        bus.subscribe(SampleEvent, handler)
        bus.subscribe(SampleEvent, handler)
        bus.publish(SampleEvent(message="twice"))

        assert len(received) == 2

    def test_unsubscribe_removes_first_registration_only(self) -> None:
        bus: EventBus[Event] = EventBus()

        def handler(event: SampleEvent) -> None:
            pass

        bus.subscribe(SampleEvent, handler)
        bus.subscribe(SampleEvent, handler)
        bus.unsubscribe(SampleEvent, handler)

        assert bus.handler_count(SampleEvent) == 1

    def test_unsubscribe_unknown_handler_is_ignored(self) -> None:
        bus: EventBus[Event] = EventBus()
        bus.unsubscribe(SampleEvent, lambda e: None)
        assert bus.handler_count() == 0

    def test_clear_removes_everything(self) -> None:
        bus: EventBus[Event] = EventBus()
        bus.subscribe(SampleEvent, lambda e: None)
        bus.subscribe(AnotherEvent, lambda e: None)
        bus.clear()
        assert bus.handler_count() == 0


class TestEventBusPublish:
    """Tests for EventBus publish functionality."""

    def test_publish_reaches_only_matching_type(self) -> None:
        bus: EventBus[Event] = EventBus()
        samples: list[SampleEvent] = []
        others: list[AnotherEvent] = []
        bus.subscribe(SampleEvent, samples.append)
        bus.subscribe(AnotherEvent, others.append)

        bus.publish(SampleEvent(message="hello", value=3))

        assert [event.value for event in samples] == [3]
        assert others == []

    def test_handlers_run_in_registration_order(self) -> None:
        bus: EventBus[Event] = EventBus()
        order: list[str] = []
        bus.subscribe(SampleEvent, lambda e: order.append("first"))
        bus.subscribe(SampleEvent, lambda e: order.append("second"))

        bus.publish(SampleEvent(message="x"))

        assert order == ["first", "second"]

    def test_publish_without_handlers_is_silent(self) -> None:
        bus: EventBus[Event] = EventBus()
        bus.publish(SampleEvent(message="nobody listening"))

    def test_failing_handler_does_not_stop_others(self, caplog) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[SampleEvent] = []

        def broken(event: SampleEvent) -> None:
            raise RuntimeError("boom")

        bus.subscribe(SampleEvent, broken)
        bus.subscribe(SampleEvent, received.append)

        with caplog.at_level(logging.ERROR, logger="blockdraft.events"):
            bus.publish(SampleEvent(message="x"))

        assert len(received) == 1
        assert "broken" in caplog.text

    def test_selection_changes_publish_quietly(self, caplog) -> None:
        bus: EventBus[Event] = EventBus()
        bus.subscribe(SelectionChanged, lambda e: None)

        with caplog.at_level(logging.DEBUG, logger="blockdraft.events"):
            bus.publish(SelectionChanged(selection=SelectionState.caret("b1")))

        assert "Publishing SelectionChanged" not in caplog.text


class TestWeakReferences:
    """Bound-method handlers must not keep their owners alive."""

    def test_dead_bound_method_is_dropped_on_publish(self) -> None:
        bus: EventBus[Event] = EventBus()

        class Listener:
            def __init__(self) -> None:
                self.received: list[SampleEvent] = []

            def on_event(self, event: SampleEvent) -> None:
                self.received.append(event)

        listener = Listener()
        bus.subscribe(SampleEvent, listener.on_event)
        bus.publish(SampleEvent(message="alive"))
        assert len(listener.received) == 1

        del listener
        gc.collect()
        bus.publish(SampleEvent(message="gone"))

        assert bus.handler_count(SampleEvent) == 0
