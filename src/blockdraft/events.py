"""Event bus infrastructure for decoupled editor communication.

The editor session publishes document events here so that hosts (a Qt
surface, a status bar, a persistence layer) can react without holding a
direct reference to each other.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Generic,
    TypeVar,
    TYPE_CHECKING,
)
from weakref import WeakMethod, ref

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

    from .editor.document_model import SelectionState

logger = logging.getLogger(__name__)

# Type variable for event types
E = TypeVar("E", bound="Event")

# Handler type: a callable that takes an event and returns None
Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events in the system.

    Example::

        @dataclass(slots=True)
        class DocumentSaved(Event):
            path: str
    """

    pass


# =============================================================================
# Document Events
# =============================================================================


@dataclass(slots=True)
class DocumentChanged(Event):
    """Emitted after a transition produced a new document snapshot.

    Attributes:
        transition: Wire name of the transition that was applied.
        block_count: Number of blocks in the new snapshot.
    """

    transition: str
    block_count: int


@dataclass(slots=True)
class SelectionChanged(Event):
    """Emitted when the block-anchored selection moves."""

    selection: "SelectionState"


@dataclass(slots=True)
class HistoryChanged(Event):
    """Emitted when the depth of either history stack changes.

    Attributes:
        undo_depth: Number of snapshots available to undo.
        redo_depth: Number of snapshots available to redo.
    """

    undo_depth: int
    redo_depth: int


@dataclass(slots=True)
class TransitionSkipped(Event):
    """Emitted when a transition resolved to a no-op.

    Attributes:
        transition: Wire name of the skipped transition.
        reason: Short human-readable explanation.
    """

    transition: str
    reason: str


@dataclass(slots=True)
class DocumentLoaded(Event):
    """Emitted when a session replaces its document wholesale."""

    block_count: int
    path: str | None = None


# High-frequency event types that should not log each publish
_QUIET_EVENT_TYPES: set[type] = {SelectionChanged}


class EventBus(Generic[E]):
    """A typed publish-subscribe event bus for decoupled communication.

    Handlers are stored as weak references where possible to prevent memory
    leaks.

    Example::

        bus = EventBus()

        def on_changed(event: DocumentChanged) -> None:
            print(event.block_count)

        bus.subscribe(DocumentChanged, on_changed)
        bus.publish(DocumentChanged(transition="UNDO", block_count=1))
        bus.unsubscribe(DocumentChanged, on_changed)

    Thread Safety:
        This implementation is NOT thread-safe. All operations should be
        performed from the thread that owns the editor session.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        """Initialize an empty event bus."""
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register a handler to receive events of the specified type.

        Args:
            event_type: The class of events to subscribe to.
            handler: A callable that will be invoked with the event.

        Note:
            Subscribing the same handler multiple times will result in
            multiple invocations when an event is published.
        """
        handler_ref = _HandlerRef.create(handler)
        self._handlers[event_type].append(handler_ref)
        logger.debug(
            "Subscribed handler %s to event type %s",
            _handler_name(handler),
            event_type.__name__,
        )

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove a previously registered handler.

        If the handler was registered multiple times, only the first
        occurrence is removed. Unknown handlers are ignored.
        """
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return

        for i, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(i)
                logger.debug(
                    "Unsubscribed handler %s from event type %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
                return

    def publish(self, event: E) -> None:
        """Broadcast an event to all registered handlers.

        Handlers are invoked synchronously in the order they were
        registered. If a handler raises an exception, it is logged
        and remaining handlers continue to be invoked.
        """
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        is_quiet = event_type in _QUIET_EVENT_TYPES

        if handlers is None:
            if not is_quiet:
                logger.debug("No handlers for event type %s", event_type.__name__)
            return

        if not is_quiet:
            logger.debug(
                "Publishing %s to %d handler(s)",
                event_type.__name__,
                len(handlers),
            )

        dead_indices: list[int] = []

        for i, handler_ref in enumerate(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead_indices.append(i)
                continue

            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        for i in reversed(dead_indices):
            handlers.pop(i)

    def clear(self) -> None:
        """Remove all registered handlers."""
        self._handlers.clear()
        logger.debug("Cleared all event handlers")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the number of registered handlers.

        Args:
            event_type: If provided, return count for that event type only.
                       If None, return total count across all event types.
        """
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Wrapper for handler references supporting both weak and strong refs.

    Bound methods are held through ``WeakMethod`` so subscribers can be
    garbage collected; plain functions and lambdas are held strongly.
    """

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | ref | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        """Create a handler reference, using weak refs where possible."""
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                # Some callables can't be weakly referenced
                pass

        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        """Return the handler callable, or None if it was garbage collected."""
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        if resolved is None:
            return False
        return resolved == handler


def _handler_name(handler: Any) -> str:
    """Get a human-readable name for a handler for logging purposes."""
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        cls_name = type(handler.__self__).__name__
        return f"{cls_name}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "DocumentChanged",
    "SelectionChanged",
    "HistoryChanged",
    "TransitionSkipped",
    "DocumentLoaded",
]
