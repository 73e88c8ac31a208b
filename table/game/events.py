"""Table events for the presentation layer."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable


class EventType(Enum):
    """Types of table events."""

    # Session flow events
    SEATS_SELECTED = auto()
    STYLE_SELECTED = auto()
    SESSION_ENDED = auto()
    SESSION_OVER = auto()
    ROUND_STARTED = auto()
    ROUND_ENDED = auto()

    # Betting events
    BET_PLACED = auto()
    SEAT_SITS_OUT = auto()

    # Card events
    CARD_DEALT = auto()
    SHOE_SHUFFLED = auto()

    # Seat action events
    TURN_STARTED = auto()
    COMPUTER_DECISION = auto()
    SEAT_HIT = auto()
    SEAT_STAND = auto()
    SEAT_DOUBLE = auto()

    # Dealer events
    DEALER_REVEALS = auto()
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()

    # Outcome events
    SEAT_NATURAL = auto()
    SEAT_BUSTS = auto()
    SEAT_WINS = auto()
    SEAT_LOSES = auto()
    PUSH = auto()

    # Error events
    INVALID_ACTION = auto()
    INVALID_BET = auto()


@dataclass(frozen=True)
class TableEvent:
    """
    Immutable table event.

    Events tell the presentation layer what happened, in order, so it can
    animate or narrate it. They never drive the engine.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"


EventHandler = Callable[[TableEvent], None]


class EventEmitter:
    """Event emitter that supports per-type and catch-all subscribers."""

    def __init__(self) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._event_history: list[TableEvent] = []

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Remove a handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_type: EventType, **data: Any) -> TableEvent:
        """
        Create an event, record it and notify subscribers.

        Returns:
            The created event
        """
        event = TableEvent(event_type=event_type, data=data)
        self._event_history.append(event)

        for handler in self._handlers.get(event_type, []):
            handler(event)
        for handler in self._handlers.get(None, []):
            handler(event)

        return event

    @property
    def history(self) -> list[TableEvent]:
        """Return the event history."""
        return self._event_history.copy()

    def clear_history(self) -> None:
        """Clear the event history."""
        self._event_history.clear()
