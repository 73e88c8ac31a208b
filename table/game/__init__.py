"""Table engine and round state management."""

from table.game.events import TableEvent, EventType
from table.game.state import RoundPhase
from table.game.seat import ControlType, Dealer, Seat, SeatResult
from table.game.engine import BlackjackTable

__all__ = [
    "TableEvent",
    "EventType",
    "RoundPhase",
    "ControlType",
    "Dealer",
    "Seat",
    "SeatResult",
    "BlackjackTable",
]
