"""Round phase enumeration."""

from enum import Enum, auto


class RoundPhase(Enum):
    """
    Table state machine phases.

    Flow: MODE_SELECT → STYLE_SELECT → BETTING → PLAYING → DEALER_TURN → SETTLEMENT → BETTING
    Any phase can reset to MODE_SELECT, SETTLEMENT can end in SESSION_OVER.
    """

    # Choosing how many seats are at the table
    MODE_SELECT = auto()

    # Choosing a play style for each computer seat
    STYLE_SELECT = auto()

    # Seats place bets in seat order
    BETTING = auto()

    # Seats act one at a time
    PLAYING = auto()

    # Dealer reveals and draws
    DEALER_TURN = auto()

    # Bets resolved, waiting for the next round
    SETTLEMENT = auto()

    # Every seat is out of chips
    SESSION_OVER = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()
