"""Seats and the dealer."""

from dataclasses import dataclass, field
from enum import Enum

from table.cards import Card
from table.hand import Hand, Outcome
from table.strategy.decision import PlayStyle


class ControlType(Enum):
    """Who makes the decisions for a seat."""

    HUMAN = "human"
    COMPUTER = "computer"


@dataclass(frozen=True)
class SeatResult:
    """How a seat's round ended."""

    outcome: Outcome
    credit: int  # Chips returned to the seat, stake included

    @property
    def label(self) -> str:
        return self.outcome.value


@dataclass
class Seat:
    """
    One player position at the table.

    Chips and identity last for the whole session; hand, bet and result are
    cleared every round.
    """

    name: str
    control: ControlType = ControlType.HUMAN
    chips: int = 0
    style: PlayStyle | None = None
    hand: Hand = field(default_factory=Hand)
    bet: int = 0
    in_round: bool = False
    result: SeatResult | None = None

    @property
    def is_human(self) -> bool:
        return self.control == ControlType.HUMAN

    @property
    def is_computer(self) -> bool:
        return self.control == ControlType.COMPUTER

    @property
    def is_broke(self) -> bool:
        return self.chips <= 0

    @property
    def score(self) -> int:
        return self.hand.score

    @property
    def can_double(self) -> bool:
        """Two cards and enough chips left to match the bet."""
        return self.hand.can_double and self.chips >= self.bet

    @property
    def is_settled(self) -> bool:
        return self.result is not None

    def place_bet(self, amount: int) -> None:
        """Move chips from the stack to the bet."""
        self.chips -= amount
        self.bet = amount
        self.in_round = True

    def double_bet(self) -> None:
        """Match the bet from the stack."""
        self.chips -= self.bet
        self.bet *= 2

    def settle(self, result: SeatResult) -> None:
        self.chips += result.credit
        self.result = result

    def reset_round(self) -> None:
        """Clear round state, keeping chips."""
        self.hand.clear()
        self.bet = 0
        self.in_round = False
        self.result = None


@dataclass
class Dealer:
    """The dealer's hand. Only the first card shows until the hole card is revealed."""

    hand: Hand = field(default_factory=Hand)
    hole_card_revealed: bool = False

    @property
    def upcard(self) -> Card | None:
        return self.hand.cards[0] if self.hand.cards else None

    @property
    def score(self) -> int:
        return self.hand.score

    @property
    def visible_score(self) -> int:
        """Score of the cards a seat can see."""
        if self.hole_card_revealed:
            return self.hand.score
        return self.upcard.value if self.upcard else 0

    def is_concealed(self, index: int) -> bool:
        """Check if the card at this position is face down."""
        return index > 0 and not self.hole_card_revealed

    def reset_round(self) -> None:
        self.hand.clear()
        self.hole_card_revealed = False
