"""Decision types shared by the local policy and the advisory client."""

from dataclasses import dataclass
from enum import Enum

from table.cards import Card
from table.hand import is_soft, score


class Action(Enum):
    """Actions a seat can take on its turn. Split is not offered."""

    HIT = "HIT"
    STAND = "STAND"
    DOUBLE = "DOUBLE"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: str) -> "Action":
        """
        Parse an action token such as 'hit' or ' DOUBLE '.

        Raises:
            ValueError: If the token names no known action
        """
        try:
            return cls(token.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown action: {token!r}") from None


class PlayStyle(Enum):
    """Personality of a computer-controlled seat."""

    AGGRESSIVE = "aggressive"
    CONSERVATIVE = "conservative"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DecisionContext:
    """Everything a computer seat looks at when choosing an action."""

    cards: tuple[Card, ...]
    dealer_upcard: Card
    chips: int
    bet: int
    style: PlayStyle
    seat_name: str = "Player"

    @property
    def score(self) -> int:
        return score(self.cards)

    @property
    def is_soft(self) -> bool:
        return is_soft(self.cards)

    @property
    def can_double(self) -> bool:
        """Two cards and enough chips left to match the bet."""
        return len(self.cards) == 2 and self.chips >= self.bet

    @property
    def dealer_value(self) -> int:
        """Dealer upcard value (Ace = 11, face cards = 10)."""
        return self.dealer_upcard.value


@dataclass(frozen=True)
class Decision:
    """An action plus a short display-only rationale."""

    action: Action
    reason: str
    source: str = "local"

    def __str__(self) -> str:
        return f"{self.action}: {self.reason}"
