"""Table rule configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TableRules:
    """
    House rules for one table.

    Everything that changes how rounds are dealt, played or paid.
    """

    # Shoe configuration
    num_decks: int = 6
    reshuffle_threshold: int = 15  # Reshuffle before a round below this many cards

    # Seats and chips
    max_seats: int = 3
    starting_chips: int = 10000

    # Fixed stakes for computer seats, by style
    aggressive_bet: int = 100
    conservative_bet: int = 50

    # Dealer draws while below this total, soft or hard
    dealer_stands_on: int = 17

    # None: a natural is an ordinary 21 settled against the dealer.
    # A multiplier: a natural is paid that multiple of the bet right after the deal.
    natural_payout: float | None = None

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.num_decks < 1 or self.num_decks > 8:
            raise ValueError("num_decks must be between 1 and 8")
        if self.reshuffle_threshold < 0:
            raise ValueError("reshuffle_threshold cannot be negative")
        if self.max_seats < 1:
            raise ValueError("max_seats must be at least 1")
        if self.starting_chips < 0:
            raise ValueError("starting_chips cannot be negative")
        if self.aggressive_bet < 1 or self.conservative_bet < 1:
            raise ValueError("computer stakes must be positive")
        if self.natural_payout is not None and self.natural_payout < 1.0:
            raise ValueError("natural_payout must be at least 1.0")

    @classmethod
    def single_seat(cls) -> "TableRules":
        """Solo table where a natural pays 2.5x the bet on the spot."""
        return cls(max_seats=1, natural_payout=2.5)
