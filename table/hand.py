"""Hand scoring for blackjack."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from table.cards import Card


def score(cards: Iterable[Card]) -> int:
    """
    Calculate the best blackjack total of a set of cards.

    Aces count 11 and drop to 1 one at a time while the total is over 21.
    Returns the highest total that doesn't bust, or the lowest bust total.
    """
    total = 0
    aces = 0

    for card in cards:
        if card.is_ace:
            aces += 1
        total += card.value

    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return total


def is_natural(cards: Iterable[Card]) -> bool:
    """Check for a two-card 21."""
    cards = list(cards)
    return len(cards) == 2 and score(cards) == 21


def is_soft(cards: Iterable[Card]) -> bool:
    """
    Check if a hand counts as soft for play decisions.

    Any hand holding an ace that hasn't busted is treated as soft.
    """
    cards = list(cards)
    return any(card.is_ace for card in cards) and score(cards) <= 21


class Outcome(Enum):
    """Result of a seat's hand against the dealer."""

    WIN = "win"
    LOSE = "lose"
    PUSH = "push"
    BUST = "bust"
    NATURAL = "natural"


def compare(seat_score: int, dealer_score: int) -> Outcome:
    """Compare a seat's final total with the dealer's final total."""
    if seat_score > 21:
        return Outcome.BUST
    if dealer_score > 21:
        return Outcome.WIN
    if seat_score > dealer_score:
        return Outcome.WIN
    if seat_score < dealer_score:
        return Outcome.LOSE
    return Outcome.PUSH


@dataclass
class Hand:
    """A blackjack hand. The score is derived from the cards on every read."""

    cards: list[Card] = field(default_factory=list)

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    def clear(self) -> None:
        """Remove all cards from the hand."""
        self.cards.clear()

    @property
    def score(self) -> int:
        return score(self.cards)

    @property
    def is_soft(self) -> bool:
        return is_soft(self.cards)

    @property
    def is_natural(self) -> bool:
        return is_natural(self.cards)

    @property
    def is_busted(self) -> bool:
        return self.score > 21

    @property
    def can_double(self) -> bool:
        """Check if the hand is still on its first two cards."""
        return len(self.cards) == 2

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        if self.is_busted:
            return f"{cards_str} (BUST)"
        if self.is_natural:
            return f"{cards_str} (NATURAL)"
        return f"{cards_str} ({self.score})"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, score={self.score})"
