"""Card and Shoe classes - immutable cards dealt from a multi-deck shoe."""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Iterable, Iterator

from table.errors import EmptyShoe

logger = logging.getLogger(__name__)

# Cards left in the shoe below which a new round triggers a reshuffle
RESHUFFLE_THRESHOLD = 15


class Suit(Enum):
    """Card suits."""

    HEARTS = auto()
    DIAMONDS = auto()
    CLUBS = auto()
    SPADES = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.HEARTS: "♥",
            Suit.DIAMONDS: "♦",
            Suit.CLUBS: "♣",
            Suit.SPADES: "♠",
        }
        return symbols[self]


class Rank(Enum):
    """Card ranks with blackjack values."""

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    def __str__(self) -> str:
        return _RANK_LABELS[self]

    @property
    def blackjack_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self == Rank.ACE:
            return 11
        return min(self.value, 10)

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE


_RANK_LABELS = {
    Rank.ACE: "A",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    **{rank: str(rank.value) for rank in Rank if 2 <= rank.value <= 10},
}

_RANK_PARSE = {label: rank for rank, label in _RANK_LABELS.items()}
_RANK_PARSE["T"] = Rank.TEN

_SUIT_PARSE = {
    "H": Suit.HEARTS,
    "♥": Suit.HEARTS,
    "D": Suit.DIAMONDS,
    "♦": Suit.DIAMONDS,
    "C": Suit.CLUBS,
    "♣": Suit.CLUBS,
    "S": Suit.SPADES,
    "♠": Suit.SPADES,
}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card. Equal rank and suit means equal card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the blackjack point value."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', '10h'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str, suit_str = s[:-1], s[-1]
        if rank_str not in _RANK_PARSE:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in _SUIT_PARSE:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(_RANK_PARSE[rank_str], _SUIT_PARSE[suit_str])


def full_deck() -> list[Card]:
    """Return the 52 cards of one deck in a fixed order."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


class Shoe:
    """
    A multi-deck shoe for blackjack.

    Cards are drawn from the tail of the undealt list. Every drawn card is
    kept in the dealt history until the next reshuffle, so that
    ``cards_remaining + len(dealt_history) == total_cards`` always holds.
    """

    def __init__(
        self,
        num_decks: int = 6,
        rng: Random | None = None,
        reshuffle_threshold: int = RESHUFFLE_THRESHOLD,
    ) -> None:
        """
        Initialize and shuffle a shoe with multiple decks.

        Args:
            num_decks: Number of decks in the shoe
            rng: Random number generator for shuffling
            reshuffle_threshold: Remaining-card count below which the shoe
                asks to be reshuffled
        """
        if num_decks < 1:
            raise ValueError("Shoe must have at least 1 deck")
        if reshuffle_threshold < 0:
            raise ValueError("Reshuffle threshold cannot be negative")

        self._num_decks = num_decks
        self._reshuffle_threshold = reshuffle_threshold
        self._rng = rng or Random()
        self._cards: list[Card] = []
        self._dealt: list[Card] = []
        self.reshuffle()

    @classmethod
    def build(
        cls,
        num_decks: int,
        rng: Random | None = None,
        reshuffle_threshold: int = RESHUFFLE_THRESHOLD,
    ) -> "Shoe":
        """Build a freshly shuffled shoe with an empty dealt history."""
        return cls(num_decks=num_decks, rng=rng, reshuffle_threshold=reshuffle_threshold)

    def reshuffle(self) -> None:
        """Gather all decks back in, shuffle, and forget the dealt history."""
        self._cards = [card for _ in range(self._num_decks) for card in full_deck()]
        self._rng.shuffle(self._cards)
        self._dealt = []
        logger.debug("Shoe reshuffled with %d decks", self._num_decks)

    def draw(self) -> Card:
        """Draw the next card from the shoe."""
        if not self._cards:
            raise EmptyShoe("Cannot draw from empty shoe")
        card = self._cards.pop()
        self._dealt.append(card)
        return card

    def stack(self, cards: Iterable[Card]) -> None:
        """
        Put specific cards on top of the shoe.

        The cards will be drawn in the given order. Each one is taken out of
        the undealt pool, so the shoe keeps its composition.

        Raises:
            ValueError: If a card is not among the undealt cards
        """
        cards = list(cards)
        for card in cards:
            try:
                self._cards.remove(card)
            except ValueError:
                raise ValueError(f"{card} is not left in the shoe") from None
        self._cards.extend(reversed(cards))

    @property
    def needs_reshuffle(self) -> bool:
        """Check if the remaining cards dropped below the low-water mark."""
        return len(self._cards) < self._reshuffle_threshold

    @property
    def dealt_history(self) -> list[Card]:
        """Return the cards dealt since the last reshuffle, oldest first."""
        return self._dealt.copy()

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def cards_dealt(self) -> int:
        """Return the number of cards dealt since the last reshuffle."""
        return len(self._dealt)

    @property
    def total_cards(self) -> int:
        """Return the number of cards in a full shoe."""
        return self._num_decks * 52

    @property
    def num_decks(self) -> int:
        """Return the number of decks in the shoe."""
        return self._num_decks

    @property
    def decks_remaining(self) -> float:
        """Return the estimated number of decks remaining."""
        return len(self._cards) / 52

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)
