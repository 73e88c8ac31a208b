"""Remaining-card statistics derived from a shoe's dealt history."""

from dataclasses import dataclass
from typing import Iterable, Mapping

from table.cards import Card, Rank, Shoe, Suit

# Hi-Lo tags: low cards +1, neutral 0, tens and aces -1
HILO_TAGS: Mapping[Rank, int] = {
    Rank.TWO: 1,
    Rank.THREE: 1,
    Rank.FOUR: 1,
    Rank.FIVE: 1,
    Rank.SIX: 1,
    Rank.SEVEN: 0,
    Rank.EIGHT: 0,
    Rank.NINE: 0,
    Rank.TEN: -1,
    Rank.JACK: -1,
    Rank.QUEEN: -1,
    Rank.KING: -1,
    Rank.ACE: -1,
}


@dataclass(frozen=True)
class RankCount:
    """Dealt and remaining copies of one rank (or one exact card)."""

    dealt: int
    remaining: int

    @property
    def total(self) -> int:
        return self.dealt + self.remaining


def counts_by_rank(
    dealt_history: Iterable[Card],
    num_decks: int,
) -> dict[Rank, RankCount]:
    """
    Count dealt and remaining cards per rank.

    Each rank appears four times per deck, once per suit. Counts are rebuilt
    from the full history on every call.
    """
    dealt = {rank: 0 for rank in Rank}
    for card in dealt_history:
        dealt[card.rank] += 1

    per_rank = num_decks * 4
    return {
        rank: RankCount(dealt=dealt[rank], remaining=per_rank - dealt[rank])
        for rank in Rank
    }


def counts_by_card(
    dealt_history: Iterable[Card],
    num_decks: int,
) -> dict[Card, RankCount]:
    """Count dealt and remaining copies of every exact rank and suit."""
    dealt = {Card(rank, suit): 0 for suit in Suit for rank in Rank}
    for card in dealt_history:
        dealt[card] += 1

    return {
        card: RankCount(dealt=n, remaining=num_decks - n)
        for card, n in dealt.items()
    }


def running_count(dealt_history: Iterable[Card]) -> int:
    """Return the Hi-Lo running count of the dealt cards."""
    return sum(HILO_TAGS[card.rank] for card in dealt_history)


class CardTracker:
    """
    Read-only counting view over a shoe.

    Nothing is cached; every property reads the shoe's dealt history, so the
    tracker can never drift from what has actually been dealt.
    """

    def __init__(self, shoe: Shoe) -> None:
        self._shoe = shoe

    @property
    def by_rank(self) -> dict[Rank, RankCount]:
        return counts_by_rank(self._shoe.dealt_history, self._shoe.num_decks)

    @property
    def by_card(self) -> dict[Card, RankCount]:
        return counts_by_card(self._shoe.dealt_history, self._shoe.num_decks)

    @property
    def cards_dealt(self) -> int:
        return self._shoe.cards_dealt

    @property
    def cards_remaining(self) -> int:
        return self._shoe.cards_remaining

    @property
    def running_count(self) -> int:
        return running_count(self._shoe.dealt_history)

    @property
    def true_count(self) -> float:
        """
        Running count divided by the decks left in the shoe.

        Returns 0.0 when the shoe is empty.
        """
        decks_remaining = self._shoe.decks_remaining
        if decks_remaining <= 0:
            return 0.0
        return self.running_count / decks_remaining

    def __repr__(self) -> str:
        return (
            f"CardTracker(dealt={self.cards_dealt}, "
            f"remaining={self.cards_remaining}, running_count={self.running_count})"
        )
