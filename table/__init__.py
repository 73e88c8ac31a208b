"""Multi-seat blackjack table engine - 100% UI-agnostic."""

from table.cards import Card, Shoe, Rank, Suit
from table.hand import Hand, score, is_natural, is_soft
from table.counting import CardTracker, counts_by_rank
from table.errors import AdvisoryUnavailable, EmptyShoe, IllegalAction, InvalidBet, TableError
from table.rules import TableRules

__all__ = [
    "Card",
    "Shoe",
    "Rank",
    "Suit",
    "Hand",
    "score",
    "is_natural",
    "is_soft",
    "CardTracker",
    "counts_by_rank",
    "AdvisoryUnavailable",
    "EmptyShoe",
    "IllegalAction",
    "InvalidBet",
    "TableError",
    "TableRules",
]
