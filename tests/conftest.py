"""Pytest fixtures for blackjack table tests."""

import pytest
from random import Random

from hypothesis import strategies as st

from table.cards import Card, Shoe, Rank, Suit
from table.game import BlackjackTable
from table.hand import Hand
from table.rules import TableRules
from table.strategy import DecisionPolicy


def cards(*labels: str) -> list[Card]:
    """Build cards from labels like 'AS', '10H', 'Kd'."""
    return [Card.from_string(label) for label in labels]


def make_hand(*labels: str) -> Hand:
    """Build a hand from card labels."""
    return Hand(cards(*labels))


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled 6-deck shoe."""
    return Shoe(num_decks=6, rng=rng)


@pytest.fixture
def empty_hand():
    """An empty hand."""
    return Hand()


@pytest.fixture
def natural_hand():
    """A natural (A-K)."""
    return make_hand("AS", "KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return make_hand("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return make_hand("10S", "6H")


@pytest.fixture
def bust_hand():
    """A busted hand (10-6-6)."""
    return make_hand("10S", "6H", "6C")


@pytest.fixture
def rules():
    """Default table rules."""
    return TableRules()


@pytest.fixture
def table(rng, rules):
    """A new table using only the local decision policy."""
    return BlackjackTable(rules=rules, policy=DecisionPolicy(), rng=rng)


@pytest.fixture
def solo_table(table):
    """A single human seat waiting to bet."""
    table.select_seat_count(1)
    return table


def seat_table(table: BlackjackTable, *styles: str) -> BlackjackTable:
    """Seat one human plus one computer seat per style and open betting."""
    table.select_seat_count(1 + len(styles))
    for index, style in enumerate(styles, start=1):
        table.select_computer_style(index, style)
    return table


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def cards_strategy(draw, min_cards=1, max_cards=8):
    """Generate a random list of cards."""
    return draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards))
