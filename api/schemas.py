"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import Literal


# Requests
class SeatCountRequest(BaseModel):
    """Request to seat the table."""

    count: int = Field(..., description="Number of seats, seat 0 is human")


class StyleRequest(BaseModel):
    """Request to choose a computer seat's play style."""

    seat: int = Field(..., ge=1, description="Computer seat index")
    style: Literal["aggressive", "conservative"]


class BetRequest(BaseModel):
    """Request to place a bet."""

    amount: int = Field(..., description="Bet amount")


class ActionRequest(BaseModel):
    """Request for a seat action."""

    action: Literal["hit", "stand", "double", "split"]


# Responses
class CardResponse(BaseModel):
    """Card representation. A concealed card shows "?" for rank and suit."""

    rank: str
    suit: str
    concealed: bool = False


class SeatResponse(BaseModel):
    """One seat at the table."""

    name: str
    control: Literal["human", "computer"]
    style: Literal["aggressive", "conservative"] | None
    cards: list[CardResponse]
    score: int
    chips: int
    bet: int
    in_round: bool
    result: str | None


class DealerResponse(BaseModel):
    """Dealer hand."""

    cards: list[CardResponse]
    score: int
    hole_card_revealed: bool


class ShoeResponse(BaseModel):
    """Shoe fill level."""

    remaining: int
    dealt: int
    total: int


class TableStateResponse(BaseModel):
    """Current table state."""

    phase: str
    message: str
    active_seat: int | None
    seats: list[SeatResponse]
    dealer: DealerResponse
    shoe: ShoeResponse
    can_hit: bool
    can_stand: bool
    can_double: bool
    can_split: bool
    last_decision: str | None


class SessionResponse(BaseModel):
    """A new table session."""

    session_id: str


class RankCountResponse(BaseModel):
    """Dealt and remaining cards of one rank."""

    rank: str
    dealt: int
    remaining: int


class CountsResponse(BaseModel):
    """Counting display data."""

    ranks: list[RankCountResponse]
    cards_dealt: int
    cards_remaining: int
    running_count: int
    true_count: float
