"""Table API endpoints."""

from fastapi import APIRouter, HTTPException, Header
from typing import Annotated, Any, Callable

from api.schemas import (
    ActionRequest,
    BetRequest,
    CountsResponse,
    RankCountResponse,
    SeatCountRequest,
    SessionResponse,
    StyleRequest,
    TableStateResponse,
)
from api.session import extract_session_id, get_table_store
from table.errors import TableError
from table.game import BlackjackTable

router = APIRouter()

SessionHeader = Annotated[str, Header(alias="X-Session-ID")]


def _get_table(session_id: str) -> BlackjackTable:
    """Look up the session's table or answer 404."""
    if extract_session_id(session_id) is None:
        raise HTTPException(status_code=404, detail="Unknown or expired session")
    table = get_table_store().get(session_id)
    if table is None:
        raise HTTPException(status_code=404, detail="Unknown or expired session")
    return table


def _mask(card: dict[str, Any]) -> dict[str, Any]:
    if card["concealed"]:
        return {"rank": "?", "suit": "?", "concealed": True}
    return card


def _state_response(table: BlackjackTable) -> TableStateResponse:
    """Convert the table snapshot to a response, hiding face-down cards."""
    snapshot = table.snapshot()
    snapshot["dealer"]["cards"] = [_mask(c) for c in snapshot["dealer"]["cards"]]
    return TableStateResponse.model_validate(snapshot)


async def _run(table: BlackjackTable, operation: Callable[[], None]) -> TableStateResponse:
    """Apply a table operation, then let computer seats play until a human is up."""
    try:
        operation()
    except TableError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    await table.play_computer_turns()
    return _state_response(table)


@router.post("/new")
async def new_table() -> SessionResponse:
    """Open a new table session."""
    return SessionResponse(session_id=get_table_store().create())


@router.get("/state")
async def get_state(session_id: SessionHeader) -> TableStateResponse:
    """Get the current table state."""
    return _state_response(_get_table(session_id))


@router.post("/seats")
async def select_seats(request: SeatCountRequest, session_id: SessionHeader) -> TableStateResponse:
    """Choose how many seats play."""
    table = _get_table(session_id)
    return await _run(table, lambda: table.select_seat_count(request.count))


@router.post("/style")
async def select_style(request: StyleRequest, session_id: SessionHeader) -> TableStateResponse:
    """Choose a computer seat's play style."""
    table = _get_table(session_id)
    return await _run(table, lambda: table.select_computer_style(request.seat, request.style))


@router.post("/bet")
async def place_bet(request: BetRequest, session_id: SessionHeader) -> TableStateResponse:
    """Place the human seat's bet; cards are dealt once every seat has bet."""
    table = _get_table(session_id)
    return await _run(table, lambda: table.place_bet(request.amount))


@router.post("/action")
async def seat_action(request: ActionRequest, session_id: SessionHeader) -> TableStateResponse:
    """Execute the human seat's action."""
    table = _get_table(session_id)

    actions = {
        "hit": table.hit,
        "stand": table.stand,
        "double": table.double_down,
        "split": table.split,
    }
    return await _run(table, actions[request.action])


@router.post("/next-round")
async def next_round(session_id: SessionHeader) -> TableStateResponse:
    """Clear the settled round and open betting."""
    table = _get_table(session_id)
    return await _run(table, table.advance_to_next_round)


@router.post("/end")
async def end_session(session_id: SessionHeader) -> TableStateResponse:
    """End the session and return to seat selection."""
    table = _get_table(session_id)
    return await _run(table, table.end_session)


@router.get("/counts")
async def get_counts(session_id: SessionHeader) -> CountsResponse:
    """Dealt and remaining cards per rank, plus Hi-Lo counts."""
    tracker = _get_table(session_id).tracker
    return CountsResponse(
        ranks=[
            RankCountResponse(rank=str(rank), dealt=count.dealt, remaining=count.remaining)
            for rank, count in tracker.by_rank.items()
        ],
        cards_dealt=tracker.cards_dealt,
        cards_remaining=tracker.cards_remaining,
        running_count=tracker.running_count,
        true_count=round(tracker.true_count, 2),
    )
