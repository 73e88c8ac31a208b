"""Tests for the table API endpoints."""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from api import session as session_module
from api.main import app
from api.session import get_table_store
from table.strategy import DecisionPolicy

from conftest import cards


@pytest.fixture(autouse=True)
def local_policy(monkeypatch):
    """Keep computer seats off the network."""
    monkeypatch.setattr(session_module, "build_policy", lambda: DecisionPolicy())


@pytest_asyncio.fixture
async def client():
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def open_table(client: AsyncClient, seats: int = 1) -> dict[str, str]:
    """Open a session, seat the table and return the session header."""
    response = await client.post("/api/table/new")
    headers = {"X-Session-ID": response.json()["session_id"]}
    await client.post("/api/table/seats", json={"count": seats}, headers=headers)
    return headers


def stack(headers: dict[str, str], *labels: str) -> None:
    """Put known cards on top of the session's shoe."""
    get_table_store().get(headers["X-Session-ID"]).shoe.stack(cards(*labels))


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_new_table(client):
    response = await client.post("/api/table/new")
    assert response.status_code == 200
    session_id = response.json()["session_id"]

    state = await client.get("/api/table/state", headers={"X-Session-ID": session_id})
    assert state.status_code == 200
    data = state.json()
    assert data["phase"] == "MODE_SELECT"
    assert data["seats"] == []
    assert data["shoe"]["total"] == 312


@pytest.mark.asyncio
async def test_unknown_session(client):
    response = await client.get("/api/table/state", headers={"X-Session-ID": "forged"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_missing_session_header(client):
    response = await client.get("/api/table/state")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_solo_round(client):
    headers = await open_table(client)
    stack(headers, "10H", "10S", "KH", "9C")

    response = await client.post("/api/table/bet", json={"amount": 100}, headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["phase"] == "PLAYING"
    assert data["seats"][0]["chips"] == 9900
    assert data["dealer"]["cards"][1] == {"rank": "?", "suit": "?", "concealed": True}
    assert data["dealer"]["score"] == 10
    assert data["can_split"] is False

    response = await client.post("/api/table/action", json={"action": "stand"}, headers=headers)
    data = response.json()
    assert data["phase"] == "SETTLEMENT"
    assert data["seats"][0]["chips"] == 10200
    assert data["seats"][0]["result"] == "win"
    assert data["dealer"]["cards"][1]["rank"] == "9"
    assert data["message"] == "Dealer: 19\n\nPlayer 1: +$200"

    response = await client.post("/api/table/next-round", headers=headers)
    assert response.json()["phase"] == "BETTING"


@pytest.mark.asyncio
async def test_invalid_bet(client):
    headers = await open_table(client)

    response = await client.post("/api/table/bet", json={"amount": 50000}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Not enough chips!"

    state = await client.get("/api/table/state", headers=headers)
    assert state.json()["phase"] == "BETTING"
    assert state.json()["seats"][0]["chips"] == 10000


@pytest.mark.asyncio
async def test_split_refused(client):
    headers = await open_table(client)
    stack(headers, "8H", "10S", "8D", "7C")
    await client.post("/api/table/bet", json={"amount": 100}, headers=headers)

    response = await client.post("/api/table/action", json={"action": "split"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Split is not available"


@pytest.mark.asyncio
async def test_unknown_action(client):
    headers = await open_table(client)
    response = await client.post("/api/table/action", json={"action": "surrender"}, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_action_in_wrong_phase(client):
    headers = await open_table(client)
    response = await client.post("/api/table/action", json={"action": "hit"}, headers=headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_computer_seat_plays_after_human(client):
    headers = await open_table(client, seats=2)

    response = await client.post(
        "/api/table/style", json={"seat": 1, "style": "conservative"}, headers=headers
    )
    assert response.json()["phase"] == "BETTING"

    stack(headers, "10H", "5S", "6C", "9H", "6D", "10C", "9D", "KD")
    await client.post("/api/table/bet", json={"amount": 100}, headers=headers)

    response = await client.post("/api/table/action", json={"action": "stand"}, headers=headers)
    data = response.json()
    assert data["phase"] == "SETTLEMENT"
    assert data["seats"][1]["bet"] == 100
    assert data["seats"][1]["chips"] == 10200
    assert data["last_decision"] == "DOUBLE: Safe double against a weak dealer"


@pytest.mark.asyncio
async def test_style_for_human_seat_rejected(client):
    headers = await open_table(client, seats=2)
    response = await client.post(
        "/api/table/style", json={"seat": 0, "style": "aggressive"}, headers=headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_counts(client):
    headers = await open_table(client)
    stack(headers, "2H", "10S", "3H", "KC")
    await client.post("/api/table/bet", json={"amount": 100}, headers=headers)

    response = await client.get("/api/table/counts", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["cards_dealt"] == 4
    assert data["cards_remaining"] == 308
    assert data["running_count"] == 0
    assert len(data["ranks"]) == 13
    twos = next(r for r in data["ranks"] if r["rank"] == "2")
    assert twos == {"rank": "2", "dealt": 1, "remaining": 23}


@pytest.mark.asyncio
async def test_end_session(client):
    headers = await open_table(client)
    response = await client.post("/api/table/end", headers=headers)
    data = response.json()
    assert data["phase"] == "MODE_SELECT"
    assert data["seats"] == []
    assert data["message"] == "Select number of players"
