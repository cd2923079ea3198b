"""Tests for API endpoints."""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from api.main import app
from api.table import reset_orchestrator


@pytest_asyncio.fixture
async def client():
    """Create test client against a fresh in-memory table."""
    reset_orchestrator()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    reset_orchestrator()


async def signup(client, email):
    response = await client.post("/auth/signup", json={"email": email})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest_asyncio.fixture
async def seats(client):
    """Two signed-up players seated at one game."""
    alice = await signup(client, "alice@example.com")
    bob = await signup(client, "bob@example.com")
    game_id = (await client.post("/api/game/start", headers=alice)).json()["id"]
    await client.post("/api/game/join", json={"game_id": game_id}, headers=bob)
    return game_id, alice, bob


@pytest.mark.asyncio
async def test_health_check(client):
    """Test health check endpoint."""
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_start_game(client):
    """Test opening a game."""
    headers = await signup(client, "carol@example.com")

    response = await client.post("/api/game/start", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["dealer_cards"] == []
    assert data["ready_to_deal"] is True
    assert len(data["players"]) == 1
    assert data["player_id_turn"] == data["players"][0]["id"]


@pytest.mark.asyncio
async def test_start_game_twice(client):
    """Test that a seated player cannot open another game."""
    headers = await signup(client, "carol@example.com")
    await client.post("/api/game/start", headers=headers)

    response = await client.post("/api/game/start", headers=headers)

    assert response.status_code == 409
    assert "already in game" in response.json()["detail"]


@pytest.mark.asyncio
async def test_join_and_state(client, seats):
    """Test joining and reading the game state."""
    game_id, _, bob = seats

    response = await client.get("/api/game/state", params={"game_id": game_id}, headers=bob)

    assert response.status_code == 200
    positions = [p["current_game_position"] for p in response.json()["players"]]
    assert positions == [1, 2]


@pytest.mark.asyncio
async def test_state_of_other_game(client, seats):
    """Test reading a game the player is not seated at."""
    headers = await signup(client, "carol@example.com")

    response = await client.get("/api/game/state", params={"game_id": seats[0]}, headers=headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_join_unknown_game(client):
    """Test joining a game that does not exist."""
    headers = await signup(client, "carol@example.com")

    response = await client.post("/api/game/join", json={"game_id": "missing"}, headers=headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "Game missing not found"


@pytest.mark.asyncio
async def test_deal_masks_dealer_card(client, seats):
    """Test that dealing hides the dealer's first card."""
    game_id, alice, _ = seats

    response = await client.post("/api/game/deal", json={"game_id": game_id}, headers=alice)

    assert response.status_code == 200
    data = response.json()
    assert data["dealer_cards"][0] == {"title": "*", "value": "*"}
    assert data["dealer_total"] == "-"
    assert data["ready_to_deal"] is False
    assert all(len(p["cards"]) == 2 for p in data["players"])


@pytest.mark.asyncio
async def test_deal_invalid_decks_amount(client, seats):
    """Test deal request validation."""
    game_id, alice, _ = seats

    response = await client.post(
        "/api/game/deal", json={"game_id": game_id, "decks_amount": 0}, headers=alice
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_hit_out_of_turn(client, seats):
    """Test that only the acting seat may hit."""
    game_id, alice, bob = seats
    await client.post("/api/game/deal", json={"game_id": game_id}, headers=alice)

    response = await client.post("/api/game/hit", json={"game_id": game_id}, headers=bob)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_round_to_settlement(client, seats):
    """Test standing both seats settles the round."""
    game_id, alice, bob = seats
    await client.post("/api/game/deal", json={"game_id": game_id}, headers=alice)
    await client.post("/api/game/stand", json={"game_id": game_id}, headers=alice)

    response = await client.post("/api/game/stand", json={"game_id": game_id}, headers=bob)

    assert response.status_code == 200
    data = response.json()
    assert data["winner_ids"]
    assert data["player_id_turn"] is None
    assert isinstance(data["dealer_total"], int)
    assert data["dealer_total"] >= 16


@pytest.mark.asyncio
async def test_leave_game(client, seats):
    """Test leaving returns the unseated player."""
    game_id, alice, bob = seats

    response = await client.post("/api/game/leave", headers=alice)

    assert response.status_code == 200
    assert response.json()["current_game_id"] is None

    state = await client.get("/api/game/state", params={"game_id": game_id}, headers=bob)
    assert len(state.json()["players"]) == 1


@pytest.mark.asyncio
async def test_leave_when_not_seated(client):
    """Test leaving without a game."""
    headers = await signup(client, "carol@example.com")

    response = await client.post("/api/game/leave", headers=headers)

    assert response.status_code == 409
