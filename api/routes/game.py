"""Game API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.auth import current_player
from api.schemas import DealRequest, GameRequest, GameStateResponse, PlayerResponse
from api.table import get_orchestrator
from core.game import TurnOrchestrator
from core.game.projection import player_view
from core.models import Player

router = APIRouter()

Orchestrator = Annotated[TurnOrchestrator, Depends(get_orchestrator)]
CurrentPlayer = Annotated[Player, Depends(current_player)]


@router.get("/state")
async def get_state(game_id: str, player: CurrentPlayer, orchestrator: Orchestrator) -> GameStateResponse:
    """Get current game state."""
    state = await orchestrator.get_game_state(player.email, game_id)
    return GameStateResponse(**state)


@router.post("/start")
async def start_game(player: CurrentPlayer, orchestrator: Orchestrator) -> GameStateResponse:
    """Open a new game with the player in the first seat."""
    state = await orchestrator.start_game(player.email)
    return GameStateResponse(**state)


@router.post("/join")
async def join_game(
    request: GameRequest, player: CurrentPlayer, orchestrator: Orchestrator
) -> GameStateResponse:
    """Take the next free seat of a game."""
    state = await orchestrator.join_game(player.email, request.game_id)
    return GameStateResponse(**state)


@router.post("/leave")
async def leave_game(player: CurrentPlayer, orchestrator: Orchestrator) -> PlayerResponse:
    """Leave the current game."""
    left = await orchestrator.leave_game(player.email)
    return PlayerResponse(**player_view(left))


@router.post("/deal")
async def deal(request: DealRequest, player: CurrentPlayer, orchestrator: Orchestrator) -> GameStateResponse:
    """Deal a new round."""
    state = await orchestrator.deal(player.email, request.game_id, request.decks_amount)
    return GameStateResponse(**state)


@router.post("/hit")
async def hit(request: GameRequest, player: CurrentPlayer, orchestrator: Orchestrator) -> GameStateResponse:
    """Draw a card."""
    state = await orchestrator.hit(player.email, request.game_id)
    return GameStateResponse(**state)


@router.post("/stand")
async def stand(request: GameRequest, player: CurrentPlayer, orchestrator: Orchestrator) -> GameStateResponse:
    """End the turn."""
    state = await orchestrator.stand(player.email, request.game_id)
    return GameStateResponse(**state)
