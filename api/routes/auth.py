"""Signup, login and current player endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.auth import current_player, get_token_signer
from api.schemas import EmailRequest, PlayerResponse, TokenResponse
from api.table import get_orchestrator
from core.game import TurnOrchestrator
from core.game.projection import player_view
from core.models import Player

router = APIRouter()
me_router = APIRouter()

Orchestrator = Annotated[TurnOrchestrator, Depends(get_orchestrator)]


@router.post("/signup")
async def signup(request: EmailRequest, orchestrator: Orchestrator) -> TokenResponse:
    """Create a player and return its token."""
    player = await orchestrator.register_player(request.email)
    return TokenResponse(token=get_token_signer().sign(player.email))


@router.post("/login")
async def login(request: EmailRequest, orchestrator: Orchestrator) -> TokenResponse:
    """Return a token for an existing player."""
    player = await orchestrator.find_player(request.email)
    return TokenResponse(token=get_token_signer().sign(player.email))


@me_router.get("/me")
async def me(player: Annotated[Player, Depends(current_player)]) -> PlayerResponse:
    """Get the current player."""
    return PlayerResponse(**player_view(player))
