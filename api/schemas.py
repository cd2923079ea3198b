"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field

from config import config


# Auth schemas
class EmailRequest(BaseModel):
    """Request to sign up or log in."""

    email: str = Field(..., min_length=3, max_length=254)


class TokenResponse(BaseModel):
    """Signed bearer token."""

    token: str


# Game schemas
class GameRequest(BaseModel):
    """Request acting on a game."""

    game_id: str


class DealRequest(GameRequest):
    """Request to deal a new round."""

    decks_amount: int | None = Field(default=None, ge=1, le=config.game.max_decks)


class CardResponse(BaseModel):
    """Card representation. Masked cards read ``{"title": "*", "value": "*"}``."""

    title: str
    value: str


class ScoreResponse(BaseModel):
    """Lifetime player score."""

    total_wins: int
    total_losses: int
    total_game_finished: int


class PlayerResponse(BaseModel):
    """Player representation with its hand total."""

    id: str
    email: str
    score: ScoreResponse
    current_game_id: str | None
    current_game_position: int
    cards: list[CardResponse]
    total: int


class GameStateResponse(BaseModel):
    """Public game state."""

    id: str
    player_id_turn: str | None
    winner_ids: list[str]
    dealer_cards: list[CardResponse]
    dealer_total: int | str
    players: list[PlayerResponse]
    ready_to_deal: bool
