"""Blackjack table engine - independent of transport and storage backend."""

from core.cards import Card, Deck, Rank, Suit
from core.deck import DeckEngine
from core.errors import (
    BlackjackError,
    NotFoundError,
    RuleViolationError,
    StateConflictError,
    ValidationError,
)
from core.hand import calculate_total
from core.models import Game, Player, Score

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "DeckEngine",
    "BlackjackError",
    "NotFoundError",
    "RuleViolationError",
    "StateConflictError",
    "ValidationError",
    "calculate_total",
    "Game",
    "Player",
    "Score",
]
