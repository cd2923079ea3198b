"""Game and Player entities, and their conversion to/from store records."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from core.cards import Card, Deck
from core.deck import DeckEngine
from core.errors import ValidationError

DEALER_ID = "dealer"


def new_id() -> str:
    """Generate a record id before its first persist."""
    return str(uuid4())


def _cards_from_records(data: Any, what: str) -> tuple[Card, ...]:
    """Validate and convert a stored card list; an empty list is allowed."""
    if data is None:
        return ()
    if not isinstance(data, list):
        raise ValidationError(f"{what} should be a list")
    if data:
        DeckEngine().is_deck_correct(data)
    return tuple(Card.from_record(card) for card in data)


def _require(record: Any, keys: tuple[str, ...], kind: str) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise ValidationError(f"{kind} record should be a mapping")
    missing = [key for key in keys if key not in record]
    if missing:
        raise ValidationError(f"{kind} record is missing: {', '.join(missing)}")
    return record


@dataclass(frozen=True)
class Score:
    """Lifetime score of a player. Only ever incremented."""

    total_wins: int = 0
    total_losses: int = 0
    total_game_finished: int = 0

    def with_win(self) -> "Score":
        return Score(self.total_wins + 1, self.total_losses, self.total_game_finished + 1)

    def with_loss(self) -> "Score":
        return Score(self.total_wins, self.total_losses + 1, self.total_game_finished + 1)

    def to_record(self) -> dict[str, int]:
        return {
            "total_wins": self.total_wins,
            "total_losses": self.total_losses,
            "total_game_finished": self.total_game_finished,
        }


@dataclass(frozen=True)
class Player:
    """Immutable player snapshot."""

    email: str
    id: str = field(default_factory=new_id)
    score: Score = field(default_factory=Score)
    current_game_id: str | None = None
    current_game_position: int = 0
    cards: tuple[Card, ...] = ()

    @property
    def is_seated(self) -> bool:
        return self.current_game_id is not None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "score": self.score.to_record(),
            "current_game_id": self.current_game_id,
            "current_game_position": self.current_game_position,
            "cards": [card.to_record() for card in self.cards],
        }

    @classmethod
    def from_record(cls, record: Any) -> "Player":
        """Build a player from a raw store record, validating its cards."""
        record = _require(record, ("id", "email"), "Player")
        score = record.get("score") or {}
        position = record.get("current_game_position") or 0
        if not isinstance(position, int) or position < 0:
            raise ValidationError(f"Player position should be a non-negative integer, got {position!r}")

        return cls(
            id=record["id"],
            email=record["email"],
            score=Score(
                total_wins=score.get("total_wins", 0),
                total_losses=score.get("total_losses", 0),
                total_game_finished=score.get("total_game_finished", 0),
            ),
            current_game_id=record.get("current_game_id"),
            current_game_position=position,
            cards=_cards_from_records(record.get("cards"), "Player cards"),
        )


@dataclass(frozen=True)
class Game:
    """Immutable snapshot of one round."""

    id: str = field(default_factory=new_id)
    deck: Deck = field(default_factory=Deck)
    dealer_cards: tuple[Card, ...] = ()
    player_id_turn: str | None = None
    winner_ids: tuple[str, ...] = ()

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "deck": self.deck.to_records(),
            "dealer_cards": [card.to_record() for card in self.dealer_cards],
            "player_id_turn": self.player_id_turn,
            "winner_ids": list(self.winner_ids),
        }

    @classmethod
    def from_record(cls, record: Any) -> "Game":
        """Build a game from a raw store record, validating its cards."""
        record = _require(record, ("id",), "Game")
        return cls(
            id=record["id"],
            deck=Deck(_cards_from_records(record.get("deck"), "Game deck")),
            dealer_cards=_cards_from_records(record.get("dealer_cards"), "Dealer cards"),
            player_id_turn=record.get("player_id_turn"),
            winner_ids=tuple(record.get("winner_ids") or ()),
        )
