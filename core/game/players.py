"""Player service: signup, seating, hands and score."""

import re
from dataclasses import replace

from core.cards import Card
from core.errors import NotFoundError, StateConflictError, ValidationError
from core.logging_utils import get_logger
from core.models import Player
from core.store import RecordStore

log = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class PlayerService:
    """
    Owns one Player snapshot at a time.

    Mutations follow the same load, derive, persist, adopt sequence as the
    game engine.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._player: Player | None = None

    @property
    def player(self) -> Player | None:
        """Get the current player snapshot."""
        return self._player

    def _require_player(self) -> Player:
        if self._player is None:
            raise StateConflictError("Player undefined")
        return self._player

    async def _adopt(self, player: Player) -> Player:
        await self._store.update_record(player.id, player.to_record())
        self._player = player
        return player

    async def _current(self, email: str) -> Player:
        if self._player is None or self._player.email != email:
            await self.load_player_by_email(email)
        return self._player  # type: ignore[return-value]

    @staticmethod
    def validate_email(email: object) -> str:
        """Check an email address looks like one."""
        if not isinstance(email, str) or not EMAIL_PATTERN.match(email):
            raise ValidationError(f"Email should be a valid email address, got {email!r}")
        return email

    def build_from_source(self, player: Player) -> Player:
        """Adopt an already loaded player snapshot."""
        if not isinstance(player, Player):
            raise ValidationError(f"Expected a Player, got {type(player).__name__}")

        self._player = player
        return player

    async def create_player(self, email: str) -> Player:
        """Sign up a new player. Emails are unique."""
        self.validate_email(email)

        if await self._store.scan_records(lambda record: record.get("email") == email):
            raise StateConflictError(f"Player {email} already exists")

        player = Player(email=email)
        await self._store.create_record(player.to_record())
        self._player = player
        log.info("Player %s signed up", player.id)
        return player

    async def load_player_by_email(self, email: str) -> Player:
        """Load a player by email address."""
        self.validate_email(email)

        records = await self._store.scan_records(lambda record: record.get("email") == email)
        if not records:
            raise NotFoundError(f"Player {email} not found")

        self._player = Player.from_record(records[0])
        return self._player

    async def find_game_members(self, game_id: str) -> list[Player]:
        """Return the players seated at a game, in turn order."""
        records = await self._store.scan_records(
            lambda record: record.get("current_game_id") == game_id
        )
        players = [Player.from_record(record) for record in records]
        return sorted(players, key=lambda player: player.current_game_position)

    async def start_game(self, game_id: str, game_position: int) -> Player:
        """Seat the current player at a game."""
        player = self._require_player()
        if player.current_game_id:
            raise StateConflictError(f"Player already in game {player.current_game_id}")

        return await self._adopt(
            replace(player, current_game_id=game_id, current_game_position=game_position, cards=())
        )

    async def reset_hands(self, email: str) -> Player:
        """Empty a player's hand."""
        player = await self._current(email)
        return await self._adopt(replace(player, cards=()))

    async def take_card(self, card: Card, game_id: str) -> Player:
        """Add a card to the current player's hand."""
        player = self._require_player()
        if player.current_game_id != game_id:
            raise StateConflictError(f"Player is not participant of game {game_id}")

        return await self._adopt(replace(player, cards=player.cards + (card,)))

    async def leave_game(self) -> Player:
        """Unseat the current player."""
        player = self._require_player()
        return await self._adopt(
            replace(player, current_game_id=None, current_game_position=0, cards=())
        )

    async def win(self, email: str) -> Player:
        """Record a win for a player."""
        player = await self._current(email)
        return await self._adopt(replace(player, score=player.score.with_win()))

    async def lose(self, email: str) -> Player:
        """Record a loss for a player."""
        player = await self._current(email)
        return await self._adopt(replace(player, score=player.score.with_loss()))
