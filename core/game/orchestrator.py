"""Turn orchestrator: seats, turn order, dealer hand-off and settlement."""

import asyncio
from contextlib import asynccontextmanager
from random import Random
from typing import Any, AsyncIterator

from core.deck import DeckEngine
from core.errors import NotFoundError, StateConflictError
from core.game.engine import DEALER_STAND_THRESHOLD, GameEngine
from core.game.events import EventEmitter, EventHandler, EventType
from core.game.players import PlayerService
from core.game.projection import game_view
from core.game.state import RoundMachine, RoundPhase, phase_of
from core.hand import BLACKJACK, dealer_wins
from core.logging_utils import get_logger
from core.models import DEALER_ID, Game, Player
from core.store import RecordStore

log = get_logger(__name__)

TableState = dict[str, Any]


class TurnOrchestrator:
    """
    Runs table actions across the game and player records.

    Each action builds fresh engine/service instances, runs one transition to
    completion and emits one or more events. Actions on the same game are
    serialized by a per-game lock; reads take no lock and emit nothing.
    """

    def __init__(
        self,
        games: RecordStore,
        players: RecordStore,
        rng: Random | None = None,
        decks_amount: int = 1,
        dealer_stand_threshold: int = DEALER_STAND_THRESHOLD,
        max_seats: int = 7,
        events: EventEmitter | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            games: Store holding game records
            players: Store holding player records
            rng: Random number generator for shuffling
            decks_amount: Default number of decks per deal
            dealer_stand_threshold: Dealer draws while below this total
            max_seats: Maximum seats at one game
            events: Event emitter (a new one if not provided)
        """
        self._games = games
        self._players = players
        self._rng = rng or Random()
        self._decks_amount = decks_amount
        self._dealer_stand_threshold = dealer_stand_threshold
        self._max_seats = max_seats
        self.events = events or EventEmitter()
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        """Subscribe to table events."""
        self.events.subscribe(handler, event_type)

    def _engine(self) -> GameEngine:
        return GameEngine(
            self._games,
            deck_engine=DeckEngine(self._rng),
            dealer_stand_threshold=self._dealer_stand_threshold,
        )

    def _player_service(self) -> PlayerService:
        return PlayerService(self._players)

    @asynccontextmanager
    async def _locked(self, key: str) -> AsyncIterator[None]:
        """Hold the lock of a game or email; the entry is dropped once unused."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    @staticmethod
    def _check_participant(player: Player, game_id: str) -> None:
        if player.current_game_id != game_id:
            raise StateConflictError(f"Player not in game {game_id}")

    @staticmethod
    def _check_turn(machine: RoundMachine, game: Game, player: Player) -> None:
        if machine.phase is not RoundPhase.PLAYER_TURN:
            raise StateConflictError(f"Cannot act while {machine.phase}")
        if game.player_id_turn != player.id:
            raise StateConflictError(f"It is not the turn of player {player.id}")

    @staticmethod
    async def _view(engine: GameEngine, players: PlayerService, game_id: str) -> TableState:
        game = engine.game
        if game is None or game.id != game_id:
            game = await engine.load_game(game_id)
        members = await players.find_game_members(game_id)
        return game_view(game, members)

    def _emit(self, event_type: EventType, game_id: str, **data: Any) -> None:
        self.events.emit_new(event_type, game_id, **data)

    # Players

    async def register_player(self, email: str) -> Player:
        """Sign up a new player."""
        async with self._locked(email):
            return await self._player_service().create_player(email)

    async def find_player(self, email: str) -> Player:
        """Load a player by email."""
        return await self._player_service().load_player_by_email(email)

    # Queries

    async def get_game_state(self, email: str, game_id: str) -> TableState:
        """Return the public state of a game the player is seated at."""
        players = self._player_service()
        player = await players.load_player_by_email(email)
        self._check_participant(player, game_id)

        return await self._view(self._engine(), players, game_id)

    # Seating

    async def start_game(self, email: str) -> TableState:
        """Open a new game and seat the player first."""
        async with self._locked(email):
            players = self._player_service()
            player = await players.load_player_by_email(email)
            if player.is_seated:
                raise StateConflictError(f"Player already in game {player.current_game_id}")

            RoundMachine(RoundPhase.IDLE).fire("seat")

            engine = self._engine()
            game = await engine.create_new_game()
            await players.start_game(game.id, game_position=1)
            await engine.assign_current_player_turn(game.id, player.id)

            state = await self._view(engine, players, game.id)
            self._emit(EventType.PLAYER_SEATED, game.id, player_id=player.id, state=state)

        log.info("Player %s opened game %s", player.id, game.id)
        return state

    async def join_game(self, email: str, game_id: str) -> TableState:
        """Seat the player after the last seat of an existing game."""
        async with self._locked(game_id):
            players = self._player_service()
            player = await players.load_player_by_email(email)
            if player.is_seated:
                raise StateConflictError(f"Player already in game {player.current_game_id}")

            engine = self._engine()
            game = await engine.load_game(game_id)
            RoundMachine.for_game(game).fire("join")

            members = await players.find_game_members(game_id)
            if len(members) >= self._max_seats:
                raise StateConflictError(f"Game {game_id} is full")

            position = max((member.current_game_position for member in members), default=0) + 1
            await players.start_game(game_id, game_position=position)

            state = await self._view(engine, players, game_id)
            self._emit(EventType.PLAYER_JOINED, game_id, player_id=player.id, state=state)

        log.info("Player %s joined game %s at position %d", player.id, game_id, position)
        return state

    async def leave_game(self, email: str) -> Player:
        """
        Unseat the player.

        The next seat inherits an active turn; with no seat after it the
        dealer plays. The game is deleted once its last seat leaves.
        """
        players = self._player_service()
        player = await players.load_player_by_email(email)
        game_id = player.current_game_id
        if game_id is None:
            raise StateConflictError(f"Player {player.id} is not in a game")

        async with self._locked(game_id):
            player = await players.load_player_by_email(email)
            self._check_participant(player, game_id)

            engine = self._engine()
            try:
                game: Game | None = await engine.load_game(game_id)
            except NotFoundError:
                log.warning("Player %s was seated at missing game %s", player.id, game_id)
                game = None

            members = await players.find_game_members(game_id)
            remaining = [member for member in members if member.id != player.id]
            next_player = next(
                (m for m in remaining if m.current_game_position > player.current_game_position),
                None,
            )

            left = await players.leave_game()
            log.info("Player %s left game %s", player.id, game_id)

            if game is None:
                return left

            if not remaining:
                await engine.remove_game(game_id)
                self._emit(EventType.GAME_REMOVED, game_id, player_id=player.id)
                return left

            if game.player_id_turn == player.id:
                if next_player is not None:
                    await engine.assign_current_player_turn(game_id, next_player.id)
                elif phase_of(game) is RoundPhase.DEALT:
                    await engine.assign_current_player_turn(game_id, remaining[0].id)
                else:
                    await self._dealer_turn(engine, players, RoundMachine.for_game(game), game_id)

            state = await self._view(engine, players, game_id)
            self._emit(EventType.PLAYER_LEFT, game_id, player_id=player.id, state=state)

        return left

    # Round

    async def deal(self, email: str, game_id: str, decks_amount: int | None = None) -> TableState:
        """Deal a new round to every seat."""
        async with self._locked(game_id):
            players = self._player_service()
            player = await players.load_player_by_email(email)
            self._check_participant(player, game_id)

            engine = self._engine()
            game = await engine.load_game(game_id)
            RoundMachine.for_game(game).fire("deal")

            members = await players.find_game_members(game_id)
            hands = await engine.deal(
                game_id,
                players_amount=len(members),
                player_id_turn=members[0].id,
                decks_amount=decks_amount or self._decks_amount,
            )

            for member, cards in zip(members, hands):
                players.build_from_source(member)
                await players.reset_hands(member.email)
                for card in cards:
                    await players.take_card(card, game_id)

            state = await self._view(engine, players, game_id)
            self._emit(EventType.CARDS_DEALT, game_id, player_id=player.id, state=state)

        return state

    async def hit(self, email: str, game_id: str) -> TableState:
        """
        Draw a card for the acting seat.

        Over 21 the seat loses at once; at 21 or more its turn ends.
        """
        async with self._locked(game_id):
            players = self._player_service()
            player = await players.load_player_by_email(email)
            self._check_participant(player, game_id)

            engine = self._engine()
            game = await engine.load_game(game_id)
            machine = RoundMachine.for_game(game)
            self._check_turn(machine, game, player)
            machine.fire("hit")

            card = await engine.hit(game_id, player.cards)
            try:
                player = await players.take_card(card, game_id)
            except Exception:
                log.warning("Returning %s to game %s after a failed draw", card, game_id)
                await engine.back_card(card, game_id)
                raise

            total = engine.calculate_total(player.cards)
            if total > BLACKJACK:
                await players.lose(email)
                state = await self._view(engine, players, game_id)
                self._emit(EventType.PLAYER_BUSTS, game_id, player_id=player.id, total=total, state=state)

            if total >= BLACKJACK:
                return await self._advance(engine, players, machine, player, game_id)

            state = await self._view(engine, players, game_id)
            self._emit(EventType.PLAYER_HIT, game_id, player_id=player.id, total=total, state=state)

        return state

    async def stand(self, email: str, game_id: str) -> TableState:
        """End the acting seat's turn."""
        async with self._locked(game_id):
            players = self._player_service()
            player = await players.load_player_by_email(email)
            self._check_participant(player, game_id)

            engine = self._engine()
            game = await engine.load_game(game_id)
            machine = RoundMachine.for_game(game)
            self._check_turn(machine, game, player)

            return await self._advance(engine, players, machine, player, game_id)

    async def dealer_turn(self, game_id: str) -> TableState:
        """Play the dealer and settle the round. Settled rounds are only re-read."""
        async with self._locked(game_id):
            engine = self._engine()
            game = await engine.load_game(game_id)
            return await self._dealer_turn(
                engine, self._player_service(), RoundMachine.for_game(game), game_id
            )

    async def _advance(
        self,
        engine: GameEngine,
        players: PlayerService,
        machine: RoundMachine,
        player: Player,
        game_id: str,
    ) -> TableState:
        members = await players.find_game_members(game_id)
        next_player = next(
            (m for m in members if m.current_game_position > player.current_game_position),
            None,
        )
        if next_player is None:
            return await self._dealer_turn(engine, players, machine, game_id)

        machine.fire("pass_turn")
        await engine.assign_current_player_turn(game_id, next_player.id)

        state = await self._view(engine, players, game_id)
        self._emit(EventType.TURN_PASSED, game_id, player_id=next_player.id, state=state)
        return state

    async def _dealer_turn(
        self,
        engine: GameEngine,
        players: PlayerService,
        machine: RoundMachine,
        game_id: str,
    ) -> TableState:
        game = await engine.load_game(game_id)
        if game.winner_ids:
            return await self._view(engine, players, game_id)

        if machine.phase is RoundPhase.PLAYER_TURN:
            machine.fire("hand_to_dealer")
        machine.fire("settle")

        dealer_total = await engine.dealer_turn(game_id)
        dealer_cards_total = len(engine.game.dealer_cards)  # type: ignore[union-attr]

        members = await players.find_game_members(game_id)
        candidates = engine.get_possible_winners(members)

        if dealer_wins(candidates, dealer_total, dealer_cards_total):
            for result in candidates.possible_winners:
                await players.lose(result.email)
            winner_ids: tuple[str, ...] = (DEALER_ID,)
        else:
            for result in candidates.possible_winners:
                await players.win(result.email)
            winner_ids = tuple(result.id for result in candidates.possible_winners)

        await engine.set_winners(winner_ids)

        state = await self._view(engine, players, game_id)
        self._emit(
            EventType.ROUND_SETTLED,
            game_id,
            winner_ids=list(winner_ids),
            dealer_total=dealer_total,
            state=state,
        )
        log.info("Game %s settled, winners %s", game_id, ", ".join(winner_ids))
        return state
