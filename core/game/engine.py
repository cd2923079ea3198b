"""Game engine: authoritative round state, dealing, hits and dealer play."""

from dataclasses import replace
from typing import Any, Iterable

from core import hand
from core.cards import Card, Deck
from core.deck import DeckEngine
from core.errors import NotFoundError, RuleViolationError, StateConflictError, ValidationError
from core.logging_utils import get_logger
from core.models import Game
from core.store import RecordStore

log = get_logger(__name__)

CARDS_PER_HAND = 2
DEALER_STAND_THRESHOLD = 16


class GameEngine:
    """
    Owns one Game snapshot at a time.

    Every mutation loads the game if it is not current, derives a new frozen
    snapshot from it, persists that snapshot and only then adopts it.
    """

    def __init__(
        self,
        store: RecordStore,
        deck_engine: DeckEngine | None = None,
        dealer_stand_threshold: int = DEALER_STAND_THRESHOLD,
    ) -> None:
        """
        Initialize the engine.

        Args:
            store: Store holding game records
            deck_engine: Deck engine used for new decks (its rng drives shuffles)
            dealer_stand_threshold: Dealer draws while its total is below this
        """
        self._store = store
        self._deck_engine = deck_engine or DeckEngine()
        self._dealer_stand_threshold = dealer_stand_threshold
        self._game: Game | None = None

    @property
    def game(self) -> Game | None:
        """Get the current game snapshot."""
        return self._game

    async def _adopt(self, game: Game) -> Game:
        await self._store.update_record(game.id, game.to_record())
        self._game = game
        return game

    async def _current(self, game_id: str) -> Game:
        if self._game is None or self._game.id != game_id:
            await self.load_game(game_id)
        return self._game  # type: ignore[return-value]

    @staticmethod
    def _draw(deck: Deck) -> tuple[Card, Deck]:
        if not deck:
            raise RuleViolationError("Deck is exhausted")
        return deck.draw()

    async def create_new_game(self) -> Game:
        """Create an empty game and make it current."""
        game = Game()
        await self._store.create_record(game.to_record())
        self._game = game
        log.info("Game %s created", game.id)
        return game

    async def load_game(self, game_id: str) -> Game:
        """Load a game by id."""
        record = await self._store.get_record(game_id)
        if record is None:
            raise NotFoundError(f"Game {game_id} not found")

        self._game = Game.from_record(record)
        return self._game

    async def remove_game(self, game_id: str) -> None:
        """Delete a game record."""
        if await self._store.get_record(game_id) is None:
            raise NotFoundError(f"Game {game_id} not found")

        await self._store.delete_record(game_id)
        self._game = None
        log.info("Game %s removed", game_id)

    async def back_card(self, card: Card, game_id: str) -> Game:
        """Put a drawn card back on top of the deck."""
        game = await self._current(game_id)
        return await self._adopt(replace(game, deck=game.deck.put_back(card)))

    async def assign_current_player_turn(self, game_id: str, player_id: str | None) -> Game:
        """Set whose turn it is; ``None`` hands the turn to the dealer."""
        game = await self._current(game_id)
        return await self._adopt(replace(game, player_id_turn=player_id))

    async def set_winners(self, winner_ids: Iterable[str]) -> Game:
        """Record the winners on the current game."""
        if self._game is None:
            raise StateConflictError("Game not defined")

        return await self._adopt(replace(self._game, winner_ids=tuple(winner_ids)))

    async def deal(
        self,
        game_id: str,
        players_amount: int,
        player_id_turn: str | None,
        decks_amount: int = 1,
    ) -> list[tuple[Card, ...]]:
        """
        Deal two cards to the dealer and each player from a fresh deck.

        Cards go round-robin: dealer, players 1..N, dealer, players 1..N.

        Returns:
            The cards of each player, in seat order
        """
        game = await self.load_game(game_id)

        self._deck_engine.create_new(decks_amount)
        deck = self._deck_engine.shuffle()

        needed = CARDS_PER_HAND * (players_amount + 1)
        if players_amount < 1 or needed > len(deck):
            raise ValidationError(
                f"Cannot deal {players_amount} players from {decks_amount} deck(s)"
            )

        dealer_cards: list[Card] = []
        players_cards: list[list[Card]] = [[] for _ in range(players_amount)]

        for _ in range(CARDS_PER_HAND):
            card, deck = deck.draw()
            dealer_cards.append(card)

            for player_cards in players_cards:
                card, deck = deck.draw()
                player_cards.append(card)

        await self._adopt(
            replace(
                game,
                deck=deck,
                dealer_cards=tuple(dealer_cards),
                player_id_turn=player_id_turn,
                winner_ids=(),
            )
        )
        log.info("Game %s dealt to %d players, %d cards left", game_id, players_amount, len(deck))
        return [tuple(cards) for cards in players_cards]

    async def hit(self, game_id: str, player_cards: Iterable[Any]) -> Card:
        """
        Draw the top card for a player.

        The card is not attached to anyone yet; the caller does that and must
        ``back_card`` it if attaching fails.
        """
        game = await self._current(game_id)

        if self.calculate_total(player_cards) > hand.BLACKJACK:
            raise RuleViolationError("Player cannot take another card")

        card, deck = self._draw(game.deck)
        await self._adopt(replace(game, deck=deck))

        log.debug("Game %s drew %s", game_id, card)
        return card

    async def dealer_turn(self, game_id: str) -> int:
        """
        Play the dealer's hand.

        The dealer draws while its total is strictly below the stand threshold.

        Returns:
            The dealer's final total
        """
        game = await self._current(game_id)

        deck = game.deck
        dealer_cards = list(game.dealer_cards)
        total = self.calculate_total(dealer_cards)

        while total < self._dealer_stand_threshold:
            card, deck = self._draw(deck)
            dealer_cards.append(card)
            total = self.calculate_total(dealer_cards)

        await self._adopt(
            replace(game, deck=deck, dealer_cards=tuple(dealer_cards), player_id_turn=None)
        )
        log.info("Game %s dealer stands on %d with %d cards", game_id, total, len(dealer_cards))
        return total

    def calculate_total(self, cards: Iterable[Any]) -> int:
        """Calculate a hand total (see ``core.hand.calculate_total``)."""
        return hand.calculate_total(cards)

    def get_possible_winners(self, players: Iterable[Any]) -> hand.WinnerCandidates:
        """Select the possible winners among seated players."""
        return hand.possible_winners(players)
