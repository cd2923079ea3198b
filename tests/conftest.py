"""Pytest fixtures for blackjack table tests."""

from random import Random

import pytest
import pytest_asyncio

from core.deck import DeckEngine
from core.game import GameEngine, PlayerService, TurnOrchestrator
from core.store import InMemoryRecordStore

ALICE = "alice@example.com"
BOB = "bob@example.com"


class StackedRandom(Random):
    """Random whose shuffle moves the ``top`` titles to the top of the deck, in order.

    The remaining cards keep their creation order.
    """

    top: tuple[str, ...] = ()

    def shuffle(self, x) -> None:
        stacked = []
        for title in self.top:
            index = next(i for i, card in enumerate(x) if card.title == title)
            stacked.append(x.pop(index))
        x[:0] = stacked


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def stacked():
    """Random that stacks chosen cards on top; set ``stacked.top`` before dealing."""
    return StackedRandom()


@pytest.fixture
def deck_engine(rng):
    """Deck engine with a seeded rng."""
    return DeckEngine(rng)


@pytest.fixture
def game_store():
    """Empty game store."""
    return InMemoryRecordStore()


@pytest.fixture
def player_store():
    """Empty player store."""
    return InMemoryRecordStore()


@pytest.fixture
def engine(game_store, stacked):
    """Game engine dealing from a stacked deck."""
    return GameEngine(game_store, deck_engine=DeckEngine(stacked))


@pytest.fixture
def players(player_store):
    """Player service."""
    return PlayerService(player_store)


@pytest.fixture
def orchestrator(game_store, player_store, stacked):
    """Orchestrator dealing from a stacked deck."""
    return TurnOrchestrator(game_store, player_store, rng=stacked)


@pytest_asyncio.fixture
async def table(orchestrator):
    """Alice in seat 1 and Bob in seat 2 of a fresh game."""
    await orchestrator.register_player(ALICE)
    await orchestrator.register_player(BOB)
    state = await orchestrator.start_game(ALICE)
    await orchestrator.join_game(BOB, state["id"])

    alice = await orchestrator.find_player(ALICE)
    bob = await orchestrator.find_player(BOB)
    return state["id"], alice, bob

