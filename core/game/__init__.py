"""Game engine, turn orchestration and state management."""

from core.game.events import EventEmitter, EventType, TableEvent
from core.game.state import RoundMachine, RoundPhase
from core.game.engine import GameEngine
from core.game.players import PlayerService
from core.game.orchestrator import TurnOrchestrator

__all__ = [
    "EventEmitter",
    "EventType",
    "TableEvent",
    "RoundMachine",
    "RoundPhase",
    "GameEngine",
    "PlayerService",
    "TurnOrchestrator",
]
