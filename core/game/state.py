"""Round phases and the state machine guarding table actions."""

from enum import Enum, auto

from transitions import Machine, MachineError

from core.errors import StateConflictError
from core.models import Game


class RoundPhase(Enum):
    """
    Round state machine states.

    Flow: IDLE → DEALT → PLAYER_TURN → DEALER_TURN → SETTLED
    """

    # No game at the table
    IDLE = auto()

    # Seats taken, waiting for the deal
    DEALT = auto()

    # A seat is acting
    PLAYER_TURN = auto()

    # Every seat is done, the dealer plays
    DEALER_TURN = auto()

    # Winners recorded
    SETTLED = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").lower()


def phase_of(game: Game | None) -> RoundPhase:
    """Derive the phase from a persisted game snapshot."""
    if game is None:
        return RoundPhase.IDLE
    if game.winner_ids:
        return RoundPhase.SETTLED
    if not game.dealer_cards:
        return RoundPhase.DEALT
    if game.player_id_turn is not None:
        return RoundPhase.PLAYER_TURN
    return RoundPhase.DEALER_TURN


class RoundMachine:
    """
    State machine for one table action.

    Built from the phase of the stored game, it rejects triggers that are not
    legal in that phase.
    """

    STATES = [p.name.lower() for p in RoundPhase]

    TRANSITIONS = [
        {"trigger": "seat", "source": "idle", "dest": "dealt"},
        {"trigger": "join", "source": "dealt", "dest": "dealt"},
        {"trigger": "join", "source": "settled", "dest": "settled"},
        {"trigger": "deal", "source": ["dealt", "dealer_turn", "settled"], "dest": "player_turn"},
        {"trigger": "hit", "source": "player_turn", "dest": "player_turn"},
        {"trigger": "pass_turn", "source": "player_turn", "dest": "player_turn"},
        {"trigger": "hand_to_dealer", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "settle", "source": "dealer_turn", "dest": "settled"},
    ]

    def __init__(self, phase: RoundPhase = RoundPhase.IDLE) -> None:
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=phase.name.lower(),
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @classmethod
    def for_game(cls, game: Game | None) -> "RoundMachine":
        return cls(phase_of(game))

    @property
    def phase(self) -> RoundPhase:
        """Get current phase as enum."""
        return RoundPhase[self._machine_state.upper()]  # type: ignore[attr-defined]

    def fire(self, trigger: str) -> RoundPhase:
        """Run a trigger, raising StateConflictError when it is illegal."""
        current = self.phase
        try:
            self.trigger(trigger)  # type: ignore[attr-defined]
        except MachineError as exc:
            raise StateConflictError(f"Cannot {trigger.replace('_', ' ')} while {current}") from exc
        return self.phase
