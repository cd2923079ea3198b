"""Table events for the event system."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable


class EventType(Enum):
    """Types of table events."""

    # Seating
    PLAYER_SEATED = auto()
    PLAYER_JOINED = auto()
    PLAYER_LEFT = auto()
    GAME_REMOVED = auto()

    # Round flow
    CARDS_DEALT = auto()
    PLAYER_HIT = auto()
    PLAYER_BUSTS = auto()
    TURN_PASSED = auto()
    ROUND_SETTLED = auto()


@dataclass(frozen=True)
class TableEvent:
    """
    Immutable table event.

    Emitted once a state transition has been persisted. ``data["state"]``
    holds the public projection of the game, when the game still exists.
    """

    event_type: EventType
    game_id: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name} [{self.game_id}]"


# Type alias for event handlers
EventHandler = Callable[[TableEvent], None]


class EventEmitter:
    """
    Simple event emitter for table events.

    Allows subscribing to specific event types or all events.
    """

    def __init__(self) -> None:
        """Initialize the event emitter."""
        self._handlers: dict[EventType | None, list[EventHandler]] = {}

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Unsubscribe a handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: TableEvent) -> None:
        """Emit an event to all subscribers."""
        for handler in list(self._handlers.get(event.event_type, [])):
            handler(event)

        for handler in list(self._handlers.get(None, [])):
            handler(event)

    def emit_new(
        self,
        event_type: EventType,
        game_id: str,
        **data: Any,
    ) -> TableEvent:
        """
        Create and emit a new event.

        Args:
            event_type: Type of event
            game_id: Game the event belongs to
            **data: Event data

        Returns:
            The created event
        """
        event = TableEvent(event_type=event_type, game_id=game_id, data=data)
        self.emit(event)
        return event
