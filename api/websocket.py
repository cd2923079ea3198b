"""WebSocket channels publishing table events per game."""

import asyncio
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from api.auth import extract_email
from api.table import get_orchestrator
from config import config
from core.errors import BlackjackError
from core.game import TableEvent, TurnOrchestrator
from core.logging_utils import get_logger

router = APIRouter()
log = get_logger(__name__)


class ConnectionManager:
    """Manage WebSocket subscriptions to game channels."""

    def __init__(self) -> None:
        self._channels: dict[str, dict[str, asyncio.Queue]] = {}
        self._bound: TurnOrchestrator | None = None

    def bind(self, orchestrator: TurnOrchestrator) -> None:
        """Receive the events of an orchestrator (once per orchestrator)."""
        if self._bound is orchestrator:
            return
        orchestrator.subscribe(self._queue_event)
        self._bound = orchestrator

    def subscribe(self, game_id: str) -> tuple[str, asyncio.Queue]:
        """Register a new subscriber to a game channel."""
        connection_id = str(uuid4())
        queue: asyncio.Queue = asyncio.Queue(maxsize=100)
        self._channels.setdefault(game_id, {})[connection_id] = queue
        return connection_id, queue

    def unsubscribe(self, game_id: str, connection_id: str) -> None:
        """Remove a subscriber."""
        subscribers = self._channels.get(game_id, {})
        subscribers.pop(connection_id, None)
        if not subscribers:
            self._channels.pop(game_id, None)

    def publish(self, game_id: str, payload: dict[str, Any]) -> None:
        """Fire-and-forget delivery to every subscriber of a game."""
        for connection_id, queue in self._channels.get(game_id, {}).items():
            try:
                queue.put_nowait(payload)
            except asyncio.QueueFull:
                log.warning("Dropping update for slow subscriber %s", connection_id)

    def _queue_event(self, event: TableEvent) -> None:
        """Queue an event for async delivery."""
        self.publish(event.game_id, _event_to_message(event))


# Global connection manager
manager = ConnectionManager()


def _event_to_message(event: TableEvent) -> dict[str, Any]:
    """Convert a table event to a WebSocket message."""
    data = {key: value for key, value in event.data.items() if key != "state"}
    return {
        "type": "game_update",
        "event_type": event.event_type.name,
        "data": data,
        "state": event.data.get("state"),
    }


async def _run_action(orchestrator: TurnOrchestrator, email: str, game_id: str, action: str) -> dict[str, Any]:
    """Run a client action, returning the message to send back."""
    if action == "get_state":
        state = await orchestrator.get_game_state(email, game_id)
        return {"type": "state_update", "state": state}
    if action == "hit":
        await orchestrator.hit(email, game_id)
    elif action == "stand":
        await orchestrator.stand(email, game_id)
    elif action == "deal":
        await orchestrator.deal(email, game_id)
    elif action == "leave":
        await orchestrator.leave_game(email)
    else:
        return {"type": "error", "message": f"Unknown message type: {action}"}
    return {"type": "ack", "action": action}


@router.websocket("/game/{game_id}")
async def game_websocket(websocket: WebSocket, game_id: str, token: str | None = None) -> None:
    """
    WebSocket endpoint for real-time game updates.

    Messages from client:
    - {"type": "get_state"}
    - {"type": "hit"} / {"type": "stand"} / {"type": "deal"} / {"type": "leave"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "game_update", "event_type": "...", "data": {...}, "state": {...}}
    - {"type": "ack", "action": "..."}
    - {"type": "error", "message": "..."}
    """
    email = extract_email(token)
    if email is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    orchestrator = await get_orchestrator()
    manager.bind(orchestrator)

    try:
        state = await orchestrator.get_game_state(email, game_id)
    except BlackjackError as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc))
        return

    await websocket.accept()
    connection_id, queue = manager.subscribe(game_id)
    await websocket.send_json({"type": "state_update", "state": state})

    async def forward_updates() -> None:
        """Send queued game updates to the client."""
        while True:
            message = await queue.get()
            await websocket.send_json(message)

    forward_task = asyncio.create_task(forward_updates())

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                message = None
            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "message": "Malformed message"})
                continue

            action = message.get("type")
            try:
                reply = await _run_action(orchestrator, email, game_id, str(action))
            except BlackjackError as exc:
                reply = {"type": "error", "message": str(exc)}
            await websocket.send_json(reply)

    except WebSocketDisconnect:
        log.info("Subscriber %s left game %s", connection_id, game_id)
    except Exception:
        log.exception("Subscriber %s of game %s failed", connection_id, game_id)
    finally:
        forward_task.cancel()
        try:
            await forward_task
        except asyncio.CancelledError:
            pass
        manager.unsubscribe(game_id, connection_id)
        if config.leave_on_disconnect:
            await _leave_if_seated(orchestrator, email, game_id)


async def _leave_if_seated(orchestrator: TurnOrchestrator, email: str, game_id: str) -> None:
    """Unseat a disconnected player still seated at the game."""
    player = await orchestrator.find_player(email)
    if player.current_game_id == game_id:
        await orchestrator.leave_game(email)
