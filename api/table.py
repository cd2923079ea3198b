"""Process-wide table orchestrator, built from configuration."""

from config import config
from core.game import TurnOrchestrator
from core.logging_utils import get_logger
from core.store import InMemoryRecordStore, RecordStore, RedisRecordStore, connect_redis

log = get_logger(__name__)

# Global orchestrator instance
_orchestrator: TurnOrchestrator | None = None


async def _create_stores() -> tuple[RecordStore, RecordStore]:
    """Create the game and player stores for the configured backend."""
    if config.store.backend == "redis":
        client = await connect_redis(config.redis.url)
        log.info("Using Redis store at %s:%d", config.redis.host, config.redis.port)
        return (
            RedisRecordStore(client, "games", prefix=config.store.key_prefix),
            RedisRecordStore(client, "players", prefix=config.store.key_prefix),
        )

    log.info("Using in-memory store")
    return InMemoryRecordStore(), InMemoryRecordStore()


async def get_orchestrator() -> TurnOrchestrator:
    """Get or create the orchestrator."""
    global _orchestrator

    if _orchestrator is not None:
        return _orchestrator

    games, players = await _create_stores()
    _orchestrator = TurnOrchestrator(
        games,
        players,
        decks_amount=config.game.decks_amount,
        dealer_stand_threshold=config.game.dealer_stand_threshold,
        max_seats=config.game.max_seats,
    )
    return _orchestrator


def reset_orchestrator() -> None:
    """Drop the orchestrator so the next request builds a fresh one."""
    global _orchestrator
    _orchestrator = None
