"""Keyed record store with in-memory and Redis backends."""

import copy
import json
from abc import ABC, abstractmethod
from typing import Any, Callable

import redis.asyncio as redis

Record = dict[str, Any]
RecordFilter = Callable[[Record], bool]


class RecordStore(ABC):
    """Abstract keyed store of JSON-compatible records.

    Records are keyed by their ``id``. There is no ordering guarantee across
    keys and no versioning: the last write wins.
    """

    @abstractmethod
    async def create_record(self, record: Record) -> None:
        """Store a new record under ``record["id"]``."""
        ...

    @abstractmethod
    async def update_record(self, record_id: str, attributes: Record) -> None:
        """Merge ``attributes`` into an existing record."""
        ...

    @abstractmethod
    async def get_record(self, record_id: str) -> Record | None:
        """Get a record, or None."""
        ...

    @abstractmethod
    async def scan_records(self, predicate: RecordFilter | None = None) -> list[Record]:
        """Return every record matching ``predicate``."""
        ...

    @abstractmethod
    async def delete_record(self, record_id: str) -> None:
        """Delete a record. Missing records are ignored."""
        ...


class InMemoryRecordStore(RecordStore):
    """In-memory store for local development and tests."""

    def __init__(self) -> None:
        self._records: dict[str, Record] = {}

    async def create_record(self, record: Record) -> None:
        self._records[record["id"]] = copy.deepcopy(record)

    async def update_record(self, record_id: str, attributes: Record) -> None:
        current = self._records.get(record_id, {"id": record_id})
        current.update(copy.deepcopy(attributes))
        self._records[record_id] = current

    async def get_record(self, record_id: str) -> Record | None:
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def scan_records(self, predicate: RecordFilter | None = None) -> list[Record]:
        return [
            copy.deepcopy(record)
            for record in self._records.values()
            if predicate is None or predicate(record)
        ]

    async def delete_record(self, record_id: str) -> None:
        self._records.pop(record_id, None)

    def __len__(self) -> int:
        return len(self._records)


class RedisRecordStore(RecordStore):
    """Redis-backed store. Each record is one JSON string key."""

    def __init__(self, redis_client: "redis.Redis", namespace: str, prefix: str = "blackjack:") -> None:
        self._redis = redis_client
        self._prefix = f"{prefix}{namespace}:"

    def _key(self, record_id: str) -> str:
        """Get Redis key for a record."""
        return f"{self._prefix}{record_id}"

    async def create_record(self, record: Record) -> None:
        await self._redis.set(self._key(record["id"]), json.dumps(record))

    async def update_record(self, record_id: str, attributes: Record) -> None:
        current = await self.get_record(record_id) or {"id": record_id}
        current.update(attributes)
        await self._redis.set(self._key(record_id), json.dumps(current))

    async def get_record(self, record_id: str) -> Record | None:
        data = await self._redis.get(self._key(record_id))
        if data is None:
            return None
        return json.loads(data)

    async def scan_records(self, predicate: RecordFilter | None = None) -> list[Record]:
        records = []
        async for key in self._redis.scan_iter(match=f"{self._prefix}*"):
            data = await self._redis.get(key)
            if data is None:
                continue
            record = json.loads(data)
            if predicate is None or predicate(record):
                records.append(record)
        return records

    async def delete_record(self, record_id: str) -> None:
        await self._redis.delete(self._key(record_id))


async def connect_redis(url: str) -> "redis.Redis":
    """Open a Redis client and check the server answers."""
    client = redis.from_url(url)
    await client.ping()
    return client
