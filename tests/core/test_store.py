"""Tests for the record stores."""

import json

import pytest

from core.store import InMemoryRecordStore, RedisRecordStore


class FakeRedis:
    """Minimal async stand-in for the redis client calls the store makes."""

    def __init__(self):
        self.data = {}

    async def set(self, key, value):
        self.data[key] = value

    async def get(self, key):
        return self.data.get(key)

    async def delete(self, key):
        self.data.pop(key, None)

    async def scan_iter(self, match):
        prefix = match.rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key


class TestInMemoryRecordStore:
    """Tests for InMemoryRecordStore."""

    @pytest.mark.asyncio
    async def test_create_and_get(self):
        store = InMemoryRecordStore()
        await store.create_record({"id": "r1", "name": "one"})
        assert await store.get_record("r1") == {"id": "r1", "name": "one"}
        assert await store.get_record("missing") is None

    @pytest.mark.asyncio
    async def test_update_merges(self):
        store = InMemoryRecordStore()
        await store.create_record({"id": "r1", "a": 1, "b": 2})
        await store.update_record("r1", {"b": 3})
        assert await store.get_record("r1") == {"id": "r1", "a": 1, "b": 3}

    @pytest.mark.asyncio
    async def test_records_are_copied(self):
        store = InMemoryRecordStore()
        record = {"id": "r1", "cards": []}
        await store.create_record(record)
        record["cards"].append("x")

        loaded = await store.get_record("r1")
        loaded["cards"].append("y")
        assert (await store.get_record("r1"))["cards"] == []

    @pytest.mark.asyncio
    async def test_scan_with_predicate(self):
        store = InMemoryRecordStore()
        await store.create_record({"id": "r1", "game": "g1"})
        await store.create_record({"id": "r2", "game": "g2"})

        assert len(await store.scan_records()) == 2
        matches = await store.scan_records(lambda record: record["game"] == "g2")
        assert [record["id"] for record in matches] == ["r2"]

    @pytest.mark.asyncio
    async def test_delete(self):
        store = InMemoryRecordStore()
        await store.create_record({"id": "r1"})
        await store.delete_record("r1")
        await store.delete_record("r1")
        assert len(store) == 0


class TestRedisRecordStore:
    """Tests for RedisRecordStore key layout and JSON encoding."""

    @pytest.mark.asyncio
    async def test_keys_are_namespaced(self):
        client = FakeRedis()
        store = RedisRecordStore(client, "games", prefix="test:")
        await store.create_record({"id": "g1", "winner_ids": []})

        assert json.loads(client.data["test:games:g1"]) == {"id": "g1", "winner_ids": []}

    @pytest.mark.asyncio
    async def test_update_merges(self):
        store = RedisRecordStore(FakeRedis(), "players")
        await store.create_record({"id": "p1", "email": "a@b.c", "cards": []})
        await store.update_record("p1", {"cards": [{"title": "2 of Hearts", "value": "2"}]})

        record = await store.get_record("p1")
        assert record["email"] == "a@b.c"
        assert record["cards"] == [{"title": "2 of Hearts", "value": "2"}]

    @pytest.mark.asyncio
    async def test_scan_stays_in_namespace(self):
        client = FakeRedis()
        games = RedisRecordStore(client, "games")
        players = RedisRecordStore(client, "players")
        await games.create_record({"id": "g1"})
        await players.create_record({"id": "p1", "current_game_id": "g1"})

        assert [r["id"] for r in await games.scan_records()] == ["g1"]
        seated = await players.scan_records(lambda r: r.get("current_game_id") == "g1")
        assert [r["id"] for r in seated] == ["p1"]

    @pytest.mark.asyncio
    async def test_delete(self):
        store = RedisRecordStore(FakeRedis(), "games")
        await store.create_record({"id": "g1"})
        await store.delete_record("g1")
        assert await store.get_record("g1") is None
