import json

import pytest
from pydantic import ValidationError

from todos_api.models import Todo, TodoCollection, default_collection
from todos_api.repositories import cache_key


class TestSeed:
    @pytest.mark.asyncio
    async def test_fresh_user_gets_three_default_items(self, repository):
        collection = await repository.load("alice")
        assert set(collection.items) == {1, 2, 3}
        assert collection.last_inserted_id == 4
        assert [collection.items[i].content for i in (1, 2, 3)] == [
            "Create new todo",
            "Update me",
            "Delete example ones",
        ]

    @pytest.mark.asyncio
    async def test_seed_is_written_to_remote_with_ttl(self, repository, remote, local):
        await repository.load("alice")
        assert cache_key("alice") == "todos:user:alice"
        assert remote.ttls["todos:user:alice"] == 300
        assert TodoCollection.from_json(remote.data["todos:user:alice"]) == default_collection()
        assert "alice" not in local

    @pytest.mark.asyncio
    async def test_expired_entry_is_reseeded_identically(self, repository, remote):
        collection = await repository.load("alice")
        collection.items[4] = Todo(id=4, content="extra")
        collection.last_inserted_id = 5
        await repository.save("alice", collection)

        remote.expire("todos:user:alice")

        reloaded = await repository.load("alice")
        assert reloaded == default_collection()

    def test_default_collection_is_a_fresh_copy(self):
        first = default_collection()
        first.items.pop(1)
        assert 1 in default_collection().items


class TestRemoteReads:
    @pytest.mark.asyncio
    async def test_stored_collection_is_returned(self, repository, remote):
        stored = TodoCollection(items={7: Todo(id=7, content="seven")}, last_inserted_id=8)
        remote.data["todos:user:bob"] = stored.to_json()

        assert await repository.load("bob") == stored

    @pytest.mark.asyncio
    async def test_empty_content_written_elsewhere_is_kept(self, repository, remote):
        raw = '{"items": {"1": {"id": 1, "content": "keep"}, "4": {"id": 4, "content": ""}}, "lastInsertedID": 5}'
        remote.data["todos:user:alice"] = raw

        collection = await repository.load("alice")

        assert [(t.id, t.content) for t in collection.items.values()] == [(1, "keep"), (4, "")]
        assert collection.last_inserted_id == 5
        assert remote.data["todos:user:alice"] == raw

    @pytest.mark.asyncio
    async def test_unreadable_value_is_treated_as_missing(self, repository, remote, local):
        remote.data["todos:user:bob"] = "{not json"

        collection = await repository.load("bob")

        assert collection == default_collection()
        assert TodoCollection.from_json(remote.data["todos:user:bob"]) == default_collection()
        assert "bob" not in local

    @pytest.mark.asyncio
    async def test_seed_goes_to_local_when_remote_write_fails(self, repository, remote, local):
        remote.fail_set = True

        collection = await repository.load("bob")

        assert collection == default_collection()
        assert "todos:user:bob" not in remote.data
        assert "bob" in local

    @pytest.mark.asyncio
    async def test_remote_read_failure_falls_back_to_local(self, repository, remote, local):
        stored = TodoCollection(items={5: Todo(id=5, content="local")}, last_inserted_id=6)
        await local.set("bob", stored.to_json())
        remote.fail_get = True

        assert await repository.load("bob") == stored


class TestDisconnected:
    @pytest.mark.asyncio
    async def test_reads_and_writes_use_local_tier(self, repository, remote, local):
        remote.connected = False

        collection = await repository.load("carol")
        assert collection == default_collection()
        assert "carol" in local
        assert remote.data == {}

        collection.items[4] = Todo(id=4, content="offline")
        collection.last_inserted_id = 5
        await repository.save("carol", collection)

        assert await repository.load("carol") == collection

    @pytest.mark.asyncio
    async def test_local_data_visible_after_disconnect(self, repository, remote, local):
        remote.fail_set = True
        collection = await repository.load("carol")
        collection.items[4] = Todo(id=4, content="kept")
        collection.last_inserted_id = 5
        await repository.save("carol", collection)

        remote.connected = False
        reloaded = await repository.load("carol")
        assert reloaded.items[4].content == "kept"

    @pytest.mark.asyncio
    async def test_unreadable_local_value_is_reseeded(self, repository, remote, local):
        remote.connected = False
        await local.set("carol", "garbage")

        assert await repository.load("carol") == default_collection()


class TestSave:
    @pytest.mark.asyncio
    async def test_save_prefers_remote(self, repository, remote, local):
        await repository.save("dave", default_collection())
        assert "todos:user:dave" in remote.data
        assert "dave" not in local

    @pytest.mark.asyncio
    async def test_failed_remote_write_goes_to_local(self, repository, remote, local):
        remote.fail_set = True
        await repository.save("dave", default_collection())
        assert "dave" in local


class TestWireFormat:
    def test_collection_field_names(self):
        payload = json.loads(default_collection().to_json())
        assert set(payload) == {"items", "lastInsertedID"}
        assert payload["lastInsertedID"] == 4
        assert payload["items"]["1"] == {"id": 1, "content": "Create new todo"}

    def test_collection_written_by_other_services_parses(self):
        raw = '{"items": {"2": {"id": 2, "content": "Update me"}}, "lastInsertedID": 9}'
        collection = TodoCollection.from_json(raw)
        assert list(collection.items) == [2]
        assert collection.last_inserted_id == 9

    def test_key_must_match_id(self):
        with pytest.raises(ValidationError):
            TodoCollection.from_json('{"items": {"1": {"id": 2, "content": "x"}}, "lastInsertedID": 3}')
