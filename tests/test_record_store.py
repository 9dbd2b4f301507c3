import asyncio

import pytest

from app.core.errors import NotFoundError
from app.core.record_store import ChangeEvent


@pytest.mark.asyncio
async def test_create_assigns_id_and_timestamp(store):
    user = await store.create("users", {"id": "u1", "display_name": "Asha"})
    notification = await store.create("notifications", {"user_id": "u1", "type": "info", "title": "Hi", "message": "Hello"})

    assert user["id"] == "u1"
    assert notification["id"]
    assert notification["created_at"] is not None
    assert notification["priority"] == "medium"
    assert notification["is_read"] is False


@pytest.mark.asyncio
async def test_none_filter_values_match_null_and_orders(seeded_store):
    await seeded_store.create("users", {"id": "dev", "display_name": "Dev Only"})

    users = await seeded_store.find("users", {"email": None})
    assert [u["id"] for u in users] == ["dev"]

    ordered = await seeded_store.find("users", order_by="display_name", descending=True)
    assert [u["id"] for u in ordered] == ["dev", "carol", "bob", "alice"]

    limited = await seeded_store.find("users", order_by="display_name", limit=2)
    assert [u["id"] for u in limited] == ["alice", "bob"]


@pytest.mark.asyncio
async def test_writes_with_a_missing_id_touch_no_rows(seeded_store):
    with pytest.raises(NotFoundError):
        await seeded_store.update("users", {"id": None}, {"phone": "0"})
    assert await seeded_store.update_many("users", {"id": None}, {"phone": "0"}) == 0
    assert await seeded_store.delete("profiles", {"id": None}) == 0

    with pytest.raises(ValueError):
        await seeded_store.update_many("users", {}, {"phone": "0"})
    with pytest.raises(ValueError):
        await seeded_store.delete_any("profiles", [])

    assert [u["phone"] for u in await seeded_store.find("users", order_by="id")] == [
        "+91 90000 00001", "+91 90000 00002", "+91 90000 00003"
    ]
    assert len(await seeded_store.find("profiles")) == 3


@pytest.mark.asyncio
async def test_search_is_case_insensitive_and_treats_wildcards_literally(seeded_store):
    assert [u["id"] for u in await seeded_store.search("users", "BOB", ["display_name", "email"])] == ["bob"]
    assert await seeded_store.search("users", "%", ["display_name"]) == []

    excluded = await seeded_store.search("users", "example.com", ["email"], exclude={"id": "alice"}, order_by="id")
    assert [u["id"] for u in excluded] == ["bob", "carol"]


@pytest.mark.asyncio
async def test_update_stamps_updated_at_and_raises_when_nothing_matches(seeded_store):
    updated = await seeded_store.update("users", {"id": "bob"}, {"phone": "100"})
    assert updated["phone"] == "100"
    assert updated["updated_at"] is not None

    with pytest.raises(NotFoundError):
        await seeded_store.update("users", {"id": "nobody"}, {"phone": "100"})

    assert await seeded_store.update_many("users", {"id": "nobody"}, {"phone": "100"}) == 0


@pytest.mark.asyncio
async def test_delete_returns_count(seeded_store):
    assert await seeded_store.delete("profiles", {"id": "carol"}) == 1
    assert await seeded_store.delete("profiles", {"id": "carol"}) == 0


@pytest.mark.asyncio
async def test_unknown_table_is_rejected(store):
    with pytest.raises(ValueError):
        await store.find("tokens")


@pytest.mark.asyncio
async def test_subscribers_receive_matching_committed_changes(seeded_store):
    events = []
    unsubscribe = seeded_store.subscribe("notifications", {"user_id": "bob"}, events.append)

    await seeded_store.create("notifications", {"user_id": "alice", "type": "info", "title": "a", "message": "a"})
    created = await seeded_store.create("notifications", {"user_id": "bob", "type": "info", "title": "b", "message": "b"})
    await seeded_store.update("notifications", {"id": created["id"]}, {"is_read": True})
    await seeded_store.delete("notifications", {"id": created["id"]})
    await seeded_store.drain()

    assert [e.event for e in events] == ["INSERT", "UPDATE", "DELETE"]
    assert all(isinstance(e, ChangeEvent) and e.record["user_id"] == "bob" for e in events)
    assert events[1].old["is_read"] is False and events[1].new["is_read"] is True

    unsubscribe()
    unsubscribe()
    assert seeded_store.subscriber_count("notifications") == 0
    await seeded_store.create("notifications", {"user_id": "bob", "type": "info", "title": "c", "message": "c"})
    await seeded_store.drain()
    assert len(events) == 3


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_break_the_write(seeded_store):
    received = []

    async def broken(event):
        raise RuntimeError("boom")

    seeded_store.subscribe("users", None, broken)
    seeded_store.subscribe("users", lambda row: row["id"] == "dave", received.append)

    user = await seeded_store.create("users", {"id": "dave", "display_name": "Dave"})
    assert user["id"] == "dave"
    await seeded_store.drain()
    assert len(received) == 1


@pytest.mark.asyncio
async def test_slow_subscriber_does_not_hold_up_writes_and_sees_changes_in_order(seeded_store):
    release = asyncio.Event()
    seen = []

    async def slow(event):
        await release.wait()
        seen.append(event.new["title"])

    seeded_store.subscribe("notifications", {"user_id": "bob"}, slow)
    for title in ("one", "two", "three"):
        await seeded_store.create("notifications", {"user_id": "bob", "type": "info", "title": title, "message": title})

    assert seen == []
    release.set()
    await seeded_store.drain()
    assert seen == ["one", "two", "three"]


@pytest.mark.asyncio
async def test_create_many_is_all_or_nothing(seeded_store):
    from app.core.errors import WriteError

    with pytest.raises(WriteError):
        await seeded_store.create_many("users", [{"id": "erin"}, {"id": "alice"}])
    assert await seeded_store.find_one("users", {"id": "erin"}) is None
