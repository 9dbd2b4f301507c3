import pytest

from app.core.errors import WriteError
from app.core.optimistic import NotificationInbox, SyncState
from app.services.notification_service import create_notification, get_unread_count


async def _seed_inbox(store, user_id, count):
    for i in range(count):
        await create_notification(store, user_id, "info", f"n{i}", "body")


@pytest.mark.asyncio
async def test_mark_as_read_confirms(seeded_store):
    await _seed_inbox(seeded_store, "alice", 2)
    inbox = NotificationInbox(seeded_store, "alice")
    entries = await inbox.refresh()
    assert inbox.unread_count == 2
    assert entries[0].age == "Just now"

    entry = await inbox.mark_as_read(entries[0].id)

    assert entry.is_read and entry.state == SyncState.SYNCED
    assert inbox.unread_count == 1
    assert await get_unread_count(seeded_store, "alice") == 1


@pytest.mark.asyncio
async def test_failed_mark_as_read_rolls_back(seeded_store, rejecting_store):
    await _seed_inbox(seeded_store, "alice", 1)
    inbox = NotificationInbox(rejecting_store("notifications"), "alice")
    [entry] = await inbox.refresh()

    with pytest.raises(WriteError):
        await inbox.mark_as_read(entry.id)

    assert entry.is_read is False
    assert entry.state == SyncState.ROLLED_BACK
    assert inbox.unread_count == 1


@pytest.mark.asyncio
async def test_mark_all_as_read_rolls_back_every_entry(seeded_store, rejecting_store):
    await _seed_inbox(seeded_store, "bob", 3)
    inbox = NotificationInbox(rejecting_store("notifications"), "bob")
    await inbox.refresh()

    with pytest.raises(WriteError):
        await inbox.mark_all_as_read()

    assert inbox.unread_count == 3
    assert set(inbox.states().values()) == {SyncState.ROLLED_BACK}


@pytest.mark.asyncio
async def test_mark_all_as_read_and_refresh(seeded_store):
    await _seed_inbox(seeded_store, "bob", 3)
    inbox = NotificationInbox(seeded_store, "bob")
    await inbox.refresh()

    assert await inbox.mark_all_as_read() == 3
    assert await inbox.mark_all_as_read() == 0

    await create_notification(seeded_store, "bob", "warning", "new", "body")
    await inbox.refresh()
    assert inbox.unread_count == 1
    assert set(inbox.states().values()) == {SyncState.SYNCED}


@pytest.mark.asyncio
async def test_unknown_entry(seeded_store):
    inbox = NotificationInbox(seeded_store, "alice")
    await inbox.refresh()
    with pytest.raises(KeyError):
        await inbox.mark_as_read("missing")
