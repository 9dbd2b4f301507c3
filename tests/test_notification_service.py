import pytest

from app.core.errors import NotFoundError
from app.schemas.notifications import NotificationFilter
from app.services import notification_service


async def _notify(store, user_id, title, type="info", **fields):
    return await notification_service.create_notification(store, user_id, type, title, f"{title} body", **fields)


@pytest.mark.asyncio
async def test_get_notifications_is_newest_first_and_filterable(seeded_store):
    await _notify(seeded_store, "alice", "first")
    await _notify(seeded_store, "alice", "second", type="emergency", priority="high")
    third = await _notify(seeded_store, "alice", "third")
    await _notify(seeded_store, "bob", "not mine")
    await notification_service.mark_as_read(seeded_store, third["id"], "alice")

    all_titles = [n["title"] for n in await notification_service.get_notifications(seeded_store, "alice")]
    unread = await notification_service.get_notifications(seeded_store, "alice", NotificationFilter.UNREAD)
    emergency = await notification_service.get_notifications(seeded_store, "alice", NotificationFilter.EMERGENCY)

    assert all_titles == ["third", "second", "first"]
    assert [n["title"] for n in unread] == ["second", "first"]
    assert [n["title"] for n in emergency] == ["second"]
    assert await notification_service.get_unread_count(seeded_store, "alice") == 2


@pytest.mark.asyncio
async def test_notify_swallows_write_failures(seeded_store, rejecting_store):
    store = rejecting_store("notifications")

    await notification_service.notify(store, "alice", "info", "Hello", "World")

    assert await notification_service.get_notifications(seeded_store, "alice") == []


@pytest.mark.asyncio
async def test_fan_out_reports_aggregate_counts(seeded_store, rejecting_store):
    succeeded, failed = await notification_service.fan_out(
        seeded_store, ["alice", "bob", "carol"], type="info", title="Drill", message="Fire drill at noon"
    )
    assert (succeeded, failed) == (3, 0)

    succeeded, failed = await notification_service.fan_out(
        rejecting_store("notifications"), ["alice", "bob"], type="info", title="Drill", message="Again"
    )
    assert (succeeded, failed) == (0, 2)

    succeeded, failed = await notification_service.fan_out(
        rejecting_store(users=["bob"]), ["alice", "bob", "carol"], type="info", title="Drill", message="Once more"
    )
    assert (succeeded, failed) == (2, 1)
    assert [n["title"] for n in await notification_service.get_notifications(seeded_store, "bob")] == ["Drill"]


@pytest.mark.asyncio
async def test_mark_all_as_read_and_status_update_only_touch_the_owner(seeded_store):
    mine = await _notify(seeded_store, "alice", "mine")
    await _notify(seeded_store, "alice", "also mine")
    theirs = await _notify(seeded_store, "bob", "theirs")

    result = await notification_service.update_notification_status(
        seeded_store, [mine["id"], theirs["id"]], True, "alice"
    )
    assert result == {"updated_ids": [mine["id"]], "is_read": True}

    assert await notification_service.mark_all_as_read(seeded_store, "alice") == 1
    assert await notification_service.get_unread_count(seeded_store, "alice") == 0
    assert await notification_service.get_unread_count(seeded_store, "bob") == 1

    await notification_service.mark_as_unread(seeded_store, mine["id"], "alice")
    assert await notification_service.get_unread_count(seeded_store, "alice") == 1


@pytest.mark.asyncio
async def test_delete_notification_scoped_to_owner(seeded_store):
    theirs = await _notify(seeded_store, "bob", "theirs")
    assert await notification_service.delete_notification(seeded_store, theirs["id"], "alice") == 0
    assert await notification_service.delete_notification(seeded_store, theirs["id"], "bob") == 1


@pytest.mark.asyncio
async def test_helpers_and_samples(seeded_store):
    await notification_service.create_welcome_notification(seeded_store, "carol", "Carol")
    await notification_service.create_safety_tip_notification(seeded_store, "carol", "Share your live location")
    await notification_service.create_emergency_notification(seeded_store, "carol", "fire", "Park Street")
    samples = await notification_service.create_sample_notifications(seeded_store, "carol")

    assert len(samples) == len(notification_service.SAMPLE_NOTIFICATIONS)
    titles = {n["title"] for n in await notification_service.get_notifications(seeded_store, "carol")}
    assert {"Welcome to SOS!", "Safety Tip", "Emergency Alert", "Weather Warning"} <= titles


@pytest.mark.asyncio
async def test_subscription_delivers_snapshot_then_refreshes(seeded_store):
    snapshots = []
    unsubscribe = await notification_service.subscribe_to_user_notifications(seeded_store, "bob", snapshots.append)
    assert snapshots == [[]]

    await _notify(seeded_store, "bob", "ping")
    await _notify(seeded_store, "alice", "ignored")
    await seeded_store.drain()

    assert len(snapshots) == 2
    assert [n["title"] for n in snapshots[-1]] == ["ping"]

    unsubscribe()
    await _notify(seeded_store, "bob", "after")
    await seeded_store.drain()
    assert len(snapshots) == 2


@pytest.mark.asyncio
async def test_mark_as_read_without_an_id_leaves_the_inbox_alone(seeded_store):
    for title in ("one", "two", "three"):
        await _notify(seeded_store, "bob", title)

    with pytest.raises(NotFoundError):
        await notification_service.mark_as_read(seeded_store, None, "bob")
    assert await notification_service.delete_notification(seeded_store, None, "bob") == 0

    assert await notification_service.get_unread_count(seeded_store, "bob") == 3
