import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from app.config import settings
from app.core.record_store import ChangeEvent, Record, RecordStore, Subscription, invoke_callback
from app.schemas.notifications import NotificationFilter, NotificationPriority, NotificationType

# Configure logging
logger = logging.getLogger(__name__)

TABLE = "notifications"


async def create_notification(
    store: RecordStore,
    user_id: str,
    type: str,
    title: str,
    message: str,
    priority: Optional[str] = None,
    action_type: Optional[str] = None,
    action_data: Optional[Dict[str, Any]] = None,
    location: Optional[str] = None,
    phone: Optional[str] = None,
    emergency_type: Optional[str] = None,
) -> Record:
    """
    Insert a notification for `user_id`.

    Raises:
        WriteError: If the store rejects the write.
    """
    return await store.create(TABLE, {
        "user_id": user_id,
        "type": type,
        "title": title,
        "message": message,
        "priority": priority or NotificationPriority.MEDIUM.value,
        "action_type": action_type,
        "action_data": action_data,
        "location": location,
        "phone": phone,
        "emergency_type": emergency_type,
        "is_read": False,
    })


async def notify(store: RecordStore, user_id: str, type: str, title: str, message: str, **fields) -> None:
    """
    Best-effort notification. Failures are logged and swallowed so the
    operation that triggered the alert still succeeds.
    """
    try:
        await create_notification(store, user_id, type, title, message, **fields)
    except Exception:
        logger.exception(f"Failed to notify user {user_id} ({title}); continuing")


async def fan_out(store: RecordStore, user_ids: Iterable[str], **fields) -> Tuple[int, int]:
    """
    Send the same notification to every user in parallel.

    Concurrency is bounded by `notification_fanout_concurrency`. Never raises;
    returns (succeeded, failed).
    """
    semaphore = asyncio.Semaphore(max(1, settings.notification_fanout_concurrency))

    async def _send(user_id: str):
        async with semaphore:
            return await create_notification(store, user_id, **fields)

    targets = list(user_ids)
    results = await asyncio.gather(*[_send(user_id) for user_id in targets], return_exceptions=True)
    failed = [r for r in results if isinstance(r, Exception)]
    for error in failed:
        logger.warning(f"Notification fan-out write failed: {error}")
    succeeded = len(results) - len(failed)
    logger.info(f"Fan-out '{fields.get('title')}': {succeeded} sent, {len(failed)} failed")
    return succeeded, len(failed)


async def create_emergency_notification(
    store: RecordStore, user_id: str, emergency_type: str, location: str, phone: Optional[str] = None
) -> None:
    await notify(
        store, user_id,
        type=NotificationType.EMERGENCY.value,
        title="Emergency Alert",
        message=f"Emergency situation detected: {emergency_type}. Help is on the way.",
        priority=NotificationPriority.HIGH.value,
        location=location,
        phone=phone,
        emergency_type=emergency_type,
    )


async def create_system_notification(
    store: RecordStore, user_id: str, title: str, message: str, type: str = NotificationType.INFO.value
) -> None:
    await notify(store, user_id, type=type, title=title, message=message, priority=NotificationPriority.MEDIUM.value)


async def create_welcome_notification(store: RecordStore, user_id: str, user_name: str) -> None:
    await notify(
        store, user_id,
        type=NotificationType.SUCCESS.value,
        title="Welcome to SOS!",
        message=f"Welcome {user_name}! Your emergency response system is now active. Stay safe!",
        priority=NotificationPriority.LOW.value,
    )


async def create_safety_tip_notification(store: RecordStore, user_id: str, tip: str) -> None:
    await notify(
        store, user_id,
        type=NotificationType.INFO.value,
        title="Safety Tip",
        message=tip,
        priority=NotificationPriority.LOW.value,
    )


SAMPLE_NOTIFICATIONS = [
    {
        "type": "emergency",
        "title": "Emergency Alert",
        "message": "Fire emergency reported in your area. Please evacuate immediately.",
        "priority": "high",
        "location": "Kothrud, Pune",
        "emergency_type": "fire",
    },
    {
        "type": "warning",
        "title": "Weather Warning",
        "message": "Heavy rainfall expected in your area. Stay indoors and avoid flooded areas.",
        "priority": "medium",
    },
    {
        "type": "success",
        "title": "Emergency Response",
        "message": "Emergency services have been notified and are on their way.",
        "priority": "medium",
    },
    {
        "type": "info",
        "title": "Safety Reminder",
        "message": "Remember to keep your emergency contacts updated in your profile.",
        "priority": "low",
    },
]


async def create_sample_notifications(store: RecordStore, user_id: str) -> List[Record]:
    """Seed a user's inbox with one notification of each type."""
    return [await create_notification(store, user_id, **sample) for sample in SAMPLE_NOTIFICATIONS]


async def get_notifications(
    store: RecordStore, user_id: str, filter: NotificationFilter = NotificationFilter.ALL
) -> List[Record]:
    """
    Retrieve a user's notifications, newest first.

    Args:
        store: Record store
        user_id: Owner of the notifications
        filter: ALL, UNREAD (is_read false) or EMERGENCY (type emergency)
    """
    criteria: Dict[str, Any] = {"user_id": user_id}
    if filter == NotificationFilter.UNREAD:
        criteria["is_read"] = False
    elif filter == NotificationFilter.EMERGENCY:
        criteria["type"] = NotificationType.EMERGENCY.value
    return await store.find(TABLE, criteria, order_by="created_at", descending=True)


async def get_unread_count(store: RecordStore, user_id: str) -> int:
    return len(await get_notifications(store, user_id, NotificationFilter.UNREAD))


def _owned(notification_id: str, user_id: Optional[str]) -> Dict[str, Any]:
    criteria: Dict[str, Any] = {"id": notification_id}
    if user_id is not None:
        criteria["user_id"] = user_id
    return criteria


async def mark_as_read(store: RecordStore, notification_id: str, user_id: Optional[str] = None) -> Record:
    return await store.update(TABLE, _owned(notification_id, user_id), {"is_read": True})


async def mark_as_unread(store: RecordStore, notification_id: str, user_id: Optional[str] = None) -> Record:
    return await store.update(TABLE, _owned(notification_id, user_id), {"is_read": False})


async def update_notification_status(store: RecordStore, ids: List[str], is_read: bool, user_id: str) -> dict:
    """
    Set `is_read` on several of the user's notifications.

    Returns:
        dict: The ids that were updated and the new flag
    """
    updated = []
    for notification_id in ids:
        if await store.update_many(TABLE, {"id": notification_id, "user_id": user_id}, {"is_read": is_read}):
            updated.append(notification_id)
    return {"updated_ids": updated, "is_read": is_read}


async def mark_all_as_read(store: RecordStore, user_id: str) -> int:
    return await store.update_many(TABLE, {"user_id": user_id, "is_read": False}, {"is_read": True})


async def delete_notification(store: RecordStore, notification_id: str, user_id: Optional[str] = None) -> int:
    return await store.delete(TABLE, _owned(notification_id, user_id))


async def subscribe_to_user_notifications(
    store: RecordStore, user_id: str, on_update: Callable[[List[Record]], Any]
) -> Subscription:
    """
    Deliver the user's notifications now and again after every change to them.

    Returns:
        Subscription: call it to stop receiving updates
    """
    async def _refresh(event: Optional[ChangeEvent] = None):
        await invoke_callback(on_update, await get_notifications(store, user_id))

    await _refresh()
    return store.subscribe(TABLE, {"user_id": user_id}, _refresh)

