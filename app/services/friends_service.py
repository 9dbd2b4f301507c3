import logging
from typing import Any, Callable, List, Optional

from app.core.errors import AlreadyResolvedError, ConflictError, NotFoundError, ValidationError
from app.core.record_store import ChangeEvent, Record, RecordStore, Subscription, invoke_callback
from app.schemas.friends import FriendRequestStatus, FriendStatus, FriendStatusResponse
from app.schemas.notifications import NotificationActionType, NotificationPriority, NotificationType
from app.services.notification_service import notify
from app.services.user_service import get_user_by_id, resolve_user_id

# Configure logging for this module
logger = logging.getLogger(__name__)

REQUESTS = "friend_requests"
FRIENDS = "friends"


async def send_friend_request(
    store: RecordStore, from_user_id: str, from_user_name: str, to_user_id: str, to_user_name: str
) -> str:
    """
    Send a friend request to another user.

    Args:
        store: Record store
        from_user_id: Canonical id of the sender
        from_user_name: Sender's display name, stored on the request
        to_user_id: User id or profile id of the recipient
        to_user_name: Recipient's display name, stored on the request

    Returns:
        str: The id of the new pending request

    Raises:
        ValidationError: If the sender targets themselves
        NotFoundError: If the recipient does not exist
        ConflictError: If a pending request for the same ordered pair exists
    """
    # Prevent self-friending
    if from_user_id == to_user_id:
        raise ValidationError("You can't send a friend request to yourself.")

    target_id = await resolve_user_id(store, to_user_id)
    if target_id == from_user_id:
        raise ValidationError("You can't send a friend request to yourself.")

    # Not atomic with the insert below; concurrent senders can both pass
    if await check_friend_request(store, from_user_id, target_id):
        raise ConflictError("Friend request already sent")

    friend_request = await store.create(REQUESTS, {
        "from_user_id": from_user_id,
        "to_user_id": target_id,
        "from_user_name": from_user_name,
        "to_user_name": to_user_name,
        "status": FriendRequestStatus.PENDING.value,
    })
    logger.info(f"Friend request {friend_request['id']} sent from {from_user_id} to {target_id}")

    await notify(
        store, target_id,
        type=NotificationType.INFO.value,
        title="New Friend Request",
        message=f"{from_user_name} sent you a friend request",
        priority=NotificationPriority.MEDIUM.value,
        action_type=NotificationActionType.FRIEND_REQUEST.value,
        action_data={
            "fromUserId": from_user_id,
            "fromUserName": from_user_name,
            "requestId": friend_request["id"],
        },
    )
    return friend_request["id"]


async def _load_pending_request(store: RecordStore, request_id: str) -> Record:
    friend_request = await store.find_one(REQUESTS, {"id": request_id})
    if friend_request is None:
        raise NotFoundError("Friend request not found")
    if friend_request["status"] != FriendRequestStatus.PENDING.value:
        raise AlreadyResolvedError(f"Friend request was already {friend_request['status']}")
    return friend_request


async def accept_friend_request(store: RecordStore, request_id: str) -> None:
    """
    Accept a pending request: mark it accepted, create both friendship rows
    and tell the sender.

    Both friendship rows are inserted in one transaction, but the status
    update before them commits on its own. If the process dies in between,
    `ensure_friendship_rows` can be re-run for the accepted request.

    Raises:
        NotFoundError: If the request does not exist
        AlreadyResolvedError: If it was already accepted or rejected
    """
    friend_request = await _load_pending_request(store, request_id)

    friend_request = await store.update(
        REQUESTS,
        {"id": request_id, "status": FriendRequestStatus.PENDING.value},
        {"status": FriendRequestStatus.ACCEPTED.value},
    )
    created = await ensure_friendship_rows(store, friend_request)
    logger.info(f"Friend request {request_id} accepted, {created} friendship rows created")

    await notify(
        store, friend_request["from_user_id"],
        type=NotificationType.SUCCESS.value,
        title="Friend Request Accepted",
        message=f"{friend_request['to_user_name'] or 'Your friend'} accepted your friend request",
        priority=NotificationPriority.MEDIUM.value,
        action_type=NotificationActionType.FRIEND_ACCEPTED.value,
        action_data={
            "fromUserId": friend_request["to_user_id"],
            "fromUserName": friend_request["to_user_name"],
        },
    )


async def ensure_friendship_rows(store: RecordStore, friend_request: Record) -> int:
    """
    Create whichever of the two directed friendship rows for an accepted
    request is missing. Safe to repeat.

    Returns:
        int: Number of rows created (0, 1 or 2)
    """
    from_id = friend_request["from_user_id"]
    to_id = friend_request["to_user_id"]

    rows = []
    for user_id, friend_id, friend_name in (
        (to_id, from_id, friend_request.get("from_user_name")),
        (from_id, to_id, friend_request.get("to_user_name")),
    ):
        if await check_friendship(store, user_id, friend_id):
            continue
        friend_user = await get_user_by_id(store, friend_id)
        rows.append({
            "user_id": user_id,
            "friend_id": friend_id,
            "friend_name": friend_name,
            "friend_email": (friend_user or {}).get("email") or "",
            "status": FriendStatus.ACTIVE.value,
        })

    if rows:
        await store.create_many(FRIENDS, rows)
    return len(rows)


async def reject_friend_request(store: RecordStore, request_id: str) -> None:
    """
    Reject a pending request. No friendship rows, no notification.

    Raises:
        NotFoundError: If the request does not exist
        AlreadyResolvedError: If it was already accepted or rejected
    """
    await _load_pending_request(store, request_id)
    await store.update(
        REQUESTS,
        {"id": request_id, "status": FriendRequestStatus.PENDING.value},
        {"status": FriendRequestStatus.REJECTED.value},
    )
    logger.info(f"Friend request {request_id} rejected")


async def get_friend_request(store: RecordStore, request_id: str) -> Record:
    friend_request = await store.find_one(REQUESTS, {"id": request_id})
    if friend_request is None:
        raise NotFoundError("Friend request not found")
    return friend_request


async def list_pending_friend_requests(store: RecordStore, user_id: str) -> List[Record]:
    return await store.find(
        REQUESTS,
        {"to_user_id": user_id, "status": FriendRequestStatus.PENDING.value},
        order_by="created_at",
        descending=True,
    )


async def list_friends(store: RecordStore, user_id: str) -> List[Record]:
    return await store.find(
        FRIENDS,
        {"user_id": user_id, "status": FriendStatus.ACTIVE.value},
        order_by="created_at",
        descending=True,
    )


async def get_pending_friend_requests(
    store: RecordStore, user_id: str, on_update: Callable[[List[Record]], Any]
) -> Subscription:
    """
    Deliver the user's incoming pending requests now, then again whenever a
    request addressed to them changes.

    Returns:
        Subscription: call it to unsubscribe
    """
    async def _refresh(event: Optional[ChangeEvent] = None):
        await invoke_callback(on_update, await list_pending_friend_requests(store, user_id))

    await _refresh()
    return store.subscribe(REQUESTS, {"to_user_id": user_id}, _refresh)


async def get_user_friends(
    store: RecordStore, user_id: str, on_update: Callable[[List[Record]], Any]
) -> Subscription:
    """
    Deliver the user's active friends now, then again whenever one of their
    friendship rows changes.

    Returns:
        Subscription: call it to unsubscribe
    """
    async def _refresh(event: Optional[ChangeEvent] = None):
        await invoke_callback(on_update, await list_friends(store, user_id))

    await _refresh()
    return store.subscribe(FRIENDS, {"user_id": user_id}, _refresh)


async def remove_friend(store: RecordStore, friendship_id: str, user_id: Optional[str] = None) -> None:
    """
    Delete one directional friendship row. The reciprocal row is left alone;
    use `remove_friendship` to drop both directions.

    Raises:
        NotFoundError: If the row does not exist (or is not owned by user_id)
    """
    criteria = {"id": friendship_id}
    if user_id is not None:
        criteria["user_id"] = user_id
    removed = await store.delete(FRIENDS, criteria)
    if not removed:
        raise NotFoundError("Friendship not found")
    logger.info(f"Friendship row {friendship_id} removed")


async def remove_friendship(store: RecordStore, user_id: str, friend_id: str) -> int:
    """
    Remove the friendship between two users in both directions, in one
    transaction.

    Returns:
        int: Number of rows deleted

    Raises:
        NotFoundError: If neither direction exists
    """
    removed = await store.delete_any(FRIENDS, [
        {"user_id": user_id, "friend_id": friend_id},
        {"user_id": friend_id, "friend_id": user_id},
    ])
    if not removed:
        raise NotFoundError("Friendship not found")
    return removed


async def check_friendship(store: RecordStore, user_id: str, friend_id: str) -> bool:
    """True if `user_id` has an active friendship row pointing at `friend_id`."""
    friendship = await store.find_one(
        FRIENDS, {"user_id": user_id, "friend_id": friend_id, "status": FriendStatus.ACTIVE.value}
    )
    return friendship is not None


async def check_friend_request(store: RecordStore, from_user_id: str, to_user_id: str) -> bool:
    """True if a pending request from `from_user_id` to `to_user_id` exists."""
    friend_request = await store.find_one(
        REQUESTS,
        {"from_user_id": from_user_id, "to_user_id": to_user_id, "status": FriendRequestStatus.PENDING.value},
    )
    return friend_request is not None


async def get_friend_status(store: RecordStore, current_user_id: str, other_user_id: str) -> FriendStatusResponse:
    """
    Relationship flags used to pick the profile-screen affordance: hide
    "Add Friend" when already friends or a request is pending, offer
    accept/reject when the other user has asked first.
    """
    incoming = await store.find_one(
        REQUESTS,
        {"from_user_id": other_user_id, "to_user_id": current_user_id, "status": FriendRequestStatus.PENDING.value},
    )
    return FriendStatusResponse(
        is_friend=await check_friendship(store, current_user_id, other_user_id),
        has_pending_request=await check_friend_request(store, current_user_id, other_user_id),
        incoming_request_id=incoming["id"] if incoming else None,
    )
