import logging
from typing import List
from fastapi import APIRouter, Depends, Response
from app.common import display_name_of, get_current_user, to_http_exception
from app.core.errors import NotFoundError, SOSError
from app.core.record_store import RecordStore
from app.init_db import get_store
from app.schemas.friends import (
    FriendRequestCreate,
    FriendRequestCreated,
    FriendRequestResponse,
    FriendResponse,
    FriendStatusResponse,
)
from app.services.friends_service import (
    accept_friend_request,
    get_friend_request,
    get_friend_status,
    list_friends,
    list_pending_friend_requests,
    reject_friend_request,
    remove_friend,
    remove_friendship,
    send_friend_request,
)

# Configure logging for this module
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize router with prefix and tags for API documentation
router = APIRouter(prefix="/friends", tags=["friends"])

async def _load_incoming_request(store: RecordStore, request_id: str, user_id: str):
    friend_request = await get_friend_request(store, request_id)
    if friend_request["to_user_id"] != user_id:
        raise NotFoundError("Friend request not found")
    return friend_request

@router.post("/request", response_model=FriendRequestCreated, status_code=201)
async def send_friend_request_api(
    request: FriendRequestCreate,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """
    Send a friend request to another user.

    Args:
        request: Recipient id (user or profile id) and display name
        store: Record store
        current_user: Currently authenticated user

    Returns:
        FriendRequestCreated: Id of the new pending request

    Raises:
        HTTPException: 400 for a self-request, 404 for an unknown recipient,
            409 if a pending request already exists
    """
    try:
        request_id = await send_friend_request(
            store, current_user["uid"], display_name_of(current_user), request.to_user_id, request.to_user_name
        )
        return FriendRequestCreated(id=request_id)
    except SOSError as e:
        raise to_http_exception(e)

@router.get("/requests", response_model=List[FriendRequestResponse])
async def get_friend_requests_api(
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """Pending requests addressed to the current user, newest first."""
    try:
        return await list_pending_friend_requests(store, current_user["uid"])
    except SOSError as e:
        raise to_http_exception(e)

@router.post("/request/{request_id}/accept", status_code=204)
async def accept_friend_request_api(
    request_id: str,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        await _load_incoming_request(store, request_id, current_user["uid"])
        await accept_friend_request(store, request_id)
    except SOSError as e:
        raise to_http_exception(e)
    return Response(status_code=204)

@router.post("/request/{request_id}/reject", status_code=204)
async def reject_friend_request_api(
    request_id: str,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        await _load_incoming_request(store, request_id, current_user["uid"])
        await reject_friend_request(store, request_id)
    except SOSError as e:
        raise to_http_exception(e)
    return Response(status_code=204)

@router.get("/list", response_model=List[FriendResponse])
async def get_friends_api(
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        return await list_friends(store, current_user["uid"])
    except SOSError as e:
        raise to_http_exception(e)

@router.delete("/{friendship_id}", status_code=204)
async def remove_friend_api(
    friendship_id: str,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """Delete one of the current user's friendship rows."""
    try:
        await remove_friend(store, friendship_id, current_user["uid"])
    except SOSError as e:
        raise to_http_exception(e)
    return Response(status_code=204)

@router.delete("/user/{friend_id}", status_code=204)
async def remove_friendship_api(
    friend_id: str,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """Unfriend a user in both directions."""
    try:
        await remove_friendship(store, current_user["uid"], friend_id)
    except SOSError as e:
        raise to_http_exception(e)
    return Response(status_code=204)

@router.get("/status/{user_id}", response_model=FriendStatusResponse)
async def get_friend_status_api(
    user_id: str,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        return await get_friend_status(store, current_user["uid"], user_id)
    except SOSError as e:
        raise to_http_exception(e)
