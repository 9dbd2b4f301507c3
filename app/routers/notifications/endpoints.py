import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response
from app.common import get_current_user, to_http_exception
from app.core.errors import SOSError
from app.core.record_store import RecordStore
from app.init_db import get_store
from app.schemas.notifications import NotificationFilter, NotificationResponse, NotificationStatusUpdate
from app.services.notification_service import (
    create_sample_notifications,
    delete_notification,
    get_notifications,
    get_unread_count,
    mark_all_as_read,
    mark_as_read,
    mark_as_unread,
    update_notification_status,
)

# Configure logging for notification-related operations
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize router with prefix and tags for API documentation
router = APIRouter(prefix="/notifications", tags=["notifications"])

@router.get("/list", response_model=List[NotificationResponse])
async def get_notifications_api(
    filter: NotificationFilter = NotificationFilter.ALL,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """
    Retrieve the current user's notifications, newest first.

    Args:
        filter: all, unread or emergency
        store: Record store dependency
        current_user: Current authenticated user information

    Returns:
        List[NotificationResponse]: The user's notifications
    """
    try:
        return await get_notifications(store, current_user["uid"], filter)
    except SOSError as e:
        raise to_http_exception(e)

@router.get("/unread_count", response_model=dict)
async def get_unread_count_api(
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        return {"unread": await get_unread_count(store, current_user["uid"])}
    except SOSError as e:
        raise to_http_exception(e)

@router.post("/update_status", response_model=dict)
async def update_notification_status_api(
    request: NotificationStatusUpdate,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """
    Set the read flag on several of the current user's notifications.

    Returns:
        dict: The ids that were updated and the new flag
    """
    try:
        return await update_notification_status(store, request.ids, request.is_read, current_user["uid"])
    except SOSError as e:
        raise to_http_exception(e)

@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read_api(
    notification_id: str,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        return await mark_as_read(store, notification_id, current_user["uid"])
    except SOSError as e:
        raise to_http_exception(e)

@router.post("/{notification_id}/unread", response_model=NotificationResponse)
async def mark_as_unread_api(
    notification_id: str,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        return await mark_as_unread(store, notification_id, current_user["uid"])
    except SOSError as e:
        raise to_http_exception(e)

@router.post("/read_all", response_model=dict)
async def mark_all_as_read_api(
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        return {"updated": await mark_all_as_read(store, current_user["uid"])}
    except SOSError as e:
        raise to_http_exception(e)

@router.delete("/{notification_id}", status_code=204)
async def delete_notification_api(
    notification_id: str,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        removed = await delete_notification(store, notification_id, current_user["uid"])
    except SOSError as e:
        raise to_http_exception(e)
    if not removed:
        raise HTTPException(status_code=404, detail="Notification not found")
    return Response(status_code=204)

@router.post("/samples", response_model=List[NotificationResponse], status_code=201)
async def create_sample_notifications_api(
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """Seed the current user's inbox with one notification of each type."""
    try:
        return await create_sample_notifications(store, current_user["uid"])
    except SOSError as e:
        raise to_http_exception(e)
