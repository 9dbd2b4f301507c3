import logging
from typing import List
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from app.core.record_store import Record, RecordStore
from app.core.websocket.websocket_manager import manager
from app.init_db import get_store
from app.schemas.websocket import WebSocketMessageType
from app.services.friends_service import get_pending_friend_requests, get_user_friends
from app.services.notification_service import subscribe_to_user_notifications
from app.services.user_service import get_user_by_id

# Set up the logger
logger = logging.getLogger(__name__)

# Create router for WebSocket endpoints
router = APIRouter(prefix="/ws", tags=["web-socket"])

def _snapshot_sender(user_id: str, message_type: WebSocketMessageType):
    async def send(records: List[Record]):
        await manager.send_message(user_id, {"type": message_type.value, "data": jsonable_encoder(records)})
    return send

@router.websocket("/{user_id}")
async def websocket_endpoint(
    websocket: WebSocket,
    user_id: str,
    store: RecordStore = Depends(get_store)
):
    """
    Realtime feed for a user's notifications, incoming friend requests and
    friends.

    Flow:
        1. Verifies the user exists
        2. Accepts the connection and subscribes to the three feeds, each of
           which pushes a full snapshot now and after every change
        3. Reads client messages (heartbeat acknowledgements) until
           disconnection
        4. Unsubscribes and cancels the heartbeat on disconnection
    """
    logger.info(f"Attempting WebSocket connection for user: {user_id}")
    if await get_user_by_id(store, user_id) is None:
        logger.warning(f"User {user_id} not found")
        await websocket.close(code=1008)
        return

    await manager.connect(websocket, user_id)
    logger.info(f"WebSocket connected for user {user_id}")

    try:
        manager.add_subscription(websocket, user_id, await subscribe_to_user_notifications(
            store, user_id, _snapshot_sender(user_id, WebSocketMessageType.NOTIFICATIONS)
        ))
        manager.add_subscription(websocket, user_id, await get_pending_friend_requests(
            store, user_id, _snapshot_sender(user_id, WebSocketMessageType.FRIEND_REQUESTS)
        ))
        manager.add_subscription(websocket, user_id, await get_user_friends(
            store, user_id, _snapshot_sender(user_id, WebSocketMessageType.FRIENDS)
        ))

        while True:
            message_data = await websocket.receive_json()
            if message_data.get("type") == WebSocketMessageType.HEARTBEAT.value:
                logger.debug(f"Received heartbeat response from user {user_id}")
            else:
                logger.warning(f"Unsupported message type: {message_data.get('type')}")
    except WebSocketDisconnect:
        logger.info(f"User {user_id} disconnected from WebSocket")
        await manager.disconnect(websocket, user_id, reason="Client disconnected")
    except Exception as e:
        logger.error(f"Error during WebSocket connection for user {user_id}: {str(e)}")
        await manager.disconnect(websocket, user_id, reason=str(e))
