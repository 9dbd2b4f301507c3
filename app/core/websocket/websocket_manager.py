from fastapi import WebSocket
from typing import Dict, List, Optional
import logging
import asyncio
from datetime import datetime, timezone

from app.config import settings
from app.core.record_store import Subscription
from app.schemas.websocket import WebSocketMessageType

logger = logging.getLogger(__name__)

class ConnectionManager:
    """
    Tracks one live websocket per user, the heartbeat task that keeps it
    open, and the change-feed subscriptions feeding it. Disconnecting tears
    all three down.
    """

    def __init__(self, heartbeat_interval: Optional[int] = None):
        self.active_connections: Dict[str, WebSocket] = {}
        self.online_users = set()
        self.heartbeat_tasks: Dict[str, asyncio.Task] = {}
        self.subscriptions: Dict[str, List[Subscription]] = {}
        self.heartbeat_interval = heartbeat_interval or settings.heartbeat_interval

    async def connect(self, websocket: WebSocket, user_id: str):
        await websocket.accept()
        previous = self.active_connections.get(user_id)
        if previous is not None and previous is not websocket:
            await self.disconnect(previous, user_id, reason="Replaced by a newer connection")
        self.active_connections[user_id] = websocket
        self.online_users.add(user_id)
        # Start heartbeat for this connection
        self.heartbeat_tasks[user_id] = asyncio.create_task(self._start_heartbeat(user_id))

    def add_subscription(self, websocket: WebSocket, user_id: str, subscription: Subscription) -> None:
        """
        Tie a feed subscription to the user's current connection. A subscription
        arriving for a socket that has already been replaced is dropped at once.
        """
        if self.active_connections.get(user_id) is not websocket:
            subscription()
            return
        self.subscriptions.setdefault(user_id, []).append(subscription)

    async def disconnect(self, websocket: WebSocket, user_id: str, reason: str = "Unknown"):
        logger.warning(f"Disconnecting user {user_id}. Reason: {reason}")
        # Only the current connection owns the heartbeat and the subscriptions
        if self.active_connections.get(user_id) is websocket:
            del self.active_connections[user_id]
            self.online_users.discard(user_id)
            task = self.heartbeat_tasks.pop(user_id, None)
            if task is not None:
                task.cancel()
            for unsubscribe in self.subscriptions.pop(user_id, []):
                unsubscribe()

        try:
            if websocket.client_state.name == "CONNECTED":
                await websocket.close()
        except Exception as e:
            logger.warning(f"Failed to close WebSocket for user {user_id}: {e}")

    async def _start_heartbeat(self, user_id: str):
        """Send heartbeat messages to the client until cancelled."""
        while True:
            try:
                await asyncio.sleep(self.heartbeat_interval)
                if user_id in self.active_connections:
                    await self.send_message(user_id, {
                        "type": WebSocketMessageType.HEARTBEAT.value,
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    })
            except asyncio.CancelledError:
                logger.info(f"Heartbeat task cancelled for user {user_id}")
                break
            except Exception as e:
                logger.warning(f"Heartbeat failed for user {user_id}: {e}")

    def is_user_online(self, user_id: str) -> bool:
        return user_id in self.online_users

    def get_online_users(self):
        return list(self.online_users)

    async def send_message(self, user_id: str, message: dict):
        """Send a JSON message to the user's socket, dropping the connection if the send fails."""
        websocket = self.active_connections.get(user_id)
        if websocket:
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"WebSocket send failed for user {user_id}: {e}")
                await self.disconnect(websocket, user_id, reason="send_json failed")
        else:
            logger.warning(f"No active WebSocket connection for user {user_id}")


manager = ConnectionManager()
