from enum import Enum

class WebSocketMessageType(str, Enum):
    NOTIFICATIONS = "notifications"
    FRIEND_REQUESTS = "friendRequests"
    FRIENDS = "friends"
    HEARTBEAT = "HEARTBEAT"
